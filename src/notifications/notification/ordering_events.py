"""Inbound cross-domain event handler — Notifications reacts to Order events.

Every consumed event carries the customer's contact snapshot, so no order
lookup is needed. A failure to queue a notification is logged and dropped:
customer messaging never blocks the order lifecycle.
"""

import structlog
from notifications.domain import notifications
from notifications.notification.helpers import create_order_notifications
from notifications.notification.notification import Notification, NotificationType
from protean.utils.mixins import handle
from shared.events.ordering import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderReturningToProvider,
    OrderShipped,
    PaymentFailed,
)

logger = structlog.get_logger(__name__)

notifications.register_external_event(OrderConfirmed, "Ordering.OrderConfirmed.v1")
notifications.register_external_event(PaymentFailed, "Ordering.PaymentFailed.v1")
notifications.register_external_event(OrderShipped, "Ordering.OrderShipped.v1")
notifications.register_external_event(OrderDelivered, "Ordering.OrderDelivered.v1")
notifications.register_external_event(OrderCancelled, "Ordering.OrderCancelled.v1")
notifications.register_external_event(OrderReturningToProvider, "Ordering.OrderReturningToProvider.v1")


def _event_id(event) -> str | None:
    metadata = getattr(event, "_metadata", None)
    return str(metadata.headers.id) if metadata is not None and metadata.headers.id else None


def _notify(event, notification_type: str, context: dict, source_event_type: str) -> None:
    try:
        create_order_notifications(
            order_id=str(event.order_id),
            customer_id=str(event.customer_id) if event.customer_id else None,
            email=event.customer_email,
            phone=event.customer_phone,
            notification_type=notification_type,
            context={"order_id": str(event.order_id), "customer_name": event.customer_name, **context},
            source_event_type=source_event_type,
            source_event_id=_event_id(event),
        )
    except Exception as exc:
        logger.error(
            "Failed to queue notification",
            order_id=str(event.order_id),
            notification_type=notification_type,
            error=str(exc),
        )


@notifications.event_handler(part_of=Notification, stream_category="ordering::order")
class OrderingEventsHandler:
    """Reacts to Ordering domain events to send customer notifications."""

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        _notify(
            event,
            NotificationType.ORDER_CONFIRMATION.value,
            {"total_amount": event.total_amount, "payment_method": event.payment_method},
            "Ordering.OrderConfirmed.v1",
        )

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        _notify(
            event,
            NotificationType.PAYMENT_FAILED.value,
            {"total_amount": event.total_amount, "reason": event.reason},
            "Ordering.PaymentFailed.v1",
        )

    @handle(OrderShipped)
    def on_order_shipped(self, event: OrderShipped) -> None:
        _notify(
            event,
            NotificationType.SHIPPING_UPDATE.value,
            {"tracking_number": event.tracking_number, "tracking_provider": event.tracking_provider},
            "Ordering.OrderShipped.v1",
        )

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        _notify(event, NotificationType.DELIVERY_CONFIRMATION.value, {}, "Ordering.OrderDelivered.v1")

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        _notify(
            event,
            NotificationType.ORDER_CANCELLATION.value,
            {"reason": event.reason, "payment_status": event.payment_status},
            "Ordering.OrderCancelled.v1",
        )

    @handle(OrderReturningToProvider)
    def on_returning_to_provider(self, event: OrderReturningToProvider) -> None:
        _notify(
            event,
            NotificationType.DELIVERY_FAILED.value,
            {
                "return_reason": event.return_reason,
                "failed_attempts": event.failed_attempts,
                "refund_due": event.refund_due,
                "total_amount": event.total_amount,
            },
            "Ordering.OrderReturningToProvider.v1",
        )
