"""Order timeline — append-only audit trail of all order events.

Administrative actions record who performed them in `actor`.
"""

import json
import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    DeliveryAttemptFailed,
    DeliveryAttemptScheduled,
    DeliveryAttemptSucceeded,
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderReturningToProvider,
    OrderShipped,
    OrderStatusOverridden,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PaymentTransactionStarted,
    SwitchedToCashOnDelivery,
)
from ordering.order.order import FAILURE_REASON_LABELS, Order


@ordering.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True)
    description = String(required=True)
    actor = String(max_length=100)
    occurred_at = DateTime(required=True)
    event_metadata = Text()  # JSON: extra event data


def _add_entry(order_id, event_type, description, occurred_at, actor=None, event_metadata=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            description=description,
            actor=actor,
            occurred_at=occurred_at,
            event_metadata=json.dumps(event_metadata) if event_metadata else None,
        )
    )


def timeline_for(order_id) -> list[OrderTimeline]:
    """Entries for one order, oldest first."""
    entries = current_domain.repository_for(OrderTimeline)._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(entries, key=lambda entry: entry.occurred_at)


@ordering.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        _add_entry(
            event.order_id,
            "OrderPlaced",
            f"Order placed for ₹{event.total_amount:.2f} ({event.payment_method})",
            event.placed_at,
            event_metadata={
                "subtotal": event.subtotal,
                "coupon_code": event.coupon_code,
                "coupon_discount": event.coupon_discount,
                "campaign_id": event.campaign_id,
                "campaign_discount": event.campaign_discount,
            },
        )

    @on(OrderConfirmed)
    def on_order_confirmed(self, event):
        _add_entry(event.order_id, "OrderConfirmed", "Order was confirmed", event.confirmed_at)

    @on(OrderProcessing)
    def on_order_processing(self, event):
        _add_entry(event.order_id, "OrderProcessing", "Order processing started", event.started_at)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        if event.tracking_number:
            description = f"Shipped via {event.tracking_provider or 'carrier'} (tracking: {event.tracking_number})"
        else:
            description = "Shipped (tracking unavailable)"
        _add_entry(event.order_id, "OrderShipped", description, event.shipped_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        _add_entry(event.order_id, "OrderDelivered", "Order was delivered", event.delivered_at)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _add_entry(
            event.order_id,
            "OrderCancelled",
            f"Cancelled by {event.cancelled_by}: {event.reason}",
            event.cancelled_at,
            actor=event.cancelled_by,
        )

    @on(OrderStatusOverridden)
    def on_status_overridden(self, event):
        description = f"Status overridden from {event.previous_status} to {event.new_status}"
        if event.reason:
            description = f"{description}: {event.reason}"
        _add_entry(event.order_id, "OrderStatusOverridden", description, event.overridden_at, actor=event.actor)

    @on(PaymentTransactionStarted)
    def on_payment_transaction_started(self, event):
        _add_entry(
            event.order_id,
            "PaymentTransactionStarted",
            f"Payment attempt {event.attempt_number} started (txn: {event.txn_id})",
            event.initiated_at,
        )

    @on(PaymentSucceeded)
    def on_payment_succeeded(self, event):
        _add_entry(event.order_id, "PaymentSucceeded", f"Payment of ₹{event.amount:.2f} received", event.paid_at)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        _add_entry(event.order_id, "PaymentFailed", f"Payment failed: {event.reason or 'unknown reason'}", event.failed_at)

    @on(PaymentRefunded)
    def on_payment_refunded(self, event):
        _add_entry(event.order_id, "PaymentRefunded", f"Refunded ₹{event.amount:.2f}", event.refunded_at)

    @on(SwitchedToCashOnDelivery)
    def on_switched_to_cash_on_delivery(self, event):
        _add_entry(event.order_id, "SwitchedToCashOnDelivery", "Payment switched to cash on delivery", event.switched_at)

    @on(DeliveryAttemptScheduled)
    def on_delivery_attempt_scheduled(self, event):
        _add_entry(
            event.order_id,
            "DeliveryAttemptScheduled",
            f"Delivery attempt {event.attempt_number} scheduled for {event.scheduled_date}",
            event.scheduled_at,
        )

    @on(DeliveryAttemptFailed)
    def on_delivery_attempt_failed(self, event):
        _add_entry(
            event.order_id,
            "DeliveryAttemptFailed",
            f"Delivery attempt {event.attempt_number} failed: {FAILURE_REASON_LABELS.get(event.failure_reason, event.failure_reason)}",
            event.attempted_at,
        )

    @on(DeliveryAttemptSucceeded)
    def on_delivery_attempt_succeeded(self, event):
        _add_entry(
            event.order_id,
            "DeliveryAttemptSucceeded",
            f"Delivery attempt {event.attempt_number} succeeded",
            event.attempted_at,
        )

    @on(OrderReturningToProvider)
    def on_returning_to_provider(self, event):
        _add_entry(
            event.order_id,
            "OrderReturningToProvider",
            event.return_reason,
            event.returned_at,
            event_metadata={"failed_attempts": event.failed_attempts, "refund_due": event.refund_due},
        )
