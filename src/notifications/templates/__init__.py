"""Template registry — maps NotificationType to template classes.

Each template knows its default channels and how to render content
from event context data.
"""

from notifications.notification.notification import NotificationType
from notifications.templates.delivery_confirmation import (
    DeliveryConfirmationTemplate,
)
from notifications.templates.delivery_failed import DeliveryFailedTemplate
from notifications.templates.order_cancellation import OrderCancellationTemplate
from notifications.templates.order_confirmation import OrderConfirmationTemplate
from notifications.templates.payment_failed import PaymentFailedTemplate
from notifications.templates.shipping_update import ShippingUpdateTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
    NotificationType.SHIPPING_UPDATE.value: ShippingUpdateTemplate,
    NotificationType.DELIVERY_CONFIRMATION.value: DeliveryConfirmationTemplate,
    NotificationType.DELIVERY_FAILED.value: DeliveryFailedTemplate,
    NotificationType.ORDER_CANCELLATION.value: OrderCancellationTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
