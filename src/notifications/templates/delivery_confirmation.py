"""Delivery confirmation template."""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting


class DeliveryConfirmationTemplate:
    notification_type = NotificationType.DELIVERY_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Order #{order_id} Delivered",
            "body": (
                f"{greeting(context)}\n\n"
                f"Your order #{order_id} has been delivered. Thank you for shopping with us!"
            ),
        }
