"""Shipping update template — sent when an order ships."""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting


class ShippingUpdateTemplate:
    notification_type = NotificationType.SHIPPING_UPDATE.value
    default_channels = [NotificationChannel.EMAIL.value, NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        tracking_number = context.get("tracking_number")
        provider = context.get("tracking_provider") or "our shipping partner"
        if tracking_number:
            tracking_line = f"Tracking number: {tracking_number} ({provider})"
        else:
            tracking_line = "Tracking details will be shared once available."
        return {
            "subject": f"Order #{order_id} Has Shipped",
            "body": (
                f"{greeting(context)}\n\n"
                f"Your order #{order_id} is on its way.\n"
                f"{tracking_line}"
            ),
        }
