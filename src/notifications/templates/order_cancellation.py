"""Order cancellation template."""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting


class OrderCancellationTemplate:
    notification_type = NotificationType.ORDER_CANCELLATION.value
    default_channels = [NotificationChannel.EMAIL.value, NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        reason = context.get("reason", "No reason provided")
        body = f"{greeting(context)}\n\nYour order #{order_id} has been cancelled.\nReason: {reason}"
        if context.get("payment_status") == "paid":
            body += "\n\nYour payment will be refunded to your original payment method."
        return {"subject": f"Order #{order_id} Cancelled", "body": body}
