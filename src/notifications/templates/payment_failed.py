"""Payment failed template — the online payment did not go through."""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting, rupees


class PaymentFailedTemplate:
    notification_type = NotificationType.PAYMENT_FAILED.value
    default_channels = [NotificationChannel.EMAIL.value, NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        reason = context.get("reason")
        reason_line = f"Reason: {reason}\n" if reason else ""
        return {
            "subject": f"Payment for Order #{order_id} Failed",
            "body": (
                f"{greeting(context)}\n\n"
                f"We could not collect {rupees(context.get('total_amount'))} for order #{order_id}.\n"
                f"{reason_line}\n"
                "Your order is still open. You can retry the payment or switch to cash on delivery."
            ),
        }
