"""Order confirmation template — sent when an order is confirmed."""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting, rupees

_PAYMENT_LINES = {
    "cash_on_delivery": "Please keep {amount} ready to pay on delivery.",
    "online_gateway": "We have received your payment of {amount}.",
}


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value, NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        amount = rupees(context.get("total_amount"))
        payment_line = _PAYMENT_LINES.get(context.get("payment_method"), "Order total: {amount}.")
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": (
                f"{greeting(context)}\n\n"
                f"Your order #{order_id} has been confirmed.\n"
                f"{payment_line.format(amount=amount)}\n\n"
                "We'll notify you once your order ships."
            ),
        }
