"""Delivery failed template — repeated failed attempts, parcel returning to the provider.

Prepaid orders get a refund note.
"""

from notifications.notification.notification import (
    NotificationChannel,
    NotificationType,
)
from notifications.templates.formatting import greeting, rupees


class DeliveryFailedTemplate:
    notification_type = NotificationType.DELIVERY_FAILED.value
    default_channels = [NotificationChannel.EMAIL.value, NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        attempts = context.get("failed_attempts")
        reason = context.get("return_reason") or "Multiple failed delivery attempts"
        attempts_line = f"after {attempts} attempts" if attempts else "after several attempts"

        body = (
            f"{greeting(context)}\n\n"
            f"We could not deliver your order #{order_id} {attempts_line}.\n"
            f"{reason}\n\n"
            "The parcel is being returned to our shipping partner."
        )
        if context.get("refund_due"):
            body += f"\nA refund of {rupees(context.get('total_amount'))} will be issued to your original payment method."

        return {"subject": f"Delivery Failed for Order #{order_id}", "body": body}
