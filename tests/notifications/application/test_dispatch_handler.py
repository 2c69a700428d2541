"""Application tests for the internal dispatch handler.

Adding a Notification to the repository triggers dispatch (sync event
processing), so behaviour is observed through the persisted status.
"""

from datetime import UTC, datetime, timedelta

from notifications.channel import get_channel
from notifications.notification.helpers import create_order_notifications
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from protean import current_domain


def _create(**overrides):
    fields = {
        "recipient": "asha@example.com",
        "notification_type": NotificationType.SHIPPING_UPDATE.value,
        "channel": NotificationChannel.EMAIL.value,
        "body": "Your order is on its way.",
        "subject": "Shipped",
        "order_id": "ord-001",
    }
    fields.update(overrides)
    notification = Notification.create(**fields)
    repo = current_domain.repository_for(Notification)
    repo.add(notification)
    return repo.get(str(notification.id))


class TestAutoDispatch:
    def test_sent_on_creation(self):
        n = _create()
        assert n.status == NotificationStatus.SENT.value
        assert n.sent_at is not None
        assert get_channel("Email").sent[0]["to"] == "asha@example.com"

    def test_channel_failure_schedules_retry(self):
        get_channel("Email").configure(should_succeed=False, failure_reason="Mailbox full")
        before = datetime.now(UTC)

        n = _create()

        assert n.status == NotificationStatus.FAILED.value
        assert n.failure_reason == "Mailbox full"
        assert n.retry_count == 1
        next_attempt = n.next_attempt_at.replace(tzinfo=n.next_attempt_at.tzinfo or UTC)
        assert before + timedelta(seconds=59) <= next_attempt <= datetime.now(UTC) + timedelta(seconds=61)


class TestDeduplication:
    def test_same_source_event_notifies_once(self):
        kwargs = {
            "order_id": "ord-dup",
            "customer_id": "cust-001",
            "email": "asha@example.com",
            "phone": "9876543210",
            "notification_type": NotificationType.ORDER_CONFIRMATION.value,
            "context": {"order_id": "ord-dup", "total_amount": 500, "payment_method": "cash_on_delivery"},
            "source_event_type": "Ordering.OrderConfirmed.v1",
            "source_event_id": "evt-123",
        }

        first = create_order_notifications(**kwargs)
        second = create_order_notifications(**kwargs)

        assert len(first) == 2
        assert second == []
        assert len(get_channel("Email").sent) == 1
        assert len(get_channel("SMS").sent) == 1

    def test_without_event_id_nothing_is_deduplicated(self):
        kwargs = {
            "order_id": "ord-nodup",
            "customer_id": "cust-001",
            "email": "asha@example.com",
            "phone": None,
            "notification_type": NotificationType.DELIVERY_CONFIRMATION.value,
            "context": {"order_id": "ord-nodup"},
        }

        create_order_notifications(**kwargs)
        create_order_notifications(**kwargs)

        assert len(get_channel("Email").sent) == 2

    def test_no_recipients_creates_nothing(self):
        created = create_order_notifications(
            order_id="ord-none",
            customer_id="cust-001",
            email=None,
            phone=None,
            notification_type=NotificationType.ORDER_CONFIRMATION.value,
            context={"order_id": "ord-none"},
        )
        assert created == []
