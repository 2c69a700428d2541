"""Application tests for retrying, sweeping and cancelling notifications."""

from datetime import UTC, datetime, timedelta

import pytest
from notifications.channel import get_channel
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from notifications.notification.retry import CancelNotification, ProcessDueNotifications, RetryNotification
from protean import current_domain
from protean.exceptions import ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _get(notification_id):
    return current_domain.repository_for(Notification).get(notification_id)


@pytest.fixture()
def failed_notification():
    """An email notification whose first dispatch failed."""
    channel = get_channel(NotificationChannel.EMAIL.value)
    channel.configure(should_succeed=False, failure_reason="SMTP timeout")

    notification = Notification.create(
        recipient="asha@example.com",
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
        channel=NotificationChannel.EMAIL.value,
        body="Your order has been confirmed.",
        subject="Order Confirmed",
        order_id="ord-001",
    )
    current_domain.repository_for(Notification).add(notification)
    return str(notification.id)


class TestRetryNotification:
    def test_retry_resends(self, failed_notification):
        get_channel("Email").configure(should_succeed=True)

        _process(RetryNotification(notification_id=failed_notification))

        n = _get(failed_notification)
        assert n.status == NotificationStatus.SENT.value
        assert len(get_channel("Email").sent) == 1

    def test_retry_that_fails_again(self, failed_notification):
        _process(RetryNotification(notification_id=failed_notification))

        n = _get(failed_notification)
        assert n.status == NotificationStatus.FAILED.value
        assert n.retry_count == 2

    def test_sent_notification_cannot_be_retried(self, failed_notification):
        get_channel("Email").configure(should_succeed=True)
        _process(RetryNotification(notification_id=failed_notification))

        with pytest.raises(ValidationError):
            _process(RetryNotification(notification_id=failed_notification))

    def test_three_failures_exhaust_retries(self, failed_notification):
        _process(RetryNotification(notification_id=failed_notification))
        _process(RetryNotification(notification_id=failed_notification))

        n = _get(failed_notification)
        assert n.retry_count == 3
        assert n.next_attempt_at is None
        with pytest.raises(ValidationError):
            _process(RetryNotification(notification_id=failed_notification))


class TestProcessDue:
    def test_nothing_due_before_backoff(self, failed_notification):
        assert _process(ProcessDueNotifications(as_of=datetime.now(UTC))) == 0
        assert _get(failed_notification).status == NotificationStatus.FAILED.value

    def test_due_notification_is_resent(self, failed_notification):
        get_channel("Email").configure(should_succeed=True)

        requeued = _process(ProcessDueNotifications(as_of=datetime.now(UTC) + timedelta(minutes=2)))

        assert requeued == 1
        assert _get(failed_notification).status == NotificationStatus.SENT.value

    def test_backoff_grows_between_sweeps(self, failed_notification):
        _process(ProcessDueNotifications(as_of=datetime.now(UTC) + timedelta(minutes=2)))

        n = _get(failed_notification)
        assert n.retry_count == 2
        assert _process(ProcessDueNotifications(as_of=datetime.now(UTC) + timedelta(seconds=90))) == 0
        assert _process(ProcessDueNotifications(as_of=datetime.now(UTC) + timedelta(minutes=3))) == 1

    def test_cancelled_notification_is_skipped(self, failed_notification):
        _process(CancelNotification(notification_id=failed_notification, reason="Order cancelled"))
        assert _process(ProcessDueNotifications(as_of=datetime.now(UTC) + timedelta(hours=1))) == 0


class TestCancelNotification:
    def test_cancel_failed(self, failed_notification):
        _process(CancelNotification(notification_id=failed_notification, reason="Customer unreachable"))

        n = _get(failed_notification)
        assert n.status == NotificationStatus.CANCELLED.value
        assert n.failure_reason == "Customer unreachable"

    def test_cannot_cancel_sent(self, failed_notification):
        get_channel("Email").configure(should_succeed=True)
        _process(RetryNotification(notification_id=failed_notification))

        with pytest.raises(ValidationError):
            _process(CancelNotification(notification_id=failed_notification, reason="Too late"))

    def test_withdrawn_notification_cannot_be_retried(self, failed_notification):
        _process(CancelNotification(notification_id=failed_notification, reason="Customer unreachable"))

        with pytest.raises(ValidationError):
            _process(RetryNotification(notification_id=failed_notification))

        assert _get(failed_notification).status == NotificationStatus.CANCELLED.value
