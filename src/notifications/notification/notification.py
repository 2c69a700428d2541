"""Notification aggregate (CQRS) — tracks individual notification lifecycle.

Each notification represents a single message sent to a recipient via a
specific channel. Notifications are created reactively from Ordering
events and dispatched through channel adapters (email, SMS).

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
    PENDING → CANCELLED

Failed notifications wait `60s * 2^(retry_count-1)` before they become due
for another attempt, up to `max_retries` failures.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import (
    NotificationCancelled,
    NotificationCreated,
    NotificationFailed,
    NotificationRetried,
    NotificationSent,
)
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

RETRY_BASE_DELAY = timedelta(seconds=60)
DEFAULT_MAX_RETRIES = 3


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    PAYMENT_FAILED = "PaymentFailed"
    SHIPPING_UPDATE = "ShippingUpdate"
    DELIVERY_CONFIRMATION = "DeliveryConfirmation"
    DELIVERY_FAILED = "DeliveryFailed"
    ORDER_CANCELLATION = "OrderCancellation"


class NotificationChannel(Enum):
    EMAIL = "Email"
    SMS = "SMS"


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
        NotificationStatus.CANCELLED,
    },
    NotificationStatus.FAILED: {
        NotificationStatus.PENDING,  # Via retry
        NotificationStatus.CANCELLED,
    },
    NotificationStatus.SENT: set(),  # Terminal
    NotificationStatus.CANCELLED: set(),  # Terminal
}


def backoff_delay(retry_count: int) -> timedelta:
    """Delay before the next attempt after `retry_count` failures (1 → 60s, 2 → 120s, ...)."""
    return RETRY_BASE_DELAY * (2 ** max(retry_count - 1, 0))


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class Notification:
    """A single notification dispatched to a recipient via a channel."""

    # Recipient (email address or phone number, depending on channel)
    recipient: String(required=True, max_length=254)
    customer_id: Identifier()
    order_id: Identifier()

    # Notification type and channel
    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, required=True)

    # Content
    subject: String(max_length=500)
    body: Text(required=True)

    # Source event correlation
    source_event_type: String(max_length=200)
    source_event_id: String(max_length=200)
    context_data: Text()  # JSON: data used to render the template

    # Status
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)

    # Delivery tracking
    sent_at: DateTime()
    failure_reason: String(max_length=500)

    # Retry
    retry_count: Integer(default=0)
    max_retries: Integer(default=DEFAULT_MAX_RETRIES)
    next_attempt_at: DateTime()

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        recipient,
        notification_type,
        channel,
        body,
        subject=None,
        customer_id=None,
        order_id=None,
        source_event_type=None,
        source_event_id=None,
        context_data=None,
        max_retries=DEFAULT_MAX_RETRIES,
    ):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)

        notification = cls(
            recipient=recipient,
            customer_id=customer_id,
            order_id=order_id,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            source_event_type=source_event_type,
            source_event_id=source_event_id,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                recipient=recipient,
                order_id=str(order_id) if order_id else None,
                notification_type=notification_type,
                channel=channel,
                subject=subject,
                source_event_type=source_event_type,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def retries_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries

    def is_due(self, as_of: datetime) -> bool:
        """True when a failed notification may be attempted again at `as_of`."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED or self.retries_exhausted:
            return False
        if self.next_attempt_at is None:
            return True
        next_attempt = self.next_attempt_at
        if next_attempt.tzinfo is None:
            next_attempt = next_attempt.replace(tzinfo=UTC)
        return next_attempt <= as_of

    def mark_sent(self, sent_at=None):
        """Mark notification as successfully sent to the channel."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.sent_at = now
        self.next_attempt_at = None
        self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                sent_at=now,
            )
        )

    def mark_failed(self, reason, failed_at=None):
        """Mark notification as failed and schedule the next attempt (if any remain)."""
        self._assert_can_transition(NotificationStatus.FAILED)

        now = failed_at or datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = reason
        self.retry_count = self.retry_count + 1
        self.next_attempt_at = None if self.retries_exhausted else now + backoff_delay(self.retry_count)
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                reason=reason,
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                next_attempt_at=self.next_attempt_at,
                failed_at=now,
            )
        )

    def cancel(self, reason):
        """Cancel a pending (or failed) notification."""
        self._assert_can_transition(NotificationStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.CANCELLED.value
        self.failure_reason = reason
        self.next_attempt_at = None
        self.updated_at = now

        self.raise_(
            NotificationCancelled(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                reason=reason,
                cancelled_at=now,
            )
        )

    def retry(self):
        """Put a failed notification back in the queue."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retries_exhausted:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = datetime.now(UTC)
        self.status = NotificationStatus.PENDING.value
        self.failure_reason = None
        self.next_attempt_at = None
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                retry_count=self.retry_count,
                retried_at=now,
            )
        )
