"""Domain events for the Notification aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


@notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was created and queued for dispatch."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    order_id: Identifier()
    notification_type: String(required=True)
    channel: String(required=True)
    subject: String()
    source_event_type: String()
    created_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationSent:
    """A notification was handed to the channel adapter."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    sent_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationFailed:
    """A notification could not be sent; `next_attempt_at` is empty once retries are exhausted."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    max_retries: Integer(required=True)
    next_attempt_at: DateTime()
    failed_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationCancelled:
    """A pending notification was cancelled."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    reason: String(required=True)
    cancelled_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationRetried:
    """A failed notification was put back in the queue."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)
