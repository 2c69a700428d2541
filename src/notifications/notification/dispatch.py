"""Internal dispatch handler — sends notifications via channel adapters.

Reacts to NotificationCreated (first attempt) and NotificationRetried (every
later attempt) and dispatches via the appropriate channel adapter. Updates
the notification status to SENT or FAILED based on the result.
"""

import structlog
from notifications.channel import get_channel
from notifications.domain import notifications
from notifications.notification.events import NotificationCreated, NotificationRetried
from notifications.notification.notification import (
    Notification,
    NotificationStatus,
)
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.event_handler(part_of=Notification)
class NotificationDispatcher:
    """Dispatches pending notifications via channel adapters."""

    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        _dispatch(event.notification_id)

    @handle(NotificationRetried)
    def on_notification_retried(self, event: NotificationRetried) -> None:
        _dispatch(event.notification_id)


def _dispatch(notification_id) -> None:
    repo = current_domain.repository_for(Notification)

    try:
        notification = repo.get(notification_id)
    except ObjectNotFoundError:
        logger.error(
            "Failed to load notification for dispatch",
            notification_id=str(notification_id),
        )
        return

    # Only dispatch PENDING notifications
    if NotificationStatus(notification.status) != NotificationStatus.PENDING:
        logger.info(
            "Notification not in PENDING status, skipping dispatch",
            notification_id=str(notification_id),
            status=notification.status,
        )
        return

    try:
        adapter = get_channel(notification.channel)
        result = adapter.send(
            to=notification.recipient,
            body=notification.body,
            subject=notification.subject,
        )

        if result.get("status") == "sent":
            notification.mark_sent()
        else:
            notification.mark_failed(result.get("error", "Unknown dispatch error"))
    except Exception as e:
        notification.mark_failed(str(e))
        logger.error(
            "Notification dispatch failed",
            notification_id=str(notification.id),
            error=str(e),
        )

    if notification.status == NotificationStatus.FAILED.value:
        logger.warning(
            "Notification not sent",
            notification_id=str(notification.id),
            channel=notification.channel,
            retry_count=notification.retry_count,
            next_attempt_at=str(notification.next_attempt_at) if notification.next_attempt_at else None,
        )

    repo.add(notification)
