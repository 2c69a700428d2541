"""Notification retries — manual retry, withdrawal and the periodic sweep of due failures.

ProcessDueNotifications is invoked by a background job or cron. It puts
every failed notification whose backoff has expired back in the queue; the
dispatcher sends it again on NotificationRetried. CancelNotification
withdraws a pending or failed notification so the sweep never picks it up
again. A sent notification stays sent.
"""

from datetime import UTC, datetime

import structlog
from notifications.domain import notifications
from notifications.notification.notification import Notification, NotificationStatus
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="Notification")
class RetryNotification:
    """Request to retry a failed notification."""

    notification_id: Identifier(required=True)


@notifications.command(part_of="Notification")
class CancelNotification:
    """Request to stop retrying a pending or failed notification."""

    notification_id: Identifier(required=True)
    reason: String(required=True, max_length=500)


@notifications.command(part_of="Notification")
class ProcessDueNotifications:
    """Request to re-queue all failed notifications whose backoff has expired."""

    as_of: DateTime()  # Optional: process as of this time (defaults to now)


@notifications.command_handler(part_of=Notification)
class RetryNotificationHandler:
    @handle(RetryNotification)
    def retry_notification(self, command: RetryNotification):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.retry()
        repo.add(notification)

    @handle(CancelNotification)
    def cancel_notification(self, command: CancelNotification):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.cancel(command.reason)
        repo.add(notification)
        logger.info(
            "Notification withdrawn from retries",
            notification_id=command.notification_id,
            attempts=notification.retry_count,
            reason=command.reason,
        )

    @handle(ProcessDueNotifications)
    def process_due(self, command: ProcessDueNotifications):
        as_of = command.as_of or datetime.now(UTC)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=UTC)

        repo = current_domain.repository_for(Notification)
        failed = repo._dao.query.filter(status=NotificationStatus.FAILED.value).all().items

        requeued = 0
        for notification in failed:
            if not notification.is_due(as_of):
                continue
            notification.retry()
            repo.add(notification)
            requeued += 1

        logger.info("Due notifications re-queued", requeued=requeued, as_of=str(as_of))
        return requeued
