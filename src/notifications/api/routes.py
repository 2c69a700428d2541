"""FastAPI routes for the Notifications domain.

Thin adapters that translate HTTP requests into domain commands.
No business logic — just schema→command→response translation.
"""

from fastapi import APIRouter
from notifications.api.schemas import (
    CancelNotificationRequest,
    NotificationListResponse,
    NotificationResponse,
    ProcessDueRequest,
    ProcessDueResponse,
    StatusResponse,
)
from notifications.notification.notification import Notification
from notifications.notification.retry import CancelNotification, ProcessDueNotifications, RetryNotification
from protean.utils.globals import current_domain

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        notification_id=str(n.id),
        notification_type=n.notification_type,
        channel=n.channel,
        recipient=n.recipient,
        subject=n.subject,
        status=n.status,
        retry_count=n.retry_count or 0,
        next_attempt_at=str(n.next_attempt_at) if n.next_attempt_at else None,
        failure_reason=n.failure_reason,
        created_at=str(n.created_at) if n.created_at else None,
    )


# ---------------------------------------------------------------------------
# Notification history
# ---------------------------------------------------------------------------
@router.get("/orders/{order_id}", response_model=NotificationListResponse)
async def get_order_notifications(order_id: str) -> NotificationListResponse:
    """Every notification queued for an order, oldest first."""
    repo = current_domain.repository_for(Notification)
    results = repo._dao.query.filter(order_id=order_id).all().items
    results = sorted(results, key=lambda n: n.created_at)
    return NotificationListResponse(notifications=[_to_response(n) for n in results])


# ---------------------------------------------------------------------------
# Notification lifecycle
# ---------------------------------------------------------------------------
@router.post("/{notification_id}/retry", status_code=201, response_model=StatusResponse)
async def retry_notification(notification_id: str) -> StatusResponse:
    """Retry a failed notification."""
    command = RetryNotification(notification_id=notification_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@router.put("/{notification_id}/cancel", response_model=StatusResponse)
async def cancel_notification(notification_id: str, body: CancelNotificationRequest) -> StatusResponse:
    """Cancel a pending or failed notification."""
    command = CancelNotification(
        notification_id=notification_id,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Maintenance: periodic background job endpoint
# ---------------------------------------------------------------------------
@router.post("/maintenance/process-due", response_model=ProcessDueResponse)
async def process_due_notifications(body: ProcessDueRequest | None = None) -> ProcessDueResponse:
    """Re-queue failed notifications whose backoff has expired.

    Designed to be called periodically by an external scheduler (e.g., every minute).
    """
    command = ProcessDueNotifications(as_of=body.as_of if body else None)
    requeued = current_domain.process(command, asynchronous=False)
    return ProcessDueResponse(requeued=requeued or 0)
