"""Pydantic request/response models for the Notifications API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class CancelNotificationRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ProcessDueRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ProcessDueResponse(BaseModel):
    status: str = "ok"
    requeued: int = 0


class NotificationResponse(BaseModel):
    notification_id: str
    notification_type: str
    channel: str
    recipient: str
    subject: str | None = None
    status: str
    retry_count: int = 0
    next_attempt_at: str | None = None
    failure_reason: str | None = None
    created_at: str | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
