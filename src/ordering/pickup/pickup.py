"""PickupRequest aggregate (CQRS) — one carrier pickup / label request per confirmed order.

The carrier call happens right after confirmation. When the provider is down
or times out, the request is kept as FAILED with a `next_attempt_at`; the
ProcessDuePickups sweep asks again until `max_attempts` calls have failed.

    PENDING → REQUESTED
    PENDING → FAILED → (sweep) → REQUESTED | FAILED
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering

DEFAULT_MAX_PICKUP_ATTEMPTS = 5
RETRY_BASE_DELAY = timedelta(seconds=60)


class PickupStatus(Enum):
    PENDING = "pending"
    REQUESTED = "requested"
    FAILED = "failed"


def backoff_delay(attempts: int) -> timedelta:
    """Wait after `attempts` failed calls (1 → 60s, 2 → 120s, 3 → 240s, ...)."""
    return RETRY_BASE_DELAY * (2 ** max(attempts - 1, 0))


@ordering.aggregate
class PickupRequest:
    order_id = Identifier(required=True)
    status = String(choices=PickupStatus, default=PickupStatus.PENDING.value)
    attempts = Integer(default=0)
    max_attempts = Integer(default=DEFAULT_MAX_PICKUP_ATTEMPTS, min_value=1)
    reference = String(max_length=255)
    last_error = String(max_length=1000)
    next_attempt_at = DateTime()
    requested_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, order_id, max_attempts=DEFAULT_MAX_PICKUP_ATTEMPTS):
        now = datetime.now(UTC)
        return cls(order_id=str(order_id), max_attempts=max_attempts, created_at=now, updated_at=now)

    @property
    def attempts_exhausted(self) -> bool:
        return (self.attempts or 0) >= self.max_attempts

    def is_due(self, as_of: datetime) -> bool:
        if self.status != PickupStatus.FAILED.value or self.attempts_exhausted:
            return False
        if self.next_attempt_at is None:
            return True
        next_attempt = self.next_attempt_at
        if next_attempt.tzinfo is None:
            next_attempt = next_attempt.replace(tzinfo=UTC)
        return next_attempt <= as_of

    def mark_requested(self, reference=None, requested_at=None):
        if self.status == PickupStatus.REQUESTED.value:
            raise ValidationError({"status": ["Pickup already requested"]})

        now = requested_at or datetime.now(UTC)
        self.status = PickupStatus.REQUESTED.value
        self.attempts = (self.attempts or 0) + 1
        self.reference = reference
        self.last_error = None
        self.next_attempt_at = None
        self.requested_at = now
        self.updated_at = now

    def mark_failed(self, reason, failed_at=None):
        if self.status == PickupStatus.REQUESTED.value:
            raise ValidationError({"status": ["Pickup already requested"]})

        now = failed_at or datetime.now(UTC)
        self.status = PickupStatus.FAILED.value
        self.attempts = (self.attempts or 0) + 1
        self.last_error = reason
        self.next_attempt_at = None if self.attempts_exhausted else now + backoff_delay(self.attempts)
        self.updated_at = now
