"""Carrier pickup requests — the first call after confirmation and the periodic retry sweep.

ProcessDuePickups is invoked by a background job or cron, like the
notification sweep.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime
from protean.utils.globals import current_domain

from ordering.carrier import get_carrier
from ordering.domain import ordering
from ordering.pickup.pickup import PickupRequest, PickupStatus

logger = structlog.get_logger(__name__)


def attempt_pickup(pickup: PickupRequest) -> None:
    """Call the carrier once and record the outcome on `pickup`. The caller persists it."""
    order_id = str(pickup.order_id)
    try:
        result = get_carrier().request_pickup(order_id)
    except Exception as exc:
        pickup.mark_failed(str(exc))
    else:
        if result.success:
            pickup.mark_requested(reference=result.reference)
            logger.info(
                "Carrier pickup requested",
                order_id=order_id,
                reference=result.reference,
                attempts=pickup.attempts,
            )
            return
        pickup.mark_failed(result.failure_reason or "Pickup request failed")

    logger.error(
        "Carrier pickup request failed",
        order_id=order_id,
        reason=pickup.last_error,
        attempts=pickup.attempts,
        next_attempt_at=str(pickup.next_attempt_at) if pickup.next_attempt_at else None,
    )


def request_pickup_for(order_id) -> PickupRequest:
    """Open the pickup request for a newly confirmed order and make the first call.

    An order only ever gets one pickup request; a repeat is returned unchanged.
    """
    repo = current_domain.repository_for(PickupRequest)
    existing = repo._dao.query.filter(order_id=str(order_id)).all().items
    if existing:
        return existing[0]

    pickup = PickupRequest.create(order_id=order_id)
    attempt_pickup(pickup)
    repo.add(pickup)
    return pickup


@ordering.command(part_of="PickupRequest")
class ProcessDuePickups:
    """Ask the carrier again for every failed pickup whose backoff has expired."""

    as_of = DateTime()  # defaults to now


@ordering.command_handler(part_of=PickupRequest)
class PickupRetryHandler:
    @handle(ProcessDuePickups)
    def process_due(self, command):
        as_of = command.as_of or datetime.now(UTC)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=UTC)

        repo = current_domain.repository_for(PickupRequest)
        failed = repo._dao.query.filter(status=PickupStatus.FAILED.value).all().items

        retried = 0
        for pickup in failed:
            if not pickup.is_due(as_of):
                continue
            attempt_pickup(pickup)
            repo.add(pickup)
            retried += 1

        logger.info("Due pickup requests retried", retried=retried, as_of=str(as_of))
        return retried
