"""Delivery attempts — commands and handler.

The failure threshold that sends an order back to the shipping provider is
taken from the command when the caller sets one, otherwise from
MAX_FAILED_DELIVERY_ATTEMPTS (default 3).
"""

import os

import structlog
from protean import handle
from protean.fields import Date, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import DEFAULT_MAX_FAILED_ATTEMPTS, Order

logger = structlog.get_logger(__name__)


def max_failed_attempts() -> int:
    return int(os.environ.get("MAX_FAILED_DELIVERY_ATTEMPTS", DEFAULT_MAX_FAILED_ATTEMPTS))


@ordering.command(part_of="Order")
class ScheduleDeliveryAttempt:
    order_id = Identifier(required=True)
    scheduled_date = Date(required=True)
    notes = String(max_length=1000)


@ordering.command(part_of="Order")
class RecordDeliveryOutcome:
    order_id = Identifier(required=True)
    attempt_id = Identifier(required=True)
    outcome = String(required=True, max_length=20)  # delivered | failed
    failure_reason = String(max_length=50)
    notes = String(max_length=1000)
    max_failed_attempts = Integer(min_value=1)


@ordering.command_handler(part_of=Order)
class DeliveryAttemptHandler:
    @handle(ScheduleDeliveryAttempt)
    def schedule_attempt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        attempt = order.schedule_delivery_attempt(command.scheduled_date, notes=command.notes)
        repo.add(order)
        return str(attempt.id)

    @handle(RecordDeliveryOutcome)
    def record_outcome(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        was_returning = order.returning_to_provider
        order.record_delivery_outcome(
            attempt_id=command.attempt_id,
            outcome=command.outcome,
            failure_reason=command.failure_reason,
            notes=command.notes,
            max_failed_attempts=command.max_failed_attempts or max_failed_attempts(),
        )
        repo.add(order)

        if order.returning_to_provider and not was_returning:
            logger.warning(
                "Order returning to shipping provider",
                order_id=str(order.id),
                return_reason=order.return_reason,
                refund_due=order.refund_due,
            )
        return str(order.id)
