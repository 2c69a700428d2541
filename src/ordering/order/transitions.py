"""Order lifecycle transitions — commands and handler.

Confirmation, processing, shipment, delivery and cancellation all follow the
same shape: load the order, ask it to move, persist. Moving into the state
the order is already in is accepted silently.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkProcessing:
    """Signal that the warehouse has started picking and packing."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkShipped:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=255)
    tracking_provider = String(max_length=100)
    tracking_unavailable = Boolean(default=False)


@ordering.command(part_of="Order")
class MarkDelivered:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=100)


@ordering.command(part_of="Order")
class OverrideOrderStatus:
    """Administrative skip forward along the happy path."""

    order_id = Identifier(required=True)
    target_status = String(required=True, max_length=20)
    actor = String(required=True, max_length=100)
    reason = String(max_length=500)


@ordering.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=20)
    payment_reference = String(max_length=255)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OrderTransitionsHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm()
        repo.add(order)
        return str(order.id)

    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)
        return str(order.id)

    @handle(MarkShipped)
    def mark_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_shipped(
            tracking_number=command.tracking_number,
            tracking_provider=command.tracking_provider,
            tracking_unavailable=bool(command.tracking_unavailable),
        )
        repo.add(order)
        return str(order.id)

    @handle(MarkDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_delivered()
        repo.add(order)
        return str(order.id)

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(
            reason=command.reason,
            cancelled_by=command.cancelled_by,
        )
        repo.add(order)
        return str(order.id)

    @handle(OverrideOrderStatus)
    def override_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous_status = order.order_status
        order.override_status(
            target_status=command.target_status,
            actor=command.actor,
            reason=command.reason,
        )
        repo.add(order)

        if previous_status != order.order_status:
            logger.warning(
                "Order status overridden",
                order_id=str(order.id),
                previous_status=previous_status,
                new_status=order.order_status,
                actor=command.actor,
                reason=command.reason,
            )
        return str(order.id)

    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_payment_status(
            command.payment_status,
            reference=command.payment_reference,
            reason=command.reason,
        )
        repo.add(order)
        return str(order.id)
