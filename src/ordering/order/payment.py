"""Order payment — commands and handler.

Online orders are paid through a hosted gateway redirect. Each attempt gets
a new transaction id; a failed payment keeps the order open for another
attempt or for switching to cash on delivery.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.gateway.adapter import PaymentGatewayAdapter
from ordering.order.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class InitiateGatewayPayment:
    """Prepare a (new) hosted-gateway redirect for an online order."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class ProcessGatewayCallback:
    """Browser callback from the gateway. Parameters are untrusted until verified."""

    order_id = String(max_length=255)
    status = String(max_length=20)
    message = String(max_length=1000)
    payment_status = String(max_length=50)
    reference = String(max_length=255)
    verification_code = String(max_length=255)


@ordering.command(part_of="Order")
class SwitchToCashOnDelivery:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class GatewayPaymentHandler:
    @handle(InitiateGatewayPayment)
    def initiate_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        payload = PaymentGatewayAdapter().initiate(order)
        order.start_payment_transaction(
            txn_id=payload.txnid,
            amount=order.total_amount,
            gateway_hash=payload.hash,
        )
        repo.add(order)
        return payload

    @handle(ProcessGatewayCallback)
    def process_callback(self, command):
        verdict = PaymentGatewayAdapter().verify_callback(
            {
                "order_id": command.order_id,
                "status": command.status,
                "message": command.message,
                "payment_status": command.payment_status,
                "verification_code": command.verification_code,
            }
        )
        if verdict.outcome == "pending":
            logger.info("Payment still pending at gateway", order_id=verdict.order_id, txn_id=verdict.txn_id)
            return verdict

        repo = current_domain.repository_for(Order)
        order = repo.get(verdict.order_id)

        if verdict.outcome == "success":
            order.record_payment_success(payment_reference=command.reference or verdict.txn_id)
        elif order.payment_status == PaymentStatus.PAID.value or not order.is_online:
            # A late failure report never undoes a payment or a switch to cash on delivery
            logger.warning(
                "Ignoring stale failed callback",
                order_id=verdict.order_id,
                payment_status=order.payment_status,
                payment_method=order.payment_method,
            )
            return verdict
        else:
            order.record_payment_failure(reason=verdict.message or command.payment_status)

        repo.add(order)
        logger.info(
            "Payment callback applied",
            order_id=verdict.order_id,
            outcome=verdict.outcome,
            payment_status=order.payment_status,
        )
        return verdict

    @handle(SwitchToCashOnDelivery)
    def switch_to_cash_on_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.switch_to_cash_on_delivery()
        repo.add(order)
        return str(order.id)
