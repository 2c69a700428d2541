"""Payment Gateway Adapter — builds hosted-checkout redirects and verifies callbacks.

Two inbound paths end at the same place:

1. The gateway POSTs its signed response to /checkout/gateway-return.
   `translate_gateway_response` checks the gateway hash and turns it into a
   browser redirect to /checkout/callback carrying our own verification code.
2. /checkout/callback hands the query parameters to `verify_callback`, which
   matches them to an order and checks the verification code against the
   order's current transaction id.

A callback for a transaction that has since been superseded by a retry no
longer verifies, because the code covers the transaction id.
"""

import os
import secrets
import string
import time
from decimal import Decimal, InvalidOperation

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.gateway import get_gateway
from ordering.gateway.port import (
    CallbackIntegrityError,
    CallbackVerdict,
    InvalidPaymentAmount,
    PaymentGateway,
    PaymentInitiationError,
    RedirectPayload,
)
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

DEFAULT_CALLBACK_URL = "http://localhost:8000/checkout/callback"
PRODUCT_INFO_MAX_LENGTH = 100

CALLBACK_OUTCOMES = ("success", "failed", "pending")

# Gateway response statuses → callback outcomes
_GATEWAY_STATUS_MAP = {
    "success": "success",
    "failure": "failed",
    "failed": "failed",
    "pending": "pending",
}

_TXN_ALPHABET = string.ascii_uppercase + string.digits


def generate_txn_id() -> str:
    """TXN<epoch-ms><6 upper-case alphanumerics>; unique per redirect attempt."""
    suffix = "".join(secrets.choice(_TXN_ALPHABET) for _ in range(6))
    return f"TXN{int(time.time() * 1000)}{suffix}"


def format_amount(amount) -> str:
    """Two-decimal string as the gateway expects it, e.g. ``"750.00"``."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise InvalidPaymentAmount(f"Invalid payment amount: {amount!r}") from None
    if not value.is_finite() or value <= 0:
        raise InvalidPaymentAmount(f"Invalid payment amount: {amount!r}")
    return f"{value.quantize(Decimal('0.01')):.2f}"


def product_info(order) -> str:
    names = ", ".join(item.name for item in order.items or [])
    return names[:PRODUCT_INFO_MAX_LENGTH] if names else f"Order {order.id}"


class PaymentGatewayAdapter:
    def __init__(self, gateway: PaymentGateway | None = None) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    def ensure_ready(self, amount) -> str:
        """Fail before anything is persisted if the payment cannot be started."""
        formatted = format_amount(amount)
        if not self.gateway.is_available():
            raise PaymentInitiationError("Online payment is currently unavailable")
        return formatted

    def initiate(self, order) -> RedirectPayload:
        """Build the signed redirect payload for a new payment attempt."""
        amount = self.ensure_ready(order.total_amount)
        gateway = self.gateway
        contact = order.contact

        fields = {
            "key": gateway.merchant_key,
            "txnid": generate_txn_id(),
            "amount": amount,
            "productinfo": product_info(order),
            "firstname": contact.name if contact else "",
            "email": (contact.email if contact else None) or "",
            "phone": contact.phone if contact else "",
            "surl": os.environ.get("PAYMENT_SUCCESS_URL", DEFAULT_CALLBACK_URL),
            "furl": os.environ.get("PAYMENT_FAILURE_URL", DEFAULT_CALLBACK_URL),
            "udf1": str(order.id),
        }
        fields["hash"] = gateway.sign_payment_request(fields)

        logger.info(
            "Payment redirect prepared",
            order_id=str(order.id),
            txn_id=fields["txnid"],
            amount=amount,
        )
        return RedirectPayload(action_url=gateway.action_url, **fields)

    def translate_gateway_response(self, fields: dict) -> dict:
        """Turn the gateway's signed POST into query parameters for /checkout/callback."""
        gateway = self.gateway
        if not gateway.verify_response(fields):
            logger.error("Gateway response hash mismatch", txn_id=fields.get("txnid"), order_id=fields.get("udf1"))
            raise CallbackIntegrityError("Gateway response could not be verified")

        order_id = fields.get("udf1") or ""
        outcome = _GATEWAY_STATUS_MAP.get((fields.get("status") or "").lower(), "failed")
        return {
            "status": outcome,
            "order_id": order_id,
            "message": fields.get("error_Message") or fields.get("field9") or "",
            "payment_status": fields.get("unmappedstatus") or fields.get("status") or "",
            "reference": fields.get("mihpayid") or "",
            "verification_code": gateway.sign_callback(order_id, outcome, fields.get("txnid")),
        }

    def verify_callback(self, params: dict) -> CallbackVerdict:
        """Match a callback to its order and check its verification code. Never mutates."""
        order_id = params.get("order_id")
        outcome = (params.get("status") or "").lower()
        if not outcome and (params.get("payment_status") or "").lower() == "pending":
            # The gateway is still settling; the browser only carries a holding signal
            outcome = "pending"

        if outcome not in CALLBACK_OUTCOMES:
            logger.error("Payment callback with unknown status", order_id=order_id, status=outcome)
            raise CallbackIntegrityError(f"Unknown callback status: {outcome!r}")
        if not order_id:
            logger.error("Payment callback without order id", status=outcome)
            raise CallbackIntegrityError("Callback does not reference an order")

        try:
            order = current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            logger.error("Payment callback for unknown order", order_id=order_id, status=outcome)
            raise CallbackIntegrityError(f"Unknown order: {order_id}") from None

        txn_id = order.payment_transaction.txn_id if order.payment_transaction else None
        message = params.get("message") or None

        if outcome != "pending" and not self.gateway.verify_callback_code(
            str(order.id), outcome, txn_id, params.get("verification_code")
        ):
            logger.error(
                "Payment callback verification failed",
                order_id=order_id,
                status=outcome,
                txn_id=txn_id,
            )
            raise CallbackIntegrityError("Callback verification failed")

        return CallbackVerdict(order_id=str(order.id), outcome=outcome, txn_id=txn_id, message=message)
