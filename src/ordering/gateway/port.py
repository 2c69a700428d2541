"""Payment gateway port (abstract interface).

The engine never computes gateway hashes itself: signing is delegated to the
configured adapter, and the resulting values are opaque. This enables
swapping between FakeGateway (dev/test) and PayUGateway (production)
without changing any domain or application code.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass


class PaymentInitiationError(Exception):
    """The redirect payload could not be produced (gateway not configured or unreachable)."""


class InvalidPaymentAmount(PaymentInitiationError):
    """The order amount cannot be sent to the gateway."""


class CallbackIntegrityError(Exception):
    """A payment callback could not be matched to an order or failed verification."""


@dataclass(frozen=True)
class RedirectPayload:
    """Form fields the browser POSTs to the hosted gateway page."""

    action_url: str
    key: str
    txnid: str
    amount: str
    productinfo: str
    firstname: str
    email: str
    phone: str
    surl: str
    furl: str
    udf1: str
    hash: str

    def form_fields(self) -> dict:
        fields = asdict(self)
        fields.pop("action_url")
        return fields

    def as_dict(self) -> dict:
        return {"action_url": self.action_url, "fields": self.form_fields()}


@dataclass(frozen=True)
class CallbackVerdict:
    """A verified payment callback, ready to be applied to the order."""

    order_id: str
    outcome: str  # success | failed | pending
    txn_id: str | None = None
    message: str | None = None


def callback_code(secret: str, order_id: str, status: str, txn_id: str | None) -> str:
    """HMAC-SHA256 over `order_id|status|txnid`, hex encoded."""
    message = f"{order_id}|{status}|{txn_id or ''}"
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    action_url: str
    merchant_key: str

    @abstractmethod
    def is_available(self) -> bool:
        """True when the gateway has the credentials it needs to take payments."""
        ...

    @abstractmethod
    def sign_payment_request(self, fields: dict) -> str:
        """Return the request hash for the redirect form fields."""
        ...

    @abstractmethod
    def verify_response(self, fields: dict) -> bool:
        """Check the hash the gateway attached to its POSTed response."""
        ...

    @abstractmethod
    def _callback_secret(self) -> str: ...

    def sign_callback(self, order_id: str, status: str, txn_id: str | None) -> str:
        """Verification code attached to the browser redirect back to /checkout/callback."""
        return callback_code(self._callback_secret(), str(order_id), status, txn_id)

    def verify_callback_code(self, order_id: str, status: str, txn_id: str | None, code: str | None) -> bool:
        if not code:
            return False
        expected = self.sign_callback(order_id, status, txn_id)
        return hmac.compare_digest(expected, code)
