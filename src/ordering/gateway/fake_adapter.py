"""Configurable fake payment gateway for development and testing.

Signs with PayU's hash layout and a fixed test salt, so the whole redirect
and callback round trip can be exercised without merchant credentials.
"""

from ordering.gateway.payu_adapter import request_hash, response_hash
from ordering.gateway.port import PaymentGateway

FAKE_MERCHANT_KEY = "fake-key"
FAKE_MERCHANT_SALT = "fake-salt"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.merchant_key = FAKE_MERCHANT_KEY
        self.action_url = "http://localhost:8000/fake-gateway/_payment"
        self.available: bool = True
        self.calls: list[dict] = []

    def configure(self, available: bool = True) -> None:
        """Configure gateway behavior at runtime."""
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def sign_payment_request(self, fields: dict) -> str:
        self.calls.append({"method": "sign_payment_request", **fields})
        return request_hash(fields, FAKE_MERCHANT_SALT)

    def response_hash_for(self, fields: dict) -> str:
        """Hash the fake gateway would attach to a response (for tests)."""
        return response_hash(fields, FAKE_MERCHANT_SALT)

    def verify_response(self, fields: dict) -> bool:
        return fields.get("hash") == self.response_hash_for(fields)

    def _callback_secret(self) -> str:
        return FAKE_MERCHANT_SALT
