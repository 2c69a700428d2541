"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- PayUGateway for the hosted PayU checkout (GATEWAY_ADAPTER=payu)
"""

import os

from ordering.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("GATEWAY_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.gateway.fake_adapter import FakeGateway

            _current_gateway = FakeGateway()
        elif adapter == "payu":
            from ordering.gateway.payu_adapter import PayUGateway

            _current_gateway = PayUGateway.from_env()
        else:
            raise ValueError(f"Unknown payment gateway adapter: {adapter}")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
