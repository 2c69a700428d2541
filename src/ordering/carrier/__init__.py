"""Shipping carrier adapter — pluggable pickup / label requests."""

import os

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default. Set CARRIER_ADAPTER=http to call the
    shipping provider's API at SHIPPING_API_URL.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "http":
            from ordering.carrier.http_adapter import HttpCarrier

            _carrier_instance = HttpCarrier.from_env()
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier) -> None:
    """Override the active carrier adapter (useful for tests)."""
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
