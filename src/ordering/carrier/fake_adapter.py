"""Fake carrier adapter — deterministic carrier for testing and development."""

from uuid import uuid4

from ordering.carrier.port import CarrierPort, PickupResult


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.pickups: list[str] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def request_pickup(self, order_id: str) -> PickupResult:
        self.pickups.append(str(order_id))
        if not self.should_succeed:
            return PickupResult(success=False, failure_reason=self.failure_reason)
        return PickupResult(success=True, reference=f"PICKUP-{uuid4().hex[:10].upper()}")
