"""Fake inventory adapter — records releases for tests and development."""

from ordering.inventory.port import InventoryPort


class FakeInventory(InventoryPort):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Inventory service unavailable"
        self.released: list[str] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Inventory service unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def release(self, order_id: str) -> None:
        if not self.should_succeed:
            raise RuntimeError(self.failure_reason)
        self.released.append(str(order_id))
