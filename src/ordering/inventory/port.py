"""Inventory port — the compensation Ordering needs from stock management."""

from abc import ABC, abstractmethod


class InventoryPort(ABC):
    @abstractmethod
    def release(self, order_id: str) -> None:
        """Return every unit reserved for `order_id` to available stock."""
        ...
