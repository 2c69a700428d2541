"""Carrier port — abstract interface for shipping provider integrations.

Ordering only ever asks the provider to pick a confirmed order up (which
also generates its label). The response is informational: tracking numbers
reach the order through the MarkShipped command.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PickupResult:
    """Outcome of a pickup / label request."""

    success: bool
    reference: str | None = None
    failure_reason: str | None = None


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def request_pickup(self, order_id: str) -> PickupResult:
        """Ask the shipping provider to collect the order and print its label."""
        ...
