"""HTTP carrier adapter — talks to the shipping provider's REST API with httpx.

Requests are bounded by SHIPPING_API_TIMEOUT (seconds, default 10) so a slow
provider never holds up the order transition that triggered the pickup.
"""

import os

import httpx
import structlog

from ordering.carrier.port import CarrierPort, PickupResult

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class HttpCarrier(CarrierPort):
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "HttpCarrier":
        base_url = os.environ.get("SHIPPING_API_URL")
        if not base_url:
            raise ValueError("SHIPPING_API_URL must be set when CARRIER_ADAPTER=http")
        return cls(
            base_url=base_url,
            token=os.environ.get("SHIPPING_API_TOKEN"),
            timeout=float(os.environ.get("SHIPPING_API_TIMEOUT", DEFAULT_TIMEOUT)),
        )

    def request_pickup(self, order_id: str) -> PickupResult:
        try:
            response = self._client.post("/orders/pickup", json={"order_id": str(order_id)})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Pickup request failed", order_id=str(order_id), error=str(exc))
            return PickupResult(success=False, failure_reason=str(exc))

        reference = None
        if response.headers.get("content-type", "").startswith("application/json"):
            reference = response.json().get("reference")
        logger.info(
            "Pickup requested",
            order_id=str(order_id),
            status_code=response.status_code,
            reference=reference,
        )
        return PickupResult(success=True, reference=reference)

    def close(self) -> None:
        self._client.close()
