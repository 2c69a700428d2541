"""Order side effects — best-effort reactions to order events.

None of these may fail the order transition that triggered them: every
collaborator error is logged and dropped. A failed carrier pickup is kept
as a PickupRequest and retried by the ProcessDuePickups sweep.

- OrderPlaced with a campaign → bump the campaign's advisory order counter
- OrderConfirmed → request pickup / label from the carrier, clear the cart
- OrderCancelled with release_inventory → release committed stock
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.inventory import get_inventory
from ordering.order.events import OrderCancelled, OrderConfirmed, OrderPlaced
from ordering.order.order import Order
from ordering.pickup.retry import request_pickup_for
from ordering.promotion.campaign import SalesCampaign

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Order)
class OrderSideEffectsHandler:
    @handle(OrderPlaced)
    def increment_campaign_counter(self, event: OrderPlaced) -> None:
        if not event.campaign_id:
            return
        try:
            repo = current_domain.repository_for(SalesCampaign)
            campaign = repo.get(str(event.campaign_id))
            campaign.record_order()
            repo.add(campaign)
        except Exception as exc:
            logger.error(
                "Failed to increment campaign order counter",
                order_id=str(event.order_id),
                campaign_id=str(event.campaign_id),
                error=str(exc),
            )

    @handle(OrderConfirmed)
    def on_order_confirmed(self, event: OrderConfirmed) -> None:
        self._request_pickup(event)
        self._clear_cart(event)

    def _request_pickup(self, event: OrderConfirmed) -> None:
        try:
            request_pickup_for(str(event.order_id))
        except Exception as exc:
            logger.error("Failed to record carrier pickup request", order_id=str(event.order_id), error=str(exc))

    def _clear_cart(self, event: OrderConfirmed) -> None:
        if not event.cart_id:
            return
        try:
            repo = current_domain.repository_for(ShoppingCart)
            cart = repo.get(str(event.cart_id))
            cart.clear(order_id=str(event.order_id))
            repo.add(cart)
        except Exception as exc:
            logger.error(
                "Failed to clear cart after confirmation",
                order_id=str(event.order_id),
                cart_id=str(event.cart_id),
                error=str(exc),
            )

    @handle(OrderCancelled)
    def release_inventory(self, event: OrderCancelled) -> None:
        if not event.release_inventory:
            return
        try:
            get_inventory().release(str(event.order_id))
            logger.info("Inventory released for cancelled order", order_id=str(event.order_id))
        except Exception as exc:
            logger.error("Failed to release inventory", order_id=str(event.order_id), error=str(exc))
