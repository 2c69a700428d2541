"""Best-effort reactions to order events: carrier pickup, cart clearing, stock release, campaign counter."""

from datetime import UTC, datetime, timedelta

from ordering.carrier import get_carrier, set_carrier
from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.inventory import get_inventory
from ordering.order.order import Order, OrderStatus
from ordering.order.transitions import CancelOrder, ConfirmOrder, MarkProcessing
from ordering.pickup.pickup import PickupRequest, PickupStatus
from ordering.pickup.retry import ProcessDuePickups
from ordering.promotion.campaign import SalesCampaign
from protean import current_domain


def _confirm(order_id):
    current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)


def _cancel(order_id):
    current_domain.process(
        CancelOrder(order_id=order_id, reason="Out of stock", cancelled_by="admin"),
        asynchronous=False,
    )


def _pickup(order_id):
    return current_domain.repository_for(PickupRequest)._dao.query.filter(order_id=order_id).all().items[0]


def _sweep(as_of):
    return current_domain.process(ProcessDuePickups(as_of=as_of), asynchronous=False)


def _persisted_cart():
    cart = ShoppingCart.create(customer_id="cust-001")
    cart.add_item(product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=2)
    current_domain.repository_for(ShoppingCart).add(cart)
    return str(cart.id)


class TestCarrierPickup:
    def test_confirmation_requests_pickup(self, place_order):
        order_id = place_order()
        _confirm(order_id)
        assert get_carrier().pickups == [order_id]

    def test_pickup_requested_once_per_confirmation(self, place_order):
        order_id = place_order()
        _confirm(order_id)
        _confirm(order_id)
        assert get_carrier().pickups == [order_id]

    def test_carrier_failure_does_not_block_confirmation(self, place_order):
        get_carrier().configure(should_succeed=False, failure_reason="API down")
        order_id = place_order()

        _confirm(order_id)

        assert current_domain.repository_for(Order).get(order_id).order_status == OrderStatus.CONFIRMED.value

    def test_successful_pickup_is_recorded(self, place_order):
        order_id = place_order()
        _confirm(order_id)

        pickup = _pickup(order_id)
        assert pickup.status == PickupStatus.REQUESTED.value
        assert pickup.reference.startswith("PICKUP-")
        assert pickup.attempts == 1


class TestPickupRetry:
    def test_failed_pickup_is_kept_for_retry(self, place_order):
        get_carrier().configure(should_succeed=False, failure_reason="Request timed out")
        order_id = place_order()

        _confirm(order_id)

        pickup = _pickup(order_id)
        assert pickup.status == PickupStatus.FAILED.value
        assert pickup.last_error == "Request timed out"
        assert pickup.next_attempt_at is not None

    def test_sweep_retries_once_the_carrier_recovers(self, place_order):
        get_carrier().configure(should_succeed=False)
        order_id = place_order()
        _confirm(order_id)
        get_carrier().configure(should_succeed=True)

        assert _sweep(datetime.now(UTC)) == 0
        assert _sweep(datetime.now(UTC) + timedelta(minutes=2)) == 1

        pickup = _pickup(order_id)
        assert pickup.status == PickupStatus.REQUESTED.value
        assert pickup.attempts == 2
        assert get_carrier().pickups == [order_id, order_id]

    def test_sweep_skips_requested_pickups(self, place_order):
        order_id = place_order()
        _confirm(order_id)

        assert _sweep(datetime.now(UTC) + timedelta(hours=1)) == 0
        assert get_carrier().pickups == [order_id]

    def test_carrier_exception_is_recorded_as_failure(self, place_order):
        class BrokenCarrier:
            def request_pickup(self, order_id):
                raise TimeoutError("read timed out")

        set_carrier(BrokenCarrier())
        order_id = place_order()

        _confirm(order_id)

        assert _pickup(order_id).last_error == "read timed out"
        assert current_domain.repository_for(Order).get(order_id).order_status == OrderStatus.CONFIRMED.value


class TestCartClearing:
    def test_cart_cleared_on_confirmation(self, place_order):
        cart_id = _persisted_cart()
        order_id = place_order(cart_id=cart_id)

        _confirm(order_id)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.items == []
        assert cart.status == CartStatus.CLEARED.value

    def test_cart_kept_while_order_is_pending(self, place_order):
        cart_id = _persisted_cart()
        place_order(payment_method="online_gateway", cart_id=cart_id)

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert len(cart.items) == 1

    def test_missing_cart_is_ignored(self, place_order):
        order_id = place_order(cart_id="gone")
        _confirm(order_id)
        assert current_domain.repository_for(Order).get(order_id).order_status == OrderStatus.CONFIRMED.value


class TestInventoryRelease:
    def test_cancelling_confirmed_order_releases_stock(self, place_order):
        order_id = place_order()
        _confirm(order_id)
        _cancel(order_id)
        assert get_inventory().released == [order_id]

    def test_cancelling_processing_order_releases_stock(self, place_order):
        order_id = place_order()
        _confirm(order_id)
        current_domain.process(MarkProcessing(order_id=order_id), asynchronous=False)
        _cancel(order_id)
        assert get_inventory().released == [order_id]

    def test_cancelling_pending_order_releases_nothing(self, place_order):
        order_id = place_order()
        _cancel(order_id)
        assert get_inventory().released == []

    def test_repeated_cancel_releases_once(self, place_order):
        order_id = place_order()
        _confirm(order_id)
        _cancel(order_id)
        _cancel(order_id)
        assert get_inventory().released == [order_id]

    def test_inventory_failure_does_not_block_cancellation(self, place_order):
        get_inventory().configure(should_succeed=False)
        order_id = place_order()
        _confirm(order_id)

        _cancel(order_id)

        assert current_domain.repository_for(Order).get(order_id).order_status == OrderStatus.CANCELLED.value


class TestCampaignCounter:
    def test_order_with_campaign_bumps_counter(self, place_order):
        campaign = SalesCampaign.create(
            name="Diwali",
            discount_type="percentage",
            discount_value=10,
            start_date=datetime.now(UTC) - timedelta(days=1),
        )
        repo = current_domain.repository_for(SalesCampaign)
        repo.add(campaign)

        place_order(campaign_id=str(campaign.id), campaign_discount=100.0, total_amount=900.0)
        place_order(campaign_id=str(campaign.id), campaign_discount=100.0, total_amount=900.0)

        assert repo.get(campaign.id).current_orders == 2

    def test_unknown_campaign_does_not_block_order(self, place_order):
        order_id = place_order(campaign_id="missing", campaign_discount=50.0, total_amount=950.0)
        assert current_domain.repository_for(Order).get(order_id).campaign_id == "missing"
