"""Application tests for the checkout orchestrator."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.cart.cart import ShoppingCart
from ordering.checkout.service import ZERO_AMOUNT_REFERENCE, CheckoutService
from ordering.gateway import get_gateway, set_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentInitiationError
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.pricing.discount import Cart, CartLine
from ordering.promotion.campaign import SalesCampaign
from ordering.promotion.coupon import Coupon
from protean import current_domain
from protean.exceptions import ValidationError


def _cart(coupon_code=None, cart_id=None, unit_price=500.0, quantity=2):
    return Cart(
        lines=(CartLine(product_id="prod-001", name="Brass Lamp", unit_price=unit_price, quantity=quantity),),
        coupon_code=coupon_code,
        cart_id=cart_id,
    )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.fixture()
def save10():
    coupon = Coupon.create(code="SAVE10", discount_type="percentage", discount_value=10)
    current_domain.repository_for(Coupon).add(coupon)
    return coupon


@pytest.fixture()
def flat150():
    campaign = SalesCampaign.create(
        name="Flat 150",
        discount_type="fixed",
        discount_value=150.0,
        start_date=datetime.now(UTC) - timedelta(days=1),
    )
    current_domain.repository_for(SalesCampaign).add(campaign)
    return campaign


class TestCashCheckout:
    def test_cash_order_is_confirmed_immediately(self, shipping):
        result = CheckoutService().submit("cust-001", _cart(), shipping, "cash_on_delivery")

        order = _order(result.order_id)
        assert result.redirect is None
        assert result.total_amount == 1000.0
        assert order.order_status == OrderStatus.CONFIRMED.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.shipping_address == "12B, Lake View Colony, Near City Park, Pune, Maharashtra - 411001"
        assert order.contact.phone == "9876543210"

    def test_discounts_are_frozen_on_the_order(self, shipping, save10, flat150):
        result = CheckoutService().submit("cust-001", _cart(coupon_code="save10"), shipping, "cash_on_delivery")

        order = _order(result.order_id)
        assert order.subtotal == 1000.0
        assert order.coupon_code == "SAVE10"
        assert order.coupon_discount == 100.0
        assert order.campaign_id == str(flat150.id)
        assert order.campaign_discount == 150.0
        assert order.total_amount == 750.0

    def test_campaign_counter_incremented(self, shipping, flat150):
        CheckoutService().submit("cust-001", _cart(), shipping, "cash_on_delivery")
        campaign = current_domain.repository_for(SalesCampaign).get(flat150.id)
        assert campaign.current_orders == 1


class TestOnlineCheckout:
    def test_online_order_gets_signed_redirect(self, shipping):
        result = CheckoutService().submit("cust-001", _cart(), shipping, "online_gateway")

        order = _order(result.order_id)
        assert result.redirect is not None
        assert result.redirect.amount == "1000.00"
        assert result.redirect.udf1 == result.order_id
        assert result.redirect.productinfo == "Brass Lamp"
        assert result.redirect.txnid.startswith("TXN")
        assert order.payment_status == PaymentStatus.AWAITING.value
        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_transaction.txn_id == result.redirect.txnid

    def test_unavailable_gateway_rejects_before_persisting(self, shipping):
        get_gateway().configure(available=False)

        with pytest.raises(PaymentInitiationError):
            CheckoutService().submit("cust-001", _cart(), shipping, "online_gateway")

        assert current_domain.event_store.store.read("ordering::order") == []

    def test_readiness_and_redirect_use_the_same_gateway(self, shipping):
        gateway = FakeGateway()
        gateway.action_url = "https://pay.example.com/_payment"
        set_gateway(gateway)

        result = CheckoutService().submit("cust-001", _cart(), shipping, "online_gateway")

        assert result.redirect.action_url == "https://pay.example.com/_payment"

        gateway.configure(available=False)
        with pytest.raises(PaymentInitiationError):
            CheckoutService().submit("cust-001", _cart(), shipping, "online_gateway")

    def test_zero_total_bypasses_gateway(self, shipping):
        coupon = Coupon.create(code="FREE", discount_type="percentage", discount_value=100)
        current_domain.repository_for(Coupon).add(coupon)

        result = CheckoutService().submit("cust-001", _cart(coupon_code="FREE"), shipping, "online_gateway")

        order = _order(result.order_id)
        assert result.redirect is None
        assert result.total_amount == 0.0
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.order_status == OrderStatus.CONFIRMED.value
        assert order.payment_reference == ZERO_AMOUNT_REFERENCE


class TestCheckoutValidation:
    def test_requires_customer(self, shipping):
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit(None, _cart(), shipping, "cash_on_delivery")
        assert "customer_id" in exc.value.messages

    def test_empty_cart(self, shipping):
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit("cust-001", Cart(), shipping, "cash_on_delivery")
        assert "cart" in exc.value.messages

    def test_invalid_shipping(self, shipping):
        shipping["pincode"] = "12"
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit("cust-001", _cart(), shipping, "cash_on_delivery")
        assert "pincode" in exc.value.messages

    def test_unknown_payment_method(self, shipping):
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit("cust-001", _cart(), shipping, "barter")
        assert "payment_method" in exc.value.messages

    def test_invalid_coupon(self, shipping):
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit("cust-001", _cart(coupon_code="GHOST"), shipping, "cash_on_delivery")
        assert exc.value.messages["coupon_code"] == ["Invalid coupon code"]

    def test_nothing_persisted_on_validation_failure(self, shipping):
        with pytest.raises(ValidationError):
            CheckoutService().submit("cust-001", _cart(coupon_code="GHOST"), shipping, "cash_on_delivery")
        assert current_domain.event_store.store.read("ordering::order") == []


class TestPersistedCartCheckout:
    def test_submit_cart_clears_cart_after_confirmation(self, shipping):
        repo = current_domain.repository_for(ShoppingCart)
        cart = ShoppingCart.create(customer_id="cust-001")
        cart.add_item(product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=2)
        repo.add(cart)

        result = CheckoutService().submit_cart(cart.id, "cust-001", shipping, "cash_on_delivery")

        assert _order(result.order_id).cart_id == str(cart.id)
        assert repo.get(cart.id).items == []

    def test_cart_of_another_customer(self, shipping):
        repo = current_domain.repository_for(ShoppingCart)
        cart = ShoppingCart.create(customer_id="someone-else")
        cart.add_item(product_id="prod-001", name="Brass Lamp", unit_price=500.0)
        repo.add(cart)

        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit_cart(cart.id, "cust-001", shipping, "cash_on_delivery")
        assert "cart_id" in exc.value.messages

    def test_missing_cart(self, shipping):
        with pytest.raises(ValidationError) as exc:
            CheckoutService().submit_cart("nope", "cust-001", shipping, "cash_on_delivery")
        assert "cart_id" in exc.value.messages
