import pytest
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ApplyCouponToCart, ClearCart, CreateCart, RemoveCouponFromCart
from protean import current_domain
from protean.exceptions import ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _cart(cart_id):
    return current_domain.repository_for(ShoppingCart).get(cart_id)


@pytest.fixture()
def cart_id():
    return _process(CreateCart(customer_id="cust-001"))


class TestCartCommands:
    def test_one_cart_per_customer(self, cart_id):
        assert _process(CreateCart(customer_id="cust-001")) == cart_id
        assert _process(CreateCart(customer_id="cust-002")) != cart_id

    def test_add_update_remove(self, cart_id):
        _process(AddToCart(cart_id=cart_id, product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=1))
        item_id = str(_cart(cart_id).items[0].id)

        _process(UpdateCartQuantity(cart_id=cart_id, item_id=item_id, new_quantity=3))
        assert _cart(cart_id).snapshot().subtotal == 1500.0

        _process(RemoveFromCart(cart_id=cart_id, item_id=item_id))
        assert _cart(cart_id).items == []

    def test_adding_same_product_merges_quantity(self, cart_id):
        for _ in range(2):
            _process(AddToCart(cart_id=cart_id, product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=1))

        cart = _cart(cart_id)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_zero_quantity_is_rejected(self, cart_id):
        with pytest.raises(ValidationError):
            _process(AddToCart(cart_id=cart_id, product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=0))

    def test_coupon_round_trip(self, cart_id):
        _process(ApplyCouponToCart(cart_id=cart_id, coupon_code="save10"))
        assert _cart(cart_id).coupon_code == "SAVE10"

        _process(RemoveCouponFromCart(cart_id=cart_id))
        assert _cart(cart_id).coupon_code is None

    def test_clear_cart(self, cart_id):
        _process(AddToCart(cart_id=cart_id, product_id="prod-001", name="Brass Lamp", unit_price=500.0, quantity=1))
        _process(ApplyCouponToCart(cart_id=cart_id, coupon_code="SAVE10"))

        _process(ClearCart(cart_id=cart_id))

        cart = _cart(cart_id)
        assert cart.items == []
        assert cart.coupon_code is None
