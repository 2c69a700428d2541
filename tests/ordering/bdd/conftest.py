"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.checkout.service import CheckoutService
from ordering.order.order import Order
from ordering.pricing.discount import Cart, CartLine
from protean import current_domain
from pytest_bdd import given, parsers, then, when

CUSTOMER_ID = "cust-bdd-001"


@pytest.fixture()
def context():
    """Mutable scenario state shared between steps."""
    return {}


def current_order(context) -> Order:
    return current_domain.repository_for(Order).get(context["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a cart with "{name}" at {unit_price:g} x {quantity:d}'))
def _(context, name, unit_price, quantity):
    context["lines"] = (CartLine(product_id="prod-001", name=name, unit_price=unit_price, quantity=quantity),)


@given(parsers.cfparse('a saved cart with "{name}" at {unit_price:g} x {quantity:d}'))
def _(context, name, unit_price, quantity):
    cart = ShoppingCart.create(customer_id=CUSTOMER_ID)
    cart.add_item(product_id="prod-001", name=name, unit_price=unit_price, quantity=quantity)
    current_domain.repository_for(ShoppingCart).add(cart)
    context["cart_id"] = str(cart.id)


@given(parsers.cfparse('the customer checks out paying "{payment_method}"'))
@when(parsers.cfparse('the customer checks out paying "{payment_method}"'))
def _(context, shipping, payment_method):
    if "cart_id" in context:
        result = CheckoutService().submit_cart(context["cart_id"], CUSTOMER_ID, shipping, payment_method)
    else:
        result = CheckoutService().submit(CUSTOMER_ID, Cart(lines=context["lines"]), shipping, payment_method)
    context["result"] = result
    context["order_id"] = result.order_id


@when(parsers.cfparse('the customer checks out with coupon "{code}" paying "{payment_method}"'))
def _(context, shipping, code, payment_method):
    cart = Cart(lines=context["lines"], coupon_code=code)
    result = CheckoutService().submit(CUSTOMER_ID, cart, shipping, payment_method)
    context["result"] = result
    context["order_id"] = result.order_id


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def _(context, status):
    assert current_order(context).order_status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(context, status):
    assert current_order(context).payment_status == status


@then("the cart is cleared")
def _(context):
    cart = current_domain.repository_for(ShoppingCart).get(context["cart_id"])
    assert cart.status == CartStatus.CLEARED.value
    assert cart.items == []


@given("the cart still holds its items")
@then("the cart still holds its items")
def _(context):
    cart = current_domain.repository_for(ShoppingCart).get(context["cart_id"])
    assert cart.status == CartStatus.ACTIVE.value
    assert len(cart.items) == 1
