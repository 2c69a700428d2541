"""Cart management — commands and handler.

Handles cart creation (one cart per customer), coupon codes, and clearing.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class CreateCart:
    """Create the customer's cart, or return the one they already have."""

    customer_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ApplyCouponToCart:
    cart_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@ordering.command(part_of="ShoppingCart")
class RemoveCouponFromCart:
    cart_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    cart_id = Identifier(required=True)
    order_id = Identifier()


@ordering.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        existing = repo._dao.query.filter(customer_id=str(command.customer_id)).all().items
        if existing:
            return str(existing[0].id)

        cart = ShoppingCart.create(customer_id=command.customer_id)
        repo.add(cart)
        return str(cart.id)

    @handle(ApplyCouponToCart)
    def apply_coupon(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.apply_coupon(coupon_code=command.coupon_code)
        repo.add(cart)

    @handle(RemoveCouponFromCart)
    def remove_coupon(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_coupon()
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.clear(order_id=command.order_id)
        repo.add(cart)
