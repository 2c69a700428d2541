"""Shopping Cart aggregate (CQRS) — the customer's persisted cart.

Lines carry name, price and category snapshots taken from the catalogue when
the product was added. The checkout never reads the aggregate directly: it
works on the immutable `Cart` produced by `snapshot()`. Once an order placed
from the cart is confirmed, the cart is cleared so it can be reused.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCleared,
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from ordering.pricing.discount import Cart, CartLine
from ordering.promotion.coupon import normalize_code


class CartStatus(Enum):
    ACTIVE = "active"
    CLEARED = "cleared"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100)
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    coupon_code = String(max_length=50)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()
    cleared_at = DateTime()

    @invariant.post
    def product_appears_once(self):
        product_ids = [str(i.product_id) for i in self.items or []]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can only appear once in the cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, unit_price, quantity=1, category=None):
        """Add a product (or increase its quantity if already present)."""
        existing = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                category=category,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now
        self.status = CartStatus.ACTIVE.value

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                quantity=quantity,
            )
        )

    def update_item_quantity(self, item_id, new_quantity):
        item = self._item(item_id)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._item(item_id)

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def _item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Coupon
    # -------------------------------------------------------------------
    def apply_coupon(self, coupon_code):
        """Remember a coupon code; it is validated when the cart is priced at checkout."""
        code = normalize_code(coupon_code)
        if not code:
            raise ValidationError({"coupon_code": ["Coupon code is required"]})

        self.coupon_code = code
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCouponApplied(cart_id=str(self.id), coupon_code=code))

    def remove_coupon(self):
        if not self.coupon_code:
            return
        self.coupon_code = None
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCouponRemoved(cart_id=str(self.id)))

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def clear(self, order_id=None):
        """Empty the cart after an order placed from it was confirmed. Clearing twice is a no-op."""
        if not self.items and not self.coupon_code:
            return

        for item in list(self.items):
            self.remove_items(item)
        self.coupon_code = None
        now = datetime.now(UTC)
        self.status = CartStatus.CLEARED.value
        self.cleared_at = now
        self.updated_at = now

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                cleared_at=now,
            )
        )

    def snapshot(self) -> Cart:
        """Immutable view of the cart for pricing and checkout."""
        return Cart(
            lines=tuple(
                CartLine(
                    product_id=str(item.product_id),
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    category=item.category,
                )
                for item in self.items
            ),
            coupon_code=self.coupon_code,
            cart_id=str(self.id),
        )
