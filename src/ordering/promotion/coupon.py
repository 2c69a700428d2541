"""Coupon aggregate (CQRS) — a user-entered code granting a discount at checkout.

Codes are stored upper-case and looked up case-insensitively. The checkout
only reads coupons; they are created and switched off through the management
commands in `ordering.promotion.management`.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.pricing.discount import DiscountType


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    description = String(max_length=500)
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    valid_from = DateTime()
    valid_until = DateTime()
    usage_limit = Integer(min_value=0)
    usage_count = Integer(default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValidationError({"valid_until": ["Coupon must expire after it becomes valid"]})

    @classmethod
    def create(cls, code, discount_type, discount_value, **kwargs):
        return cls(
            code=normalize_code(code),
            discount_type=discount_type,
            discount_value=discount_value,
            created_at=datetime.now(UTC),
            **kwargs,
        )

    def deactivate(self):
        self.is_active = False

    def ensure_redeemable(self, subtotal: float, now: datetime | None = None):
        """Raise a field-scoped ValidationError if the coupon cannot be used for `subtotal`."""
        now = now or datetime.now(UTC)

        if not self.is_active:
            raise ValidationError({"coupon_code": ["Invalid coupon code"]})

        valid_from = _aware(self.valid_from)
        valid_until = _aware(self.valid_until)
        if valid_from is not None and valid_from > now:
            raise ValidationError({"coupon_code": ["Coupon is not yet active"]})
        if valid_until is not None and valid_until < now:
            raise ValidationError({"coupon_code": ["Coupon has expired"]})

        if self.min_order_amount and subtotal < self.min_order_amount:
            raise ValidationError({"coupon_code": [f"Minimum order amount is ₹{self.min_order_amount:g}"]})

        if self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit:
            raise ValidationError({"coupon_code": ["Coupon usage limit reached"]})


def _aware(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def find_coupon(code: str) -> Coupon:
    """Look up an active-or-not coupon by code, case-insensitively."""
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError({"coupon_code": ["Invalid coupon code"]})

    repo = current_domain.repository_for(Coupon)
    matches = repo._dao.query.filter(code=normalized).all().items
    if not matches:
        raise ValidationError({"coupon_code": ["Invalid coupon code"]})
    return matches[0]
