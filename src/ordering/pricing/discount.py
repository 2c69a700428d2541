"""Discount engine — prices a cart against a coupon and the live sales campaigns.

Pure functions over plain values: nothing here reads or writes a repository.
Callers pass the `Cart` snapshot, the (already validated) coupon, and the
candidate campaigns, and get back a `DiscountBreakdown`.

Stacking policy:
    The coupon discount and the single best campaign discount are computed
    independently against the ORIGINAL subtotal and then added together.
    The campaign is never applied to the post-coupon remainder.

        final = max(0, subtotal - coupon_discount - campaign_discount)

Campaign selection:
    Only one campaign is ever applied. Among eligible campaigns, the one with
    the largest absolute discount wins; ties go to the higher `discount_value`,
    then to the earlier campaign in the input.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CampaignScope(Enum):
    ALL = "all"
    CATEGORY = "category"
    PRODUCTS = "products"


# ---------------------------------------------------------------------------
# Cart snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CartLine:
    """One priced line of a cart, captured from the catalogue at add time."""

    product_id: str
    name: str
    unit_price: float
    quantity: int = 1
    category: str | None = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Cart:
    """Immutable cart handed to the discount engine and the checkout service."""

    lines: tuple[CartLine, ...] = ()
    coupon_code: str | None = None
    cart_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def product_ids(self) -> tuple[str, ...]:
        return tuple(str(line.product_id) for line in self.lines)

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(line.category for line in self.lines if line.category)


@dataclass(frozen=True)
class DiscountBreakdown:
    """Result of pricing: both discounts, the applied campaign, and the payable amount."""

    subtotal: float
    coupon_discount: float = 0.0
    campaign_discount: float = 0.0
    campaign: object | None = field(default=None, compare=False)
    final_amount: float = 0.0

    @property
    def total_discount(self) -> float:
        return round(self.coupon_discount + self.campaign_discount, 2)

    @property
    def campaign_id(self) -> str | None:
        return str(self.campaign.id) if self.campaign is not None else None


# ---------------------------------------------------------------------------
# Rule computation
# ---------------------------------------------------------------------------
def rule_discount(subtotal: float, discount_type: str, discount_value: float, max_discount_amount=None) -> float:
    """Discount produced by a single percentage/fixed rule on `subtotal`.

    The result is capped at `max_discount_amount` when one is given (campaigns
    cap both kinds, coupons only percentages). Fixed discounts never exceed the
    subtotal. Always rounded to 2 decimals.
    """
    if subtotal <= 0 or not discount_value:
        return 0.0

    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        amount = subtotal * discount_value / 100
    else:
        amount = min(discount_value, subtotal)

    if max_discount_amount is not None and max_discount_amount > 0:
        amount = min(amount, max_discount_amount)

    return round(max(amount, 0.0), 2)


def coupon_discount(subtotal: float, coupon) -> float:
    """A coupon's cap only limits percentage discounts; a fixed coupon is worth its face value."""
    if coupon is None:
        return 0.0
    cap = coupon.max_discount_amount if DiscountType(coupon.discount_type) == DiscountType.PERCENTAGE else None
    return rule_discount(subtotal, coupon.discount_type, coupon.discount_value, cap)


def _as_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def campaign_is_eligible(campaign, subtotal: float, product_ids=(), categories=(), now: datetime | None = None) -> bool:
    """Check a campaign's flags, active window, minimum order and scope.

    The `current_orders` counter is advisory and never consulted here.
    """
    now = _as_aware(now or datetime.now(UTC))

    if not campaign.is_active:
        return False

    start = _as_aware(campaign.start_date)
    end = _as_aware(campaign.end_date)
    if start is not None and start > now:
        return False
    if end is not None and end <= now:
        return False

    if campaign.min_order_amount and subtotal < campaign.min_order_amount:
        return False

    scope = CampaignScope(campaign.applies_to or CampaignScope.ALL.value)
    if scope == CampaignScope.CATEGORY:
        targets = set(campaign.categories_targeted())
        return any(category in targets for category in categories)
    if scope == CampaignScope.PRODUCTS:
        targets = {str(p) for p in campaign.products_targeted()}
        return any(str(product_id) in targets for product_id in product_ids)
    return True


def best_campaign(subtotal: float, campaigns, product_ids=(), categories=(), now: datetime | None = None):
    """Return `(campaign, discount)` for the single best eligible campaign, or `(None, 0.0)`."""
    best = None
    best_key = None
    for campaign in campaigns:
        if not campaign_is_eligible(campaign, subtotal, product_ids, categories, now):
            continue
        discount = rule_discount(
            subtotal,
            campaign.discount_type,
            campaign.discount_value,
            campaign.max_discount_amount,
        )
        key = (discount, campaign.discount_value or 0.0)
        # Strictly greater keeps the earlier campaign on a full tie
        if best_key is None or key > best_key:
            best, best_key = campaign, key

    if best is None:
        return None, 0.0
    return best, best_key[0]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------
def compute(
    subtotal: float,
    coupon=None,
    campaigns=(),
    *,
    product_ids=(),
    categories=(),
    now: datetime | None = None,
) -> DiscountBreakdown:
    """Price `subtotal` with an optional coupon and the best eligible campaign."""
    subtotal = round(float(subtotal), 2)

    coupon_amount = coupon_discount(subtotal, coupon)
    campaign, campaign_amount = best_campaign(subtotal, campaigns, product_ids, categories, now)

    final_amount = round(max(0.0, subtotal - coupon_amount - campaign_amount), 2)

    return DiscountBreakdown(
        subtotal=subtotal,
        coupon_discount=coupon_amount,
        campaign_discount=campaign_amount,
        campaign=campaign,
        final_amount=final_amount,
    )


def price_cart(cart: Cart, coupon=None, campaigns=(), now: datetime | None = None) -> DiscountBreakdown:
    """Price a cart snapshot; campaign scope is matched against its products and categories."""
    return compute(
        cart.subtotal,
        coupon,
        campaigns,
        product_ids=cart.product_ids,
        categories=cart.categories,
        now=now,
    )
