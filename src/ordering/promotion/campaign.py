"""SalesCampaign aggregate (CQRS) — an automatically applied, time-boxed discount.

Campaigns need no code. The discount engine picks at most one of them per
order. `current_orders` is a marketing counter bumped after an order that
used the campaign is placed; concurrent increments may be lost, so it is
never used to decide eligibility.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.pricing.discount import CampaignScope, DiscountType


@ordering.aggregate
class SalesCampaign:
    name = String(required=True, max_length=200)
    description = String(max_length=1000)
    banner_message = String(max_length=255)
    discount_type = String(choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    start_date = DateTime(required=True)
    end_date = DateTime()
    is_active = Boolean(default=True)
    applies_to = String(choices=CampaignScope, default=CampaignScope.ALL.value)
    target_categories = Text()  # JSON list of category names
    target_product_ids = Text()  # JSON list of product ids
    current_orders = Integer(default=0)
    created_at = DateTime()

    @invariant.post
    def scoped_campaign_needs_targets(self):
        if self.applies_to == CampaignScope.CATEGORY.value and not self.categories_targeted():
            raise ValidationError({"target_categories": ["Category campaigns need at least one category"]})
        if self.applies_to == CampaignScope.PRODUCTS.value and not self.products_targeted():
            raise ValidationError({"target_product_ids": ["Product campaigns need at least one product"]})

    @invariant.post
    def end_must_follow_start(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": ["Campaign must end after it starts"]})

    @classmethod
    def create(
        cls,
        name,
        discount_type,
        discount_value,
        start_date,
        target_categories=None,
        target_product_ids=None,
        **kwargs,
    ):
        return cls(
            name=name,
            discount_type=discount_type,
            discount_value=discount_value,
            start_date=start_date,
            target_categories=json.dumps(list(target_categories or [])),
            target_product_ids=json.dumps([str(p) for p in target_product_ids or []]),
            created_at=datetime.now(UTC),
            **kwargs,
        )

    def categories_targeted(self) -> list[str]:
        return json.loads(self.target_categories) if self.target_categories else []

    def products_targeted(self) -> list[str]:
        return json.loads(self.target_product_ids) if self.target_product_ids else []

    def record_order(self):
        self.current_orders = (self.current_orders or 0) + 1

    def deactivate(self):
        self.is_active = False


def active_campaigns() -> list[SalesCampaign]:
    """Campaigns flagged active; window and scope are checked by the discount engine."""
    repo = current_domain.repository_for(SalesCampaign)
    return list(repo._dao.query.filter(is_active=True).all().items)
