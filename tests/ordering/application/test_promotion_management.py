import json
from datetime import UTC, datetime, timedelta

import pytest
from ordering.promotion.campaign import SalesCampaign, active_campaigns
from ordering.promotion.coupon import Coupon, find_coupon
from ordering.promotion.management import (
    CreateCoupon,
    CreateSalesCampaign,
    DeactivateCoupon,
    DeactivateSalesCampaign,
)
from protean import current_domain
from protean.exceptions import ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestCouponManagement:
    def test_create_coupon_normalizes_code(self):
        coupon_id = _process(CreateCoupon(code=" welcome50 ", discount_type="percentage", discount_value=50))

        coupon = current_domain.repository_for(Coupon).get(coupon_id)
        assert coupon.code == "WELCOME50"
        assert find_coupon("Welcome50").id == coupon.id

    def test_duplicate_code_is_rejected(self):
        _process(CreateCoupon(code="SAVE10", discount_type="percentage", discount_value=10))
        with pytest.raises(ValidationError) as exc:
            _process(CreateCoupon(code="save10", discount_type="fixed", discount_value=100))
        assert exc.value.messages["code"] == ["Coupon SAVE10 already exists"]

    def test_deactivated_coupon_cannot_be_redeemed(self):
        coupon_id = _process(CreateCoupon(code="SAVE10", discount_type="percentage", discount_value=10))
        _process(DeactivateCoupon(coupon_id=coupon_id))

        coupon = find_coupon("SAVE10")
        with pytest.raises(ValidationError):
            coupon.ensure_redeemable(1000.0)

    def test_percentage_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            _process(CreateCoupon(code="TOOMUCH", discount_type="percentage", discount_value=120))


class TestCampaignManagement:
    def test_create_category_campaign(self):
        campaign_id = _process(
            CreateSalesCampaign(
                name="Festive Lamps",
                discount_type="percentage",
                discount_value=15,
                start_date=datetime.now(UTC) - timedelta(hours=1),
                applies_to="category",
                target_categories=json.dumps(["Lighting"]),
            )
        )

        campaign = current_domain.repository_for(SalesCampaign).get(campaign_id)
        assert campaign.categories_targeted() == ["Lighting"]
        assert [c.id for c in active_campaigns()] == [campaign.id]

    def test_deactivated_campaign_is_not_active(self):
        campaign_id = _process(
            CreateSalesCampaign(
                name="Flash Sale",
                discount_type="fixed",
                discount_value=100,
                start_date=datetime.now(UTC) - timedelta(hours=1),
            )
        )
        _process(DeactivateSalesCampaign(campaign_id=campaign_id))

        assert active_campaigns() == []
