"""Promotion management — commands and handlers for coupons and sales campaigns."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.promotion.campaign import SalesCampaign
from ordering.promotion.coupon import Coupon, normalize_code


@ordering.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = String(max_length=500)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    max_discount_amount = Float()
    min_order_amount = Float()
    valid_from = DateTime()
    valid_until = DateTime()
    usage_limit = Integer()


@ordering.command(part_of="Coupon")
class DeactivateCoupon:
    coupon_id = Identifier(required=True)


@ordering.command(part_of="SalesCampaign")
class CreateSalesCampaign:
    name = String(required=True, max_length=200)
    description = String(max_length=1000)
    banner_message = String(max_length=255)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    max_discount_amount = Float()
    min_order_amount = Float()
    start_date = DateTime(required=True)
    end_date = DateTime()
    applies_to = String(max_length=20, default="all")
    target_categories = Text()  # JSON list
    target_product_ids = Text()  # JSON list
    is_active = Boolean(default=True)


@ordering.command(part_of="SalesCampaign")
class DeactivateSalesCampaign:
    campaign_id = Identifier(required=True)


@ordering.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        code = normalize_code(command.code)
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": [f"Coupon {code} already exists"]})

        coupon = Coupon.create(
            code=code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            description=command.description,
            max_discount_amount=command.max_discount_amount,
            min_order_amount=command.min_order_amount,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            usage_limit=command.usage_limit,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.deactivate()
        repo.add(coupon)


@ordering.command_handler(part_of=SalesCampaign)
class SalesCampaignManagementHandler:
    @handle(CreateSalesCampaign)
    def create_campaign(self, command):
        target_categories = json.loads(command.target_categories) if command.target_categories else []
        target_product_ids = json.loads(command.target_product_ids) if command.target_product_ids else []

        campaign = SalesCampaign.create(
            name=command.name,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            start_date=command.start_date,
            target_categories=target_categories,
            target_product_ids=target_product_ids,
            description=command.description,
            banner_message=command.banner_message,
            max_discount_amount=command.max_discount_amount,
            min_order_amount=command.min_order_amount,
            end_date=command.end_date,
            applies_to=command.applies_to or "all",
            is_active=command.is_active if command.is_active is not None else True,
        )
        current_domain.repository_for(SalesCampaign).add(campaign)
        return str(campaign.id)

    @handle(DeactivateSalesCampaign)
    def deactivate_campaign(self, command):
        repo = current_domain.repository_for(SalesCampaign)
        campaign = repo.get(command.campaign_id)
        campaign.deactivate()
        repo.add(campaign)
