"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingSchema(BaseModel):
    full_name: str
    phone: str
    email: str | None = None
    house_number: str
    colony: str | None = None
    landmark: str | None = None
    city: str
    state: str
    pincode: str


class CheckoutItemSchema(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    category: str | None = None


class RedirectSchema(BaseModel):
    action_url: str
    fields: dict[str, str]


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    """Either `cart_id` (a persisted cart) or inline `items` must be given."""

    customer_id: str | None = None
    cart_id: str | None = None
    items: list[CheckoutItemSchema] | None = None
    coupon_code: str | None = None
    shipping: ShippingSchema
    payment_method: str
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "items": [
                        {
                            "product_id": "prod-001",
                            "name": "Solar Lamp",
                            "unit_price": 1000.0,
                            "quantity": 1,
                            "category": "lighting",
                        }
                    ],
                    "coupon_code": "SAVE10",
                    "shipping": {
                        "full_name": "Asha Rao",
                        "phone": "9876543210",
                        "email": "asha@example.com",
                        "house_number": "12B",
                        "colony": "Green Park",
                        "landmark": "City Mall",
                        "city": "Pune",
                        "state": "Maharashtra",
                        "pincode": "411001",
                    },
                    "payment_method": "online_gateway",
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    order_id: str
    subtotal: float
    coupon_discount: float
    campaign_discount: float
    total_amount: float
    redirect: RedirectSchema | None = None
    payment_error: str | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str

    model_config = {"json_schema_extra": {"examples": [{"customer_id": "cust-001"}]}}


class AddToCartRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    category: str | None = None


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class ApplyCouponToCartRequest(BaseModel):
    coupon_code: str


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class ShipOrderRequest(BaseModel):
    tracking_number: str | None = None
    tracking_provider: str | None = None
    tracking_unavailable: bool = False


class CancelOrderRequest(BaseModel):
    reason: str
    cancelled_by: str


class OverrideStatusRequest(BaseModel):
    target_status: str
    actor: str
    reason: str | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str
    payment_reference: str | None = None
    reason: str | None = None


class ScheduleDeliveryAttemptRequest(BaseModel):
    scheduled_date: date
    notes: str | None = None


class RecordDeliveryOutcomeRequest(BaseModel):
    outcome: str
    failure_reason: str | None = None
    notes: str | None = None
    max_failed_attempts: int | None = Field(default=None, ge=1)


class ProcessDuePickupsRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Promotion Request Schemas
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str
    description: str | None = None
    discount_type: str
    discount_value: float = Field(gt=0)
    max_discount_amount: float | None = None
    min_order_amount: float | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = None


class CreateSalesCampaignRequest(BaseModel):
    name: str
    description: str | None = None
    banner_message: str | None = None
    discount_type: str
    discount_value: float = Field(gt=0)
    max_discount_amount: float | None = None
    min_order_amount: float | None = None
    start_date: datetime
    end_date: datetime | None = None
    applies_to: str = "all"
    target_categories: list[str] = Field(default_factory=list)
    target_product_ids: list[str] = Field(default_factory=list)
    is_active: bool = True


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ProcessDuePickupsResponse(BaseModel):
    status: str = "ok"
    retried: int = 0


class PickupResponse(BaseModel):
    order_id: str
    status: str
    attempts: int = 0
    reference: str | None = None
    last_error: str | None = None
    next_attempt_at: str | None = None


class CartIdResponse(BaseModel):
    cart_id: str


class OrderIdResponse(BaseModel):
    order_id: str


class AttemptIdResponse(BaseModel):
    attempt_id: str


class CouponIdResponse(BaseModel):
    coupon_id: str


class CampaignIdResponse(BaseModel):
    campaign_id: str


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    name: str
    unit_price: float
    quantity: int
    category: str | None = None


class CartResponse(BaseModel):
    cart_id: str
    customer_id: str
    status: str
    coupon_code: str | None = None
    items: list[CartItemResponse]
    subtotal: float


class LineItemResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int


class DeliveryAttemptResponse(BaseModel):
    attempt_id: str
    attempt_number: int
    scheduled_date: date
    status: str
    failure_reason: str | None = None
    notes: str | None = None
    attempted_at: datetime | None = None


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    order_status: str
    payment_status: str
    payment_method: str
    shipping_address: str | None = None
    items: list[LineItemResponse]
    subtotal: float
    coupon_code: str | None = None
    coupon_discount: float
    campaign_id: str | None = None
    campaign_discount: float
    total_amount: float
    payment_reference: str | None = None
    payment_attempts: int
    tracking_number: str | None = None
    tracking_provider: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    delivery_status: str | None = None
    returning_to_provider: bool
    return_reason: str | None = None
    refund_due: bool
    delivery_attempts: list[DeliveryAttemptResponse]


class TimelineEntryResponse(BaseModel):
    event_type: str
    description: str
    actor: str | None = None
    occurred_at: datetime
