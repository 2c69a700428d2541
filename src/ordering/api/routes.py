"""FastAPI routes for the Ordering domain — checkout, carts, orders and promotions."""

import json
import os
from urllib.parse import parse_qsl, urlencode

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    AddToCartRequest,
    ApplyCouponToCartRequest,
    AttemptIdResponse,
    CampaignIdResponse,
    CancelOrderRequest,
    CartIdResponse,
    CartItemResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    CouponIdResponse,
    CreateCartRequest,
    CreateCouponRequest,
    CreateSalesCampaignRequest,
    DeliveryAttemptResponse,
    LineItemResponse,
    OrderIdResponse,
    OrderResponse,
    OverrideStatusRequest,
    PickupResponse,
    ProcessDuePickupsRequest,
    ProcessDuePickupsResponse,
    RecordDeliveryOutcomeRequest,
    RedirectSchema,
    ScheduleDeliveryAttemptRequest,
    ShipOrderRequest,
    StatusResponse,
    TimelineEntryResponse,
    UpdateCartQuantityRequest,
    UpdatePaymentStatusRequest,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ApplyCouponToCart, CreateCart, RemoveCouponFromCart
from ordering.checkout.service import CheckoutService
from ordering.gateway.adapter import PaymentGatewayAdapter
from ordering.gateway.port import CallbackIntegrityError, InvalidPaymentAmount, PaymentInitiationError
from ordering.order.delivery import RecordDeliveryOutcome, ScheduleDeliveryAttempt
from ordering.order.order import Order
from ordering.order.payment import InitiateGatewayPayment, ProcessGatewayCallback, SwitchToCashOnDelivery
from ordering.pickup.pickup import PickupRequest
from ordering.pickup.retry import ProcessDuePickups
from ordering.order.transitions import (
    CancelOrder,
    ConfirmOrder,
    MarkDelivered,
    MarkProcessing,
    MarkShipped,
    OverrideOrderStatus,
    UpdatePaymentStatus,
)
from ordering.pricing.discount import Cart, CartLine
from ordering.projections.order_timeline import timeline_for
from ordering.promotion.management import (
    CreateCoupon,
    CreateSalesCampaign,
    DeactivateCoupon,
    DeactivateSalesCampaign,
)

DEFAULT_CHECKOUT_RESULT_URL = "/checkout/result"


def _payment_http_error(exc: PaymentInitiationError) -> HTTPException:
    status_code = 400 if isinstance(exc, InvalidPaymentAmount) else 502
    return HTTPException(status_code=status_code, detail=str(exc))


def _redirect_schema(payload) -> RedirectSchema | None:
    if payload is None:
        return None
    return RedirectSchema(**payload.as_dict())


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest) -> CheckoutResponse:
    """Place an order from a persisted cart (`cart_id`) or from inline `items`."""
    service = CheckoutService()
    shipping = body.shipping.model_dump()

    try:
        if body.cart_id:
            result = service.submit_cart(
                cart_id=body.cart_id,
                customer_id=body.customer_id,
                shipping=shipping,
                payment_method=body.payment_method,
                notes=body.notes,
            )
        else:
            cart = Cart(
                lines=tuple(CartLine(**item.model_dump()) for item in body.items or []),
                coupon_code=body.coupon_code,
            )
            result = service.submit(
                customer_id=body.customer_id,
                cart=cart,
                shipping=shipping,
                payment_method=body.payment_method,
                notes=body.notes,
            )
    except PaymentInitiationError as exc:
        raise _payment_http_error(exc) from exc

    return CheckoutResponse(
        order_id=result.order_id,
        subtotal=result.breakdown.subtotal,
        coupon_discount=result.breakdown.coupon_discount,
        campaign_discount=result.breakdown.campaign_discount,
        total_amount=result.total_amount,
        redirect=_redirect_schema(result.redirect),
        payment_error=result.payment_error,
    )


@checkout_router.post("/gateway-return")
async def gateway_return(request: Request) -> RedirectResponse:
    """The hosted gateway POSTs its signed response here (form encoded)."""
    fields = dict(parse_qsl((await request.body()).decode()))
    try:
        params = PaymentGatewayAdapter().translate_gateway_response(fields)
    except CallbackIntegrityError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return RedirectResponse(url=f"/checkout/callback?{urlencode(params)}", status_code=303)


@checkout_router.get("/callback")
async def payment_callback(
    status: str | None = None,
    order_id: str | None = None,
    message: str | None = None,
    payment_status: str | None = None,
    reference: str | None = None,
    verification_code: str | None = None,
) -> RedirectResponse:
    """Apply a verified gateway result, then send the browser to a parameter-free result page."""
    command = ProcessGatewayCallback(
        order_id=order_id,
        status=status,
        message=message,
        payment_status=payment_status,
        reference=reference,
        verification_code=verification_code,
    )
    try:
        verdict = current_domain.process(command, asynchronous=False)
    except CallbackIntegrityError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result_url = os.environ.get("CHECKOUT_RESULT_URL", DEFAULT_CHECKOUT_RESULT_URL).rstrip("/")
    return RedirectResponse(url=f"{result_url}/{verdict.outcome}", status_code=303)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    result = current_domain.process(CreateCart(customer_id=body.customer_id), asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return CartResponse(
        cart_id=str(cart.id),
        customer_id=str(cart.customer_id),
        status=cart.status,
        coupon_code=cart.coupon_code,
        items=[
            CartItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                category=item.category,
            )
            for item in cart.items
        ],
        subtotal=cart.snapshot().subtotal,
    )


@cart_router.post("/{cart_id}/items", response_model=StatusResponse)
async def add_cart_item(cart_id: str, body: AddToCartRequest) -> StatusResponse:
    command = AddToCart(
        cart_id=cart_id,
        product_id=body.product_id,
        name=body.name,
        unit_price=body.unit_price,
        quantity=body.quantity,
        category=body.category,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item_quantity(cart_id: str, item_id: str, body: UpdateCartQuantityRequest) -> StatusResponse:
    command = UpdateCartQuantity(
        cart_id=cart_id,
        item_id=item_id,
        new_quantity=body.new_quantity,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/{cart_id}/coupon", response_model=StatusResponse)
async def apply_cart_coupon(cart_id: str, body: ApplyCouponToCartRequest) -> StatusResponse:
    command = ApplyCouponToCart(
        cart_id=cart_id,
        coupon_code=body.coupon_code,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/coupon", response_model=StatusResponse)
async def remove_cart_coupon(cart_id: str) -> StatusResponse:
    current_domain.process(RemoveCouponFromCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        order_status=order.order_status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        shipping_address=order.shipping_address,
        items=[
            LineItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in order.items
        ],
        subtotal=order.subtotal,
        coupon_code=order.coupon_code,
        coupon_discount=order.coupon_discount or 0.0,
        campaign_id=str(order.campaign_id) if order.campaign_id else None,
        campaign_discount=order.campaign_discount or 0.0,
        total_amount=order.total_amount,
        payment_reference=order.payment_reference,
        payment_attempts=order.payment_attempts or 0,
        tracking_number=order.tracking_number,
        tracking_provider=order.tracking_provider,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        delivery_status=order.delivery_status,
        returning_to_provider=bool(order.returning_to_provider),
        return_reason=order.return_reason,
        refund_due=bool(order.refund_due),
        delivery_attempts=[
            DeliveryAttemptResponse(
                attempt_id=str(attempt.id),
                attempt_number=attempt.attempt_number,
                scheduled_date=attempt.scheduled_date,
                status=attempt.status,
                failure_reason=attempt.failure_reason,
                notes=attempt.notes,
                attempted_at=attempt.attempted_at,
            )
            for attempt in sorted(order.delivery_attempts, key=lambda a: a.attempt_number)
        ],
    )


@order_router.get("/{order_id}/timeline", response_model=list[TimelineEntryResponse])
async def get_order_timeline(order_id: str) -> list[TimelineEntryResponse]:
    return [
        TimelineEntryResponse(
            event_type=entry.event_type,
            description=entry.description,
            actor=entry.actor,
            occurred_at=entry.occurred_at,
        )
        for entry in timeline_for(order_id)
    ]


@order_router.post("/{order_id}/payment/retry", response_model=RedirectSchema)
async def retry_payment(order_id: str) -> RedirectSchema:
    try:
        payload = current_domain.process(InitiateGatewayPayment(order_id=order_id), asynchronous=False)
    except PaymentInitiationError as exc:
        raise _payment_http_error(exc) from exc
    return _redirect_schema(payload)


@order_router.put("/{order_id}/payment/cash-on-delivery", response_model=StatusResponse)
async def switch_to_cash_on_delivery(order_id: str) -> StatusResponse:
    current_domain.process(SwitchToCashOnDelivery(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/payment/status", response_model=StatusResponse)
async def update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> StatusResponse:
    command = UpdatePaymentStatus(
        order_id=order_id,
        payment_status=body.payment_status,
        payment_reference=body.payment_reference,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/confirm", response_model=StatusResponse)
async def confirm_order(order_id: str) -> StatusResponse:
    current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/processing", response_model=StatusResponse)
async def mark_processing(order_id: str) -> StatusResponse:
    current_domain.process(MarkProcessing(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/ship", response_model=StatusResponse)
async def ship_order(order_id: str, body: ShipOrderRequest) -> StatusResponse:
    command = MarkShipped(
        order_id=order_id,
        tracking_number=body.tracking_number,
        tracking_provider=body.tracking_provider,
        tracking_unavailable=body.tracking_unavailable,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def deliver_order(order_id: str) -> StatusResponse:
    current_domain.process(MarkDelivered(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/override", response_model=StatusResponse)
async def override_order_status(order_id: str, body: OverrideStatusRequest) -> StatusResponse:
    command = OverrideOrderStatus(
        order_id=order_id,
        target_status=body.target_status,
        actor=body.actor,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/delivery-attempts", status_code=201, response_model=AttemptIdResponse)
async def schedule_delivery_attempt(order_id: str, body: ScheduleDeliveryAttemptRequest) -> AttemptIdResponse:
    command = ScheduleDeliveryAttempt(
        order_id=order_id,
        scheduled_date=body.scheduled_date,
        notes=body.notes,
    )
    attempt_id = current_domain.process(command, asynchronous=False)
    return AttemptIdResponse(attempt_id=attempt_id)


@order_router.put("/{order_id}/delivery-attempts/{attempt_id}", response_model=StatusResponse)
async def record_delivery_outcome(
    order_id: str, attempt_id: str, body: RecordDeliveryOutcomeRequest
) -> StatusResponse:
    command = RecordDeliveryOutcome(
        order_id=order_id,
        attempt_id=attempt_id,
        outcome=body.outcome,
        failure_reason=body.failure_reason,
        notes=body.notes,
        max_failed_attempts=body.max_failed_attempts,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.get("/{order_id}/pickup", response_model=PickupResponse)
async def get_pickup(order_id: str) -> PickupResponse:
    """Carrier pickup request for a confirmed order."""
    results = current_domain.repository_for(PickupRequest)._dao.query.filter(order_id=order_id).all().items
    if not results:
        raise HTTPException(status_code=404, detail=f"No pickup request for order {order_id}")
    pickup = results[0]
    return PickupResponse(
        order_id=str(pickup.order_id),
        status=pickup.status,
        attempts=pickup.attempts or 0,
        reference=pickup.reference,
        last_error=pickup.last_error,
        next_attempt_at=str(pickup.next_attempt_at) if pickup.next_attempt_at else None,
    )


# ---------------------------------------------------------------------------
# Maintenance: periodic background job endpoint
# ---------------------------------------------------------------------------
@order_router.post("/maintenance/process-due-pickups", response_model=ProcessDuePickupsResponse)
async def process_due_pickups(body: ProcessDuePickupsRequest | None = None) -> ProcessDuePickupsResponse:
    """Ask the carrier again for failed pickups whose backoff has expired."""
    command = ProcessDuePickups(as_of=body.as_of if body else None)
    retried = current_domain.process(command, asynchronous=False)
    return ProcessDuePickupsResponse(retried=retried or 0)


# ---------------------------------------------------------------------------
# Promotion Router
# ---------------------------------------------------------------------------
promotion_router = APIRouter(prefix="/promotions", tags=["promotions"])


@promotion_router.post("/coupons", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    coupon_id = current_domain.process(CreateCoupon(**body.model_dump()), asynchronous=False)
    return CouponIdResponse(coupon_id=coupon_id)


@promotion_router.put("/coupons/{coupon_id}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(coupon_id: str) -> StatusResponse:
    current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
    return StatusResponse()


@promotion_router.post("/campaigns", status_code=201, response_model=CampaignIdResponse)
async def create_campaign(body: CreateSalesCampaignRequest) -> CampaignIdResponse:
    data = body.model_dump()
    data["target_categories"] = json.dumps(data["target_categories"])
    data["target_product_ids"] = json.dumps(data["target_product_ids"])
    campaign_id = current_domain.process(CreateSalesCampaign(**data), asynchronous=False)
    return CampaignIdResponse(campaign_id=campaign_id)


@promotion_router.put("/campaigns/{campaign_id}/deactivate", response_model=StatusResponse)
async def deactivate_campaign(campaign_id: str) -> StatusResponse:
    current_domain.process(DeactivateSalesCampaign(campaign_id=campaign_id), asynchronous=False)
    return StatusResponse()
