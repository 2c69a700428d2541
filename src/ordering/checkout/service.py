"""Checkout Orchestrator — turns a cart into an order.

Everything that can be rejected is rejected before the order is persisted:
the customer, the cart, the shipping details, the payment method, the coupon
and (for online payments) the gateway's readiness. After that the order
exists, and a problem preparing the gateway redirect is reported back in
`payment_error` so the customer can retry from the order.

Flow:
    1. Price the cart (coupon + best campaign)
    2. PlaceOrder
    3a. Zero total → mark paid (which confirms the order)
    3b. Cash on delivery → ConfirmOrder
    3c. Online → InitiateGatewayPayment, return the redirect payload
"""

import json
from dataclasses import dataclass
from datetime import datetime

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.checkout.shipping import ShippingDetails, normalize_phone
from ordering.gateway.adapter import PaymentGatewayAdapter
from ordering.gateway.port import PaymentInitiationError, RedirectPayload
from ordering.order.creation import PlaceOrder
from ordering.order.order import PaymentMethod, PaymentStatus
from ordering.order.payment import InitiateGatewayPayment
from ordering.order.transitions import ConfirmOrder, UpdatePaymentStatus
from ordering.pricing.discount import Cart, DiscountBreakdown, price_cart
from ordering.promotion.campaign import active_campaigns
from ordering.promotion.coupon import find_coupon

logger = structlog.get_logger(__name__)

ZERO_AMOUNT_REFERENCE = "zero-amount"


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    total_amount: float
    breakdown: DiscountBreakdown
    redirect: RedirectPayload | None = None
    payment_error: str | None = None


class CheckoutService:
    def submit_cart(self, cart_id, customer_id, shipping, payment_method, notes=None) -> CheckoutResult:
        """Check out a persisted shopping cart."""
        try:
            cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        except ObjectNotFoundError:
            raise ValidationError({"cart_id": ["Cart not found"]}) from None
        if customer_id and str(cart.customer_id) != str(customer_id):
            raise ValidationError({"cart_id": ["Cart belongs to another customer"]})
        return self.submit(customer_id, cart.snapshot(), shipping, payment_method, notes=notes)

    def submit(
        self,
        customer_id,
        cart: Cart,
        shipping,
        payment_method,
        notes=None,
        now: datetime | None = None,
    ) -> CheckoutResult:
        if not customer_id:
            raise ValidationError({"customer_id": ["Sign in to place an order"]})
        if cart.is_empty:
            raise ValidationError({"cart": ["Your cart is empty"]})

        if isinstance(shipping, dict):
            shipping = ShippingDetails(**shipping)

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]}) from None

        coupon = None
        if cart.coupon_code:
            coupon = find_coupon(cart.coupon_code)
            coupon.ensure_redeemable(cart.subtotal, now=now)

        breakdown = price_cart(cart, coupon=coupon, campaigns=active_campaigns(), now=now)
        total = breakdown.final_amount

        if method == PaymentMethod.ONLINE_GATEWAY and total > 0:
            PaymentGatewayAdapter().ensure_ready(total)

        order_id = current_domain.process(
            PlaceOrder(
                customer_id=str(customer_id),
                customer_name=shipping.full_name.strip(),
                customer_email=shipping.email,
                customer_phone=normalize_phone(shipping.phone),
                shipping_address=shipping.formatted(),
                items=json.dumps(
                    [
                        {
                            "product_id": line.product_id,
                            "name": line.name,
                            "unit_price": line.unit_price,
                            "quantity": line.quantity,
                        }
                        for line in cart.lines
                    ]
                ),
                subtotal=breakdown.subtotal,
                coupon_code=coupon.code if coupon else None,
                coupon_discount=breakdown.coupon_discount,
                campaign_id=breakdown.campaign_id,
                campaign_discount=breakdown.campaign_discount,
                total_amount=total,
                payment_method=method.value,
                cart_id=cart.cart_id,
                notes=notes,
            ),
            asynchronous=False,
        )
        logger.info(
            "Order placed",
            order_id=order_id,
            customer_id=str(customer_id),
            total_amount=total,
            payment_method=method.value,
            coupon_discount=breakdown.coupon_discount,
            campaign_discount=breakdown.campaign_discount,
        )

        redirect = None
        payment_error = None

        if total <= 0:
            current_domain.process(
                UpdatePaymentStatus(
                    order_id=order_id,
                    payment_status=PaymentStatus.PAID.value,
                    payment_reference=ZERO_AMOUNT_REFERENCE,
                ),
                asynchronous=False,
            )
        elif method == PaymentMethod.CASH_ON_DELIVERY:
            current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
        else:
            try:
                redirect = current_domain.process(
                    InitiateGatewayPayment(order_id=order_id),
                    asynchronous=False,
                )
            except PaymentInitiationError as exc:
                logger.error("Payment initiation failed", order_id=order_id, error=str(exc))
                payment_error = str(exc)

        return CheckoutResult(
            order_id=order_id,
            total_amount=total,
            breakdown=breakdown,
            redirect=redirect,
            payment_error=payment_error,
        )
