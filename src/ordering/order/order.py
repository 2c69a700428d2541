"""Order aggregate (Event Sourced) — the core of the ordering domain.

The Order aggregate uses event sourcing: all state changes are captured as
domain events, and the current state is rebuilt by replaying events via
@apply decorators. This provides a complete audit trail of every status
change, payment attempt and delivery attempt.

Two independent axes are tracked:

Order status (forward only):
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
    An administrator may skip forward along the happy path (audited).

Payment status:
    PENDING  → PAID | FAILED | REFUNDED
    AWAITING → PAID | FAILED
    FAILED   → AWAITING (new attempt) | PENDING (cash on delivery) | PAID
    PAID     → REFUNDED

A cash order can be DELIVERED while its payment is still PENDING (collected
on delivery), so the two are never collapsed into one field.

Requesting a transition into the state the order is already in is a no-op,
which makes gateway callbacks and admin retries safe to repeat.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    DeliveryAttemptFailed,
    DeliveryAttemptScheduled,
    DeliveryAttemptSucceeded,
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderReturningToProvider,
    OrderShipped,
    OrderStatusOverridden,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PaymentTransactionStarted,
    SwitchedToCashOnDelivery,
)

DEFAULT_MAX_FAILED_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    AWAITING = "awaiting"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    ONLINE_GATEWAY = "online_gateway"


class DeliveryAttemptStatus(Enum):
    SCHEDULED = "scheduled"
    DELIVERED = "delivered"
    FAILED = "failed"


class DeliveryFailureReason(Enum):
    RECEIVER_ABSENT = "receiver_absent"
    PHONE_SWITCHED_OFF = "phone_switched_off"
    REFUSED = "refused"
    WRONG_ADDRESS = "wrong_address"
    OTHER = "other"


FAILURE_REASON_LABELS = {
    DeliveryFailureReason.RECEIVER_ABSENT.value: "Receiver not available",
    DeliveryFailureReason.PHONE_SWITCHED_OFF.value: "Phone switched off",
    DeliveryFailureReason.REFUSED.value: "Customer refused delivery",
    DeliveryFailureReason.WRONG_ADDRESS.value: "Wrong or incomplete address",
    DeliveryFailureReason.OTHER.value: "Other",
}


# Happy path, in order; overrides may only move forward along it
_HAPPY_PATH = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Stock is committed once an order is confirmed; cancelling releases it
_RELEASE_INVENTORY_STATES = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.REFUNDED},
    PaymentStatus.AWAITING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.AWAITING, PaymentStatus.PENDING, PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ContactSnapshot:
    """Customer contact details captured at order time.

    Later profile edits never change what was recorded on an order.
    """

    name = String(required=True, max_length=255)
    email = String(max_length=254)
    phone = String(required=True, max_length=20)


@ordering.value_object(part_of="Order")
class PaymentTransaction:
    """The latest hosted-gateway redirect attempt for an online order."""

    txn_id = String(required=True, max_length=50)
    amount = Float(required=True)
    status = String(max_length=20, default="initiated")
    gateway_hash = Text()
    initiated_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    """A snapshot of one cart line; immune to later catalogue price changes."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


@ordering.entity(part_of="Order")
class DeliveryAttempt:
    """One scheduled physical delivery try and its recorded outcome."""

    attempt_number = Integer(required=True, min_value=1)
    scheduled_date = Date(required=True)
    status = String(choices=DeliveryAttemptStatus, default=DeliveryAttemptStatus.SCHEDULED.value)
    failure_reason = String(choices=DeliveryFailureReason)
    notes = String(max_length=1000)
    attempted_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@ordering.aggregate(is_event_sourced=True)
class Order:
    customer_id = Identifier(required=True)
    contact = ValueObject(ContactSnapshot)
    shipping_address = String(max_length=1000)
    notes = String(max_length=1000)
    cart_id = Identifier()
    items = HasMany(LineItem)

    # Pricing snapshot, frozen at checkout
    subtotal = Float(default=0.0)
    coupon_code = String(max_length=50)
    coupon_discount = Float(default=0.0)
    campaign_id = Identifier()
    campaign_discount = Float(default=0.0)
    total_amount = Float(default=0.0)

    # Payment axis
    payment_method = String(choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_transaction = ValueObject(PaymentTransaction)
    payment_attempts = Integer(default=0)
    payment_reference = String(max_length=255)
    refund_due = Boolean(default=False)

    # Order axis
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=100)

    # Shipping and delivery
    tracking_number = String(max_length=255)
    tracking_provider = String(max_length=100)
    shipped_at = DateTime()
    delivered_at = DateTime()
    delivery_attempts = HasMany(DeliveryAttempt)
    delivery_status = String(max_length=50)
    returning_to_provider = Boolean(default=False)
    return_reason = String(max_length=500)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        contact,
        shipping_address,
        items_data,
        pricing,
        payment_method,
        cart_id=None,
        notes=None,
    ):
        """Place a new order from a priced cart.

        Uses _create_new() to get a blank aggregate with auto-generated
        identity. All state is established by the OrderPlaced event's
        @apply handler.

        Args:
            customer_id: The resolved customer placing the order.
            contact: Dict with name, email, phone.
            shipping_address: The formatted, single-line address.
            items_data: List of dicts with product_id, name, unit_price, quantity.
            pricing: Dict with subtotal, coupon_code, coupon_discount,
                     campaign_id, campaign_discount, total_amount.
            payment_method: "cash_on_delivery" or "online_gateway".
        """
        if not customer_id:
            raise ValidationError({"customer_id": ["Sign in to place an order"]})
        if not items_data:
            raise ValidationError({"items": ["Cannot place an order without items"]})
        if any(int(item.get("quantity", 0)) < 1 for item in items_data):
            raise ValidationError({"items": ["Item quantities must be at least 1"]})

        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]}) from None

        total_amount = round(float(pricing["total_amount"]), 2)
        if total_amount < 0:
            raise ValidationError({"total_amount": ["Order total cannot be negative"]})

        # Online orders wait for the gateway; cash and free orders start pending
        if method == PaymentMethod.ONLINE_GATEWAY and total_amount > 0:
            payment_status = PaymentStatus.AWAITING
        else:
            payment_status = PaymentStatus.PENDING

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": str(uuid4())} for item in items_data]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                customer_name=contact["name"],
                customer_email=contact.get("email"),
                customer_phone=contact["phone"],
                shipping_address=shipping_address,
                items=json.dumps(items_with_ids),
                subtotal=pricing.get("subtotal", total_amount),
                coupon_code=pricing.get("coupon_code"),
                coupon_discount=pricing.get("coupon_discount", 0.0),
                campaign_id=pricing.get("campaign_id"),
                campaign_discount=pricing.get("campaign_discount", 0.0),
                total_amount=total_amount,
                payment_method=method.value,
                payment_status=payment_status.value,
                cart_id=str(cart_id) if cart_id else None,
                notes=notes,
                placed_at=datetime.now(UTC),
            )
        )
        return order

    # -------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------
    def _should_transition(self, target_status):
        """False when already in `target_status`; raises when the move is not allowed."""
        current = OrderStatus(self.order_status)
        if current == target_status:
            return False
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"order_status": [f"Cannot transition from {current.value} to {target_status.value}"]})
        return True

    def _should_change_payment(self, target_status):
        current = PaymentStatus(self.payment_status)
        if current == target_status:
            return False
        if target_status not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot change payment status from {current.value} to {target_status.value}"]}
            )
        return True

    def _contact_fields(self):
        return {
            "customer_id": str(self.customer_id),
            "customer_name": self.contact.name if self.contact else None,
            "customer_email": self.contact.email if self.contact else None,
            "customer_phone": self.contact.phone if self.contact else None,
        }

    @property
    def is_online(self):
        return self.payment_method == PaymentMethod.ONLINE_GATEWAY.value

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self):
        """Mark the order ready for fulfillment."""
        if not self._should_transition(OrderStatus.CONFIRMED):
            return
        if self.is_online and self.payment_status != PaymentStatus.PAID.value:
            raise ValidationError({"payment_status": ["Online orders are confirmed once payment is received"]})

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                **self._contact_fields(),
                total_amount=self.total_amount,
                payment_method=self.payment_method,
                cart_id=str(self.cart_id) if self.cart_id else None,
                confirmed_at=datetime.now(UTC),
            )
        )

    def mark_processing(self):
        """Mark order as being processed (picking and packing started)."""
        if not self._should_transition(OrderStatus.PROCESSING):
            return
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                started_at=datetime.now(UTC),
            )
        )

    def mark_shipped(self, tracking_number=None, tracking_provider=None, tracking_unavailable=False):
        """Hand the order to the shipping provider.

        A tracking number is required unless the caller explicitly states
        that tracking is unavailable.
        """
        if not self._should_transition(OrderStatus.SHIPPED):
            return
        if not tracking_number and not tracking_unavailable:
            raise ValidationError(
                {"tracking_number": ["A tracking number is required unless tracking is marked unavailable"]}
            )

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                **self._contact_fields(),
                tracking_number=tracking_number,
                tracking_provider=tracking_provider,
                tracking_unavailable=bool(tracking_unavailable and not tracking_number),
                shipped_at=datetime.now(UTC),
            )
        )

    def mark_delivered(self):
        """Record delivery. No further delivery attempts can be scheduled afterwards."""
        if not self._should_transition(OrderStatus.DELIVERED):
            return
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                **self._contact_fields(),
                delivered_at=datetime.now(UTC),
            )
        )

    def cancel(self, reason, cancelled_by):
        """Cancel the order.

        Cancelling a Confirmed or Processing order flags the event with
        `release_inventory` so the committed stock is released exactly once.
        """
        current = OrderStatus(self.order_status)
        if current == OrderStatus.CANCELLED:
            return
        if OrderStatus.CANCELLED not in _VALID_TRANSITIONS[current]:
            raise ValidationError(
                {"order_status": [f"Cannot cancel an order that is {current.value}. Only orders not yet shipped can be cancelled"]}
            )

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                **self._contact_fields(),
                reason=reason,
                cancelled_by=cancelled_by,
                release_inventory=current in _RELEASE_INVENTORY_STATES,
                payment_status=self.payment_status,
                cancelled_at=datetime.now(UTC),
            )
        )

    def override_status(self, target_status, actor, reason=None):
        """Administrative skip forward along the happy path (e.g. straight to delivered).

        The actor and timestamp are recorded on the event for the audit trail.
        """
        if not actor:
            raise ValidationError({"actor": ["Status overrides must name the acting administrator"]})
        try:
            target = OrderStatus(target_status)
        except ValueError:
            raise ValidationError({"order_status": [f"Unknown order status: {target_status}"]}) from None

        current = OrderStatus(self.order_status)
        if current == target:
            return
        if current not in _HAPPY_PATH or target not in _HAPPY_PATH:
            raise ValidationError({"order_status": [f"Cannot override from {current.value} to {target.value}"]})
        if _HAPPY_PATH.index(target) < _HAPPY_PATH.index(current):
            raise ValidationError({"order_status": ["Overrides can only move an order forward"]})

        self.raise_(
            OrderStatusOverridden(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                actor=actor,
                reason=reason,
                overridden_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Payment axis
    # -------------------------------------------------------------------
    def start_payment_transaction(self, txn_id, amount, gateway_hash=None):
        """Record a new hosted-gateway redirect attempt (new txn id each time)."""
        if not self.is_online:
            raise ValidationError({"payment_method": ["Only online orders are paid through the gateway"]})
        if self.order_status == OrderStatus.CANCELLED.value:
            raise ValidationError({"order_status": ["Cannot take payment for a cancelled order"]})
        if self.payment_status not in (PaymentStatus.AWAITING.value, PaymentStatus.FAILED.value):
            raise ValidationError(
                {"payment_status": [f"Cannot start a payment attempt when payment is {self.payment_status}"]}
            )

        self.raise_(
            PaymentTransactionStarted(
                order_id=str(self.id),
                txn_id=txn_id,
                amount=amount,
                gateway_hash=gateway_hash,
                attempt_number=(self.payment_attempts or 0) + 1,
                initiated_at=datetime.now(UTC),
            )
        )

    def record_payment_success(self, payment_reference=None):
        """Mark the order paid. A pending order is confirmed at the same time."""
        if not self._should_change_payment(PaymentStatus.PAID):
            return

        self.raise_(
            PaymentSucceeded(
                order_id=str(self.id),
                txn_id=self.payment_transaction.txn_id if self.payment_transaction else None,
                payment_reference=payment_reference,
                amount=self.total_amount,
                paid_at=datetime.now(UTC),
            )
        )

        if self.order_status == OrderStatus.PENDING.value:
            self.confirm()

    def record_payment_failure(self, reason=None):
        """Mark the payment failed. The order stays open for another attempt or cash on delivery."""
        if not self._should_change_payment(PaymentStatus.FAILED):
            return

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                **self._contact_fields(),
                txn_id=self.payment_transaction.txn_id if self.payment_transaction else None,
                reason=reason,
                total_amount=self.total_amount,
                failed_at=datetime.now(UTC),
            )
        )

    def refund(self):
        if not self._should_change_payment(PaymentStatus.REFUNDED):
            return
        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                amount=self.total_amount,
                refunded_at=datetime.now(UTC),
            )
        )

    def switch_to_cash_on_delivery(self):
        """Abandon online payment after a failure; the order is confirmed as a cash order."""
        if self.payment_method == PaymentMethod.CASH_ON_DELIVERY.value:
            return
        if self.order_status == OrderStatus.CANCELLED.value:
            raise ValidationError({"order_status": ["Cannot change payment for a cancelled order"]})
        if self.payment_status != PaymentStatus.FAILED.value:
            raise ValidationError(
                {"payment_status": ["Cash on delivery is only offered after a failed online payment"]}
            )

        self.raise_(
            SwitchedToCashOnDelivery(
                order_id=str(self.id),
                switched_at=datetime.now(UTC),
            )
        )

        if self.order_status == OrderStatus.PENDING.value:
            self.confirm()

    def update_payment_status(self, status, reference=None, reason=None):
        """Apply an explicit payment status change (admin or cash collection)."""
        try:
            target = PaymentStatus(status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {status}"]}) from None

        if target == PaymentStatus.PAID:
            self.record_payment_success(payment_reference=reference)
        elif target == PaymentStatus.FAILED:
            self.record_payment_failure(reason=reason)
        elif target == PaymentStatus.REFUNDED:
            self.refund()
        elif target.value != self.payment_status:
            raise ValidationError(
                {"payment_status": ["Start a new payment attempt or switch to cash on delivery instead"]}
            )

    # -------------------------------------------------------------------
    # Delivery attempts
    # -------------------------------------------------------------------
    def _attempt(self, attempt_id):
        attempt = next((a for a in self.delivery_attempts or [] if str(a.id) == str(attempt_id)), None)
        if attempt is None:
            raise ValidationError({"attempt_id": ["Delivery attempt not found"]})
        return attempt

    def _assert_can_attempt_delivery(self):
        if self.returning_to_provider:
            raise ValidationError(
                {"delivery_attempts": ["Order is returning to the provider; no further attempts are allowed"]}
            )
        if self.order_status == OrderStatus.DELIVERED.value:
            raise ValidationError({"delivery_attempts": ["Order has already been delivered"]})
        if self.order_status != OrderStatus.SHIPPED.value:
            raise ValidationError({"delivery_attempts": ["Delivery attempts are only tracked for shipped orders"]})

    def schedule_delivery_attempt(self, scheduled_date, notes=None):
        """Schedule the next delivery attempt. Numbers are max + 1 and never reused."""
        self._assert_can_attempt_delivery()

        attempt_number = max((a.attempt_number for a in self.delivery_attempts or []), default=0) + 1
        attempt_id = str(uuid4())

        self.raise_(
            DeliveryAttemptScheduled(
                order_id=str(self.id),
                attempt_id=attempt_id,
                attempt_number=attempt_number,
                scheduled_date=scheduled_date,
                notes=notes,
                scheduled_at=datetime.now(UTC),
            )
        )
        return self._attempt(attempt_id)

    def _consecutive_failures(self, failing_attempt_id):
        """Trailing run of failed outcomes, counting `failing_attempt_id` as failed."""
        resolved = sorted(
            (
                a
                for a in self.delivery_attempts
                if a.status != DeliveryAttemptStatus.SCHEDULED.value or str(a.id) == str(failing_attempt_id)
            ),
            key=lambda a: a.attempt_number,
        )
        count = 0
        for attempt in reversed(resolved):
            if str(attempt.id) == str(failing_attempt_id) or attempt.status == DeliveryAttemptStatus.FAILED.value:
                count += 1
            else:
                break
        return count

    def record_delivery_outcome(
        self,
        attempt_id,
        outcome,
        failure_reason=None,
        notes=None,
        max_failed_attempts=DEFAULT_MAX_FAILED_ATTEMPTS,
    ):
        """Record what happened on a delivery attempt.

        A delivered outcome delivers the order. After `max_failed_attempts`
        consecutive failures the order starts returning to the provider.
        Re-recording the same outcome is a no-op.
        """
        attempt = self._attempt(attempt_id)

        try:
            outcome = DeliveryAttemptStatus(outcome)
        except ValueError:
            raise ValidationError({"outcome": [f"Unknown delivery outcome: {outcome}"]}) from None
        if outcome == DeliveryAttemptStatus.SCHEDULED:
            raise ValidationError({"outcome": ["Outcome must be delivered or failed"]})
        if max_failed_attempts is None or max_failed_attempts < 1:
            raise ValidationError({"max_failed_attempts": ["Threshold must be at least 1"]})

        if attempt.status == outcome.value:
            return
        if attempt.status != DeliveryAttemptStatus.SCHEDULED.value:
            raise ValidationError(
                {"attempt_id": [f"Outcome already recorded for attempt {attempt.attempt_number}"]}
            )
        self._assert_can_attempt_delivery()

        now = datetime.now(UTC)

        if outcome == DeliveryAttemptStatus.DELIVERED:
            self.raise_(
                DeliveryAttemptSucceeded(
                    order_id=str(self.id),
                    attempt_id=str(attempt.id),
                    attempt_number=attempt.attempt_number,
                    notes=notes,
                    attempted_at=now,
                )
            )
            self.mark_delivered()
            return

        try:
            reason = DeliveryFailureReason(failure_reason)
        except ValueError:
            raise ValidationError(
                {"failure_reason": ["A failure reason is required for a failed delivery attempt"]}
            ) from None

        consecutive = self._consecutive_failures(attempt.id)
        self.raise_(
            DeliveryAttemptFailed(
                order_id=str(self.id),
                attempt_id=str(attempt.id),
                attempt_number=attempt.attempt_number,
                failure_reason=reason.value,
                notes=notes,
                consecutive_failures=consecutive,
                attempted_at=now,
            )
        )

        if consecutive >= max_failed_attempts:
            self.raise_(
                OrderReturningToProvider(
                    order_id=str(self.id),
                    **self._contact_fields(),
                    return_reason=f"Multiple failed delivery attempts: {FAILURE_REASON_LABELS[reason.value]}",
                    failed_attempts=consecutive,
                    refund_due=self.is_online and self.payment_status == PaymentStatus.PAID.value,
                    total_amount=self.total_amount,
                    returned_at=now,
                )
            )

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    def _transaction_with_status(self, status):
        if not self.payment_transaction:
            return None
        txn = self.payment_transaction
        return PaymentTransaction(
            txn_id=txn.txn_id,
            amount=txn.amount,
            status=status,
            gateway_hash=txn.gateway_hash,
            initiated_at=txn.initiated_at,
        )

    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.customer_id = event.customer_id
        self.contact = ContactSnapshot(
            name=event.customer_name,
            email=event.customer_email,
            phone=event.customer_phone,
        )
        self.shipping_address = event.shipping_address
        self.notes = event.notes
        self.cart_id = event.cart_id

        # Reconstruct items from JSON (includes IDs for deterministic replay)
        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [LineItem(**item_data) for item_data in items_data]

        self.subtotal = event.subtotal
        self.coupon_code = event.coupon_code
        self.coupon_discount = event.coupon_discount or 0.0
        self.campaign_id = event.campaign_id
        self.campaign_discount = event.campaign_discount or 0.0
        self.total_amount = event.total_amount

        self.payment_method = event.payment_method
        self.payment_status = event.payment_status
        self.payment_attempts = 0
        self.order_status = OrderStatus.PENDING.value
        self.returning_to_provider = False
        self.refund_due = False
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

    @apply
    def _on_order_confirmed(self, event: OrderConfirmed):
        self.order_status = OrderStatus.CONFIRMED.value
        self.updated_at = event.confirmed_at

    @apply
    def _on_order_processing(self, event: OrderProcessing):
        self.order_status = OrderStatus.PROCESSING.value
        self.updated_at = event.started_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self.order_status = OrderStatus.SHIPPED.value
        self.tracking_number = event.tracking_number
        self.tracking_provider = event.tracking_provider
        self.shipped_at = event.shipped_at
        self.updated_at = event.shipped_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.order_status = OrderStatus.DELIVERED.value
        self.delivered_at = event.delivered_at
        self.delivery_status = "delivered"
        self.updated_at = event.delivered_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.order_status = OrderStatus.CANCELLED.value
        self.cancellation_reason = event.reason
        self.cancelled_by = event.cancelled_by
        self.updated_at = event.cancelled_at

    @apply
    def _on_status_overridden(self, event: OrderStatusOverridden):
        self.order_status = event.new_status
        if event.new_status in (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value) and not self.shipped_at:
            self.shipped_at = event.overridden_at
        if event.new_status == OrderStatus.DELIVERED.value:
            self.delivered_at = event.overridden_at
            self.delivery_status = "delivered"
        self.updated_at = event.overridden_at

    @apply
    def _on_payment_transaction_started(self, event: PaymentTransactionStarted):
        self.payment_status = PaymentStatus.AWAITING.value
        self.payment_attempts = event.attempt_number
        self.payment_transaction = PaymentTransaction(
            txn_id=event.txn_id,
            amount=event.amount,
            status="initiated",
            gateway_hash=event.gateway_hash,
            initiated_at=event.initiated_at,
        )
        self.updated_at = event.initiated_at

    @apply
    def _on_payment_succeeded(self, event: PaymentSucceeded):
        self.payment_status = PaymentStatus.PAID.value
        self.payment_reference = event.payment_reference or event.txn_id
        self.payment_transaction = self._transaction_with_status("success")
        self.updated_at = event.paid_at

    @apply
    def _on_payment_failed(self, event: PaymentFailed):
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_transaction = self._transaction_with_status("failed")
        self.updated_at = event.failed_at

    @apply
    def _on_payment_refunded(self, event: PaymentRefunded):
        self.payment_status = PaymentStatus.REFUNDED.value
        self.refund_due = False
        self.updated_at = event.refunded_at

    @apply
    def _on_switched_to_cash_on_delivery(self, event: SwitchedToCashOnDelivery):
        self.payment_method = PaymentMethod.CASH_ON_DELIVERY.value
        self.payment_status = PaymentStatus.PENDING.value
        self.updated_at = event.switched_at

    @apply
    def _on_delivery_attempt_scheduled(self, event: DeliveryAttemptScheduled):
        self.add_delivery_attempts(
            DeliveryAttempt(
                id=event.attempt_id,
                attempt_number=event.attempt_number,
                scheduled_date=event.scheduled_date,
                status=DeliveryAttemptStatus.SCHEDULED.value,
                notes=event.notes,
            )
        )
        self.delivery_status = "attempt_scheduled"
        self.updated_at = event.scheduled_at

    @apply
    def _on_delivery_attempt_failed(self, event: DeliveryAttemptFailed):
        attempt = next((a for a in self.delivery_attempts if str(a.id) == str(event.attempt_id)), None)
        if attempt:
            attempt.status = DeliveryAttemptStatus.FAILED.value
            attempt.failure_reason = event.failure_reason
            attempt.notes = event.notes or attempt.notes
            attempt.attempted_at = event.attempted_at
        self.delivery_status = f"attempt_{event.attempt_number}_failed"
        self.updated_at = event.attempted_at

    @apply
    def _on_delivery_attempt_succeeded(self, event: DeliveryAttemptSucceeded):
        attempt = next((a for a in self.delivery_attempts if str(a.id) == str(event.attempt_id)), None)
        if attempt:
            attempt.status = DeliveryAttemptStatus.DELIVERED.value
            attempt.notes = event.notes or attempt.notes
            attempt.attempted_at = event.attempted_at
        self.updated_at = event.attempted_at

    @apply
    def _on_returning_to_provider(self, event: OrderReturningToProvider):
        self.returning_to_provider = True
        self.return_reason = event.return_reason
        self.refund_due = event.refund_due
        self.delivery_status = "returning_to_provider"
        self.updated_at = event.returned_at
