"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Events are persisted to the event store and used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating the order timeline projection
- Side effects inside Ordering (campaign counter, cart clearing, shipping
  label, inventory release)
- Customer notifications in the Notifications domain

Events that the Notifications domain consumes carry the contact snapshot
(customer_name/customer_email/customer_phone) so the consumer never has to
read the order back.
"""

from protean.fields import Boolean, Date, DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A priced cart was turned into an order at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String(required=True)
    customer_email = String()
    customer_phone = String(required=True)
    shipping_address = String(required=True)
    items = Text(required=True)  # JSON: list of line item dicts (with ids)
    subtotal = Float(required=True)
    coupon_code = String()
    coupon_discount = Float(default=0.0)
    campaign_id = Identifier()
    campaign_discount = Float(default=0.0)
    total_amount = Float(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    cart_id = Identifier()
    notes = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderConfirmed:
    """The order is ready for fulfillment (cash order placed, or online payment received)."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    total_amount = Float(required=True)
    payment_method = String(required=True)
    cart_id = Identifier()
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    """The warehouse started picking and packing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """The order was handed to the shipping provider."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    tracking_number = String()
    tracking_provider = String()
    tracking_unavailable = Boolean(default=False)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipment.

    `release_inventory` is set when stock had been committed to the order
    (cancelled from Confirmed or Processing).
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    reason = String(required=True)
    cancelled_by = String(required=True)
    release_inventory = Boolean(default=False)
    payment_status = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusOverridden:
    """An administrator moved the order forward outside the normal transitions."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    reason = String()
    overridden_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentTransactionStarted:
    """A hosted-gateway redirect was prepared (one per attempt, each with a new txn id)."""

    __version__ = 1

    order_id = Identifier(required=True)
    txn_id = String(required=True)
    amount = Float(required=True)
    gateway_hash = Text()
    attempt_number = Integer(required=True)
    initiated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentSucceeded:
    __version__ = 1

    order_id = Identifier(required=True)
    txn_id = String()
    payment_reference = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The gateway reported a failed payment; the order stays open for a retry or cash on delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    txn_id = String()
    reason = String()
    total_amount = Float(required=True)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class SwitchedToCashOnDelivery:
    """The customer gave up on online payment and will pay on delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    switched_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryAttemptScheduled:
    __version__ = 1

    order_id = Identifier(required=True)
    attempt_id = Identifier(required=True)
    attempt_number = Integer(required=True)
    scheduled_date = Date(required=True)
    notes = String()
    scheduled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryAttemptFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    attempt_id = Identifier(required=True)
    attempt_number = Integer(required=True)
    failure_reason = String(required=True)
    notes = String()
    consecutive_failures = Integer(required=True)
    attempted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class DeliveryAttemptSucceeded:
    __version__ = 1

    order_id = Identifier(required=True)
    attempt_id = Identifier(required=True)
    attempt_number = Integer(required=True)
    notes = String()
    attempted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderReturningToProvider:
    """Delivery failed too many times; the parcel goes back to the shipping provider.

    `refund_due` is set for orders that were already paid online.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    return_reason = String(required=True)
    failed_attempts = Integer(required=True)
    refund_due = Boolean(default=False)
    total_amount = Float(required=True)
    returned_at = DateTime(required=True)
