"""Cross-domain event contracts for Ordering domain events.

These classes define the event shape for consumption by the Notifications
domain. They are registered as external events via
domain.register_external_event() with matching __type__ strings so Protean's
stream deserialization works correctly.

The source-of-truth events are in src/ordering/order/events.py. Field sets
must stay identical to the source events.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String


class OrderConfirmed(BaseEvent):
    """The order is ready for fulfillment.

    Consumed by the Notifications domain to send the order confirmation.
    """

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


class PaymentFailed(BaseEvent):
    """The gateway reported a failed payment."""

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


class OrderShipped(BaseEvent):
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


class OrderDelivered(BaseEvent):
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    delivered_at = DateTime(required=True)


class OrderCancelled(BaseEvent):
    """An order was cancelled before shipment."""

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


class OrderReturningToProvider(BaseEvent):
    """Delivery failed too many times and the parcel goes back to the provider."""

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
