"""Order placement — command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    customer_name = String(required=True, max_length=255)
    customer_email = String(max_length=254)
    customer_phone = String(required=True, max_length=20)
    shipping_address = String(required=True, max_length=1000)
    items = Text(required=True)  # JSON: list of item dicts
    subtotal = Float(required=True)
    coupon_code = String(max_length=50)
    coupon_discount = Float(default=0.0)
    campaign_id = Identifier()
    campaign_discount = Float(default=0.0)
    total_amount = Float(required=True)
    payment_method = String(required=True, max_length=30)
    cart_id = Identifier()
    notes = String(max_length=1000)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        order = Order.place(
            customer_id=command.customer_id,
            contact={
                "name": command.customer_name,
                "email": command.customer_email,
                "phone": command.customer_phone,
            },
            shipping_address=command.shipping_address,
            items_data=items_data,
            pricing={
                "subtotal": command.subtotal,
                "coupon_code": command.coupon_code,
                "coupon_discount": command.coupon_discount or 0.0,
                "campaign_id": command.campaign_id,
                "campaign_discount": command.campaign_discount or 0.0,
                "total_amount": command.total_amount,
            },
            payment_method=command.payment_method,
            cart_id=command.cart_id,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
