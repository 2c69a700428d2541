import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    from ordering.domain import ordering

    with ordering_bed.domain_context():
        yield
        ordering.providers["default"]._data_reset()
        ordering.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _collaborators():
    """Fresh fake gateway, carrier and inventory for every test."""
    from ordering.carrier import reset_carrier
    from ordering.gateway import reset_gateway
    from ordering.inventory import reset_inventory

    reset_gateway()
    reset_carrier()
    reset_inventory()
    yield
    reset_gateway()
    reset_carrier()
    reset_inventory()


# ---------------------------------------------------------------------------
# Shared factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping():
    return {
        "full_name": "Asha Verma",
        "phone": "98765 43210",
        "email": "asha@example.com",
        "house_number": "12B",
        "colony": "Lake View Colony",
        "landmark": "City Park",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }


@pytest.fixture()
def place_order():
    """Place an order directly through the PlaceOrder command and return its id."""
    import json

    from ordering.order.creation import PlaceOrder
    from protean import current_domain

    def _place(payment_method="cash_on_delivery", total_amount=1000.0, cart_id=None, **overrides):
        fields = {
            "customer_id": "cust-001",
            "customer_name": "Asha Verma",
            "customer_email": "asha@example.com",
            "customer_phone": "9876543210",
            "shipping_address": "12B, Lake View Colony, Near City Park, Pune, Maharashtra - 411001",
            "items": json.dumps(
                [{"product_id": "prod-001", "name": "Brass Lamp", "unit_price": 500.0, "quantity": 2}]
            ),
            "subtotal": 1000.0,
            "total_amount": total_amount,
            "payment_method": payment_method,
            "cart_id": cart_id,
        }
        fields.update(overrides)
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)

    return _place


@pytest.fixture()
def shipped_order(place_order):
    """A confirmed cash order that has been handed to the shipping provider."""
    from ordering.order.transitions import ConfirmOrder, MarkProcessing, MarkShipped
    from protean import current_domain

    def _ship(**kwargs):
        order_id = place_order(**kwargs)
        current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
        current_domain.process(MarkProcessing(order_id=order_id), asynchronous=False)
        current_domain.process(
            MarkShipped(order_id=order_id, tracking_number="TRK-1001", tracking_provider="Delhivery"),
            asynchronous=False,
        )
        return order_id

    return _ship
