"""Integration tests for Event Sourcing specifics — event store round-trips,
event replay, and aggregate reconstruction.
"""

from datetime import date

from ordering.order.delivery import RecordDeliveryOutcome, ScheduleDeliveryAttempt
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.order.transitions import ConfirmOrder
from protean import current_domain


def _event_types(order_id):
    messages = current_domain.event_store.store.read(f"ordering::order-{order_id}")
    return [m.metadata.headers.type for m in messages]


class TestEventStorePersistence:
    def test_placement_is_the_first_event(self, place_order):
        order_id = place_order()
        assert _event_types(order_id)[0] == "Ordering.OrderPlaced.v1"

    def test_events_accumulate_in_order(self, shipped_order):
        order_id = shipped_order()
        assert _event_types(order_id) == [
            "Ordering.OrderPlaced.v1",
            "Ordering.OrderConfirmed.v1",
            "Ordering.OrderProcessing.v1",
            "Ordering.OrderShipped.v1",
        ]

    def test_idempotent_transition_writes_nothing(self, place_order):
        order_id = place_order()
        current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
        current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)

        assert _event_types(order_id).count("Ordering.OrderConfirmed.v1") == 1


class TestAggregateReconstruction:
    def test_replay_restores_pricing_and_contact(self, place_order):
        order_id = place_order(coupon_code="SAVE10", coupon_discount=100.0, total_amount=900.0)

        order = current_domain.repository_for(Order).get(order_id)

        assert order.subtotal == 1000.0
        assert order.coupon_code == "SAVE10"
        assert order.coupon_discount == 100.0
        assert order.total_amount == 900.0
        assert order.contact.name == "Asha Verma"
        assert order.items[0].quantity == 2

    def test_replay_restores_delivery_attempts(self, shipped_order):
        order_id = shipped_order()
        attempt_id = current_domain.process(
            ScheduleDeliveryAttempt(order_id=order_id, scheduled_date=date(2026, 10, 20), notes="Call first"),
            asynchronous=False,
        )
        current_domain.process(
            RecordDeliveryOutcome(
                order_id=order_id,
                attempt_id=attempt_id,
                outcome="failed",
                failure_reason="refused",
            ),
            asynchronous=False,
        )

        order = current_domain.repository_for(Order).get(order_id)

        attempt = order.delivery_attempts[0]
        assert str(attempt.id) == attempt_id
        assert attempt.status == "failed"
        assert attempt.failure_reason == "refused"
        assert attempt.notes == "Call first"
        assert order.order_status == OrderStatus.SHIPPED.value
        assert order.payment_status == PaymentStatus.PENDING.value
