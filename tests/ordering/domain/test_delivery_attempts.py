"""Domain tests for delivery attempts and return-to-provider escalation."""

from datetime import date

import pytest
from ordering.order.events import OrderReturningToProvider
from ordering.order.order import DeliveryAttemptStatus, Order, OrderStatus
from protean.exceptions import ValidationError


def _shipped_order(payment_method="cash_on_delivery"):
    order = Order.place(
        customer_id="cust-001",
        contact={"name": "Asha Verma", "email": "asha@example.com", "phone": "9876543210"},
        shipping_address="12B, Pune, Maharashtra - 411001",
        items_data=[{"product_id": "prod-001", "name": "Brass Lamp", "unit_price": 500.0, "quantity": 2}],
        pricing={"subtotal": 1000.0, "total_amount": 1000.0},
        payment_method=payment_method,
    )
    if payment_method == "online_gateway":
        order.start_payment_transaction("TXN1", 1000.0)
        order.record_payment_success("MIH-1")
    else:
        order.confirm()
    order.mark_processing()
    order.mark_shipped(tracking_number="TRK-1")
    return order


def _fail(order, reason="receiver_absent"):
    attempt = order.schedule_delivery_attempt(date(2026, 3, 2))
    order.record_delivery_outcome(attempt.id, "failed", failure_reason=reason)
    return attempt


class TestScheduling:
    def test_attempt_numbers_are_sequential(self):
        order = _shipped_order()
        first = _fail(order)
        second = order.schedule_delivery_attempt(date(2026, 3, 3), notes="Call before arriving")

        assert first.attempt_number == 1
        assert second.attempt_number == 2
        assert second.status == DeliveryAttemptStatus.SCHEDULED.value
        assert order.delivery_status == "attempt_scheduled"

    def test_only_shipped_orders(self):
        order = _shipped_order()
        order.mark_delivered()
        with pytest.raises(ValidationError) as exc:
            order.schedule_delivery_attempt(date(2026, 3, 2))
        assert "delivery_attempts" in exc.value.messages

    def test_not_before_shipment(self):
        order = Order.place(
            customer_id="c",
            contact={"name": "A", "phone": "9876543210"},
            shipping_address="x",
            items_data=[{"product_id": "p", "name": "Lamp", "unit_price": 10.0, "quantity": 1}],
            pricing={"total_amount": 10.0},
            payment_method="cash_on_delivery",
        )
        with pytest.raises(ValidationError):
            order.schedule_delivery_attempt(date(2026, 3, 2))


class TestOutcomes:
    def test_delivered_outcome_delivers_order(self):
        order = _shipped_order()
        attempt = order.schedule_delivery_attempt(date(2026, 3, 2))
        order.record_delivery_outcome(attempt.id, "delivered")

        assert order.order_status == OrderStatus.DELIVERED.value
        assert order.delivery_status == "delivered"
        assert order.delivery_attempts[0].status == DeliveryAttemptStatus.DELIVERED.value

    def test_failed_outcome_needs_reason(self):
        order = _shipped_order()
        attempt = order.schedule_delivery_attempt(date(2026, 3, 2))
        with pytest.raises(ValidationError) as exc:
            order.record_delivery_outcome(attempt.id, "failed")
        assert "failure_reason" in exc.value.messages

    def test_failed_outcome_updates_delivery_status(self):
        order = _shipped_order()
        _fail(order, reason="phone_switched_off")
        assert order.delivery_status == "attempt_1_failed"
        assert order.delivery_attempts[0].failure_reason == "phone_switched_off"

    def test_recording_same_outcome_twice_is_noop(self):
        order = _shipped_order()
        attempt = _fail(order)
        events_before = len(order._events)
        order.record_delivery_outcome(attempt.id, "failed", failure_reason="receiver_absent")
        assert len(order._events) == events_before

    def test_conflicting_outcome_rejected(self):
        order = _shipped_order()
        attempt = _fail(order)
        with pytest.raises(ValidationError):
            order.record_delivery_outcome(attempt.id, "delivered")

    def test_unknown_attempt(self):
        with pytest.raises(ValidationError) as exc:
            _shipped_order().record_delivery_outcome("nope", "delivered")
        assert "attempt_id" in exc.value.messages


class TestEscalation:
    def test_three_failures_return_to_provider(self):
        order = _shipped_order()
        for reason in ("receiver_absent", "phone_switched_off", "wrong_address"):
            _fail(order, reason)

        assert order.returning_to_provider is True
        assert order.return_reason == "Multiple failed delivery attempts: Wrong or incomplete address"
        assert order.delivery_status == "returning_to_provider"
        assert order.refund_due is False

    def test_no_attempts_after_escalation(self):
        order = _shipped_order()
        for _ in range(3):
            _fail(order)
        with pytest.raises(ValidationError) as exc:
            order.schedule_delivery_attempt(date(2026, 3, 9))
        assert "delivery_attempts" in exc.value.messages

    def test_prepaid_order_flagged_for_refund(self):
        order = _shipped_order("online_gateway")
        for _ in range(3):
            _fail(order)
        escalation = [e for e in order._events if isinstance(e, OrderReturningToProvider)][0]
        assert escalation.refund_due is True
        assert order.refund_due is True

    def test_threshold_is_configurable(self):
        order = _shipped_order()
        attempt = order.schedule_delivery_attempt(date(2026, 3, 2))
        order.record_delivery_outcome(attempt.id, "failed", failure_reason="refused", max_failed_attempts=1)
        assert order.returning_to_provider is True

    def test_two_failures_do_not_escalate(self):
        order = _shipped_order()
        _fail(order)
        _fail(order)
        assert order.returning_to_provider is False
