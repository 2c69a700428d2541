"""Shared BDD fixtures and step definitions for the Notifications domain."""

import pytest
from notifications.notification.events import (
    NotificationCancelled,
    NotificationCreated,
    NotificationFailed,
    NotificationRetried,
    NotificationSent,
)
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationType,
)
from pytest_bdd import given, parsers, then

_NOTIFICATION_EVENT_CLASSES = {
    "NotificationCreated": NotificationCreated,
    "NotificationSent": NotificationSent,
    "NotificationFailed": NotificationFailed,
    "NotificationCancelled": NotificationCancelled,
    "NotificationRetried": NotificationRetried,
}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _notification(order_id="ord-bdd"):
    return Notification.create(
        recipient="asha@example.com",
        notification_type=NotificationType.SHIPPING_UPDATE.value,
        channel=NotificationChannel.EMAIL.value,
        body="Your order is on its way.",
        subject="Shipped",
        order_id=order_id,
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a new notification for order "{order_id}"'),
    target_fixture="notification",
)
def new_notification(order_id):
    return _notification(order_id)


@given("a pending notification", target_fixture="notification")
def pending_notification():
    n = _notification()
    n._events.clear()
    return n


@given("a sent notification", target_fixture="notification")
def sent_notification():
    n = _notification()
    n._events.clear()
    n.mark_sent()
    n._events.clear()
    return n


@given("a failed notification", target_fixture="notification")
def failed_notification():
    n = _notification()
    n._events.clear()
    n.mark_failed("Delivery error")
    n._events.clear()
    return n


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the notification status is "{status}"'))
def notification_status_is(notification, status):
    assert notification.status == status


@then(parsers.cfparse("a {event_type} event is raised"))
def notification_event_raised(notification, event_type):
    event_cls = _NOTIFICATION_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in notification._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in notification._events]}"


@then("the action is rejected")
def action_rejected(error):
    assert error["exc"] is not None
