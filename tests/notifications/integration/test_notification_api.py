"""Integration tests for Notification API endpoints via TestClient."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from notifications.api.routes import router
from notifications.channel import get_channel
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationType,
)
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


def _queue(order_id="ord-api", channel=NotificationChannel.EMAIL.value, recipient="asha@example.com"):
    notification = Notification.create(
        recipient=recipient,
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
        channel=channel,
        body="Your order has been confirmed.",
        subject="Order Confirmed",
        order_id=order_id,
    )
    current_domain.repository_for(Notification).add(notification)
    return str(notification.id)


class TestNotificationHistory:
    def test_lists_notifications_for_order(self, client):
        _queue()
        _queue(channel=NotificationChannel.SMS.value, recipient="9876543210")
        _queue(order_id="ord-other")

        response = client.get("/notifications/orders/ord-api")

        assert response.status_code == 200
        notifications = response.json()["notifications"]
        assert sorted(n["channel"] for n in notifications) == ["Email", "SMS"]
        assert all(n["status"] == "Sent" for n in notifications)

    def test_unknown_order_has_empty_history(self, client):
        response = client.get("/notifications/orders/nope")
        assert response.status_code == 200
        assert response.json()["notifications"] == []


class TestNotificationLifecycleAPI:
    def test_retry_failed(self, client):
        get_channel("Email").configure(should_succeed=False)
        notification_id = _queue()
        get_channel("Email").configure(should_succeed=True)

        response = client.post(f"/notifications/{notification_id}/retry")

        assert response.status_code == 201
        history = client.get("/notifications/orders/ord-api").json()["notifications"]
        assert history[0]["status"] == "Sent"
        assert history[0]["retry_count"] == 1

    def test_retry_sent_returns_400(self, client):
        notification_id = _queue()
        assert client.post(f"/notifications/{notification_id}/retry").status_code == 400

    def test_cancel_failed(self, client):
        get_channel("Email").configure(should_succeed=False)
        notification_id = _queue()

        response = client.put(f"/notifications/{notification_id}/cancel", json={"reason": "Order cancelled"})

        assert response.status_code == 200
        history = client.get("/notifications/orders/ord-api").json()["notifications"]
        assert history[0]["status"] == "Cancelled"
        assert history[0]["failure_reason"] == "Order cancelled"

    def test_cancel_requires_reason(self, client):
        notification_id = _queue()
        assert client.put(f"/notifications/{notification_id}/cancel", json={}).status_code == 422

    def test_unknown_notification_returns_404(self, client):
        assert client.post("/notifications/does-not-exist/retry").status_code == 404


class TestProcessDueAPI:
    def test_sweep_requeues_due_failures(self, client):
        get_channel("Email").configure(should_succeed=False)
        _queue()
        get_channel("Email").configure(should_succeed=True)

        as_of = (datetime.now(UTC) + timedelta(minutes=5)).isoformat()
        response = client.post("/notifications/maintenance/process-due", json={"as_of": as_of})

        assert response.status_code == 200
        assert response.json()["requeued"] == 1
        assert len(get_channel("Email").sent) == 1

    def test_sweep_without_body_uses_now(self, client):
        get_channel("Email").configure(should_succeed=False)
        _queue()

        response = client.post("/notifications/maintenance/process-due")

        assert response.status_code == 200
        assert response.json()["requeued"] == 0
