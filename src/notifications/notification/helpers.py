"""Shared helpers for notification event handlers.

Provides the common pattern: render template → pick channels from the
contact details on the event → create one Notification per channel.
"""

import json

import structlog
from notifications.notification.notification import Notification, NotificationChannel
from notifications.templates import get_template
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def _recipient_for(channel: str, email: str | None, phone: str | None) -> str | None:
    if channel == NotificationChannel.EMAIL.value:
        return email or None
    if channel == NotificationChannel.SMS.value:
        return phone or None
    return None


def _already_created(source_event_id: str | None, channel: str) -> bool:
    """At-least-once delivery: an event that is seen twice must not notify twice."""
    if not source_event_id:
        return False
    existing = (
        current_domain.repository_for(Notification)
        ._dao.query.filter(source_event_id=source_event_id, channel=channel)
        .all()
        .items
    )
    return bool(existing)


def create_order_notifications(
    order_id: str,
    customer_id: str | None,
    email: str | None,
    phone: str | None,
    notification_type: str,
    context: dict,
    source_event_type: str | None = None,
    source_event_id: str | None = None,
):
    """Create notification(s) for an order's customer.

    One Notification per template channel that has a recipient: Email when
    an address is known, SMS when a phone number is known.

    Returns:
        List of notification IDs created.
    """
    template_cls = get_template(notification_type)
    rendered = template_cls.render(context)

    notification_ids = []
    repo = current_domain.repository_for(Notification)

    for channel in template_cls.default_channels:
        recipient = _recipient_for(channel, email, phone)
        if recipient is None or _already_created(source_event_id, channel):
            continue

        notification = Notification.create(
            recipient=recipient,
            notification_type=notification_type,
            channel=channel,
            subject=rendered.get("subject"),
            body=rendered["body"],
            customer_id=customer_id,
            order_id=order_id,
            source_event_type=source_event_type,
            source_event_id=source_event_id,
            context_data=json.dumps(context),
        )
        repo.add(notification)
        notification_ids.append(str(notification.id))

    if not notification_ids:
        logger.info(
            "No notifications created",
            order_id=order_id,
            notification_type=notification_type,
        )
        return []

    logger.info(
        "Notifications created",
        order_id=order_id,
        notification_type=notification_type,
        count=len(notification_ids),
    )

    return notification_ids
