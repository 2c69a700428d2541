"""Notifications bounded context — customer messages for order lifecycle events.

Consumes Ordering events (confirmation, payment failure, shipment, delivery,
cancellation, return to provider) and queues one Notification per channel
(Email, plus SMS when a phone number is known). Dispatch failures are
retried with exponential backoff; nothing here can fail an order transition.
"""

import structlog
from protean.domain import Domain

notifications = Domain(name="notifications")

logger = structlog.get_logger(__name__)
