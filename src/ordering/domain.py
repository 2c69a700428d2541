"""Ordering bounded context — Checkout, Orders, Payments and Delivery.

Handles the order lifecycle (event-sourced), promotions and shopping carts
(CQRS), the checkout flow that prices a cart and places the order, the hosted
payment gateway redirect, and failed-delivery recovery.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
