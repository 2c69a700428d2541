"""Protean Engine runner for Orderflow domains.

Starts Engine workers that process events asynchronously in production:
- Ordering: order timeline projector and order side effects (campaign
  counter, pickup request, cart clearing, inventory release)
- Notifications: ordering event consumer, dispatcher and retries

Usage:
    python src/server.py                        # Run both domain engines
    python src/server.py --domain ordering      # Run only the ordering engine
    python src/server.py --domain notifications # Run only the notifications engine
"""

import argparse
import asyncio

from ordering.utils.logging import configure_logging
from protean.server.engine import Engine

DOMAIN_NAMES = ["ordering", "notifications"]


def _get_domain(name):
    """Import and initialize a domain by name."""
    if name == "ordering":
        from ordering.domain import ordering

        ordering.init()
        return ordering
    elif name == "notifications":
        from notifications.domain import notifications

        notifications.init()
        return notifications
    else:
        raise ValueError(f"Unknown domain: {name}")


async def run(domain_names):
    engines = []
    for name in domain_names:
        domain = _get_domain(name)
        engines.append(Engine(domain))

    await asyncio.gather(*(engine.run() for engine in engines))


def main():
    parser = argparse.ArgumentParser(description="Orderflow Engine runner")
    parser.add_argument(
        "--domain",
        choices=DOMAIN_NAMES,
        help="Run a single domain engine (default: run all)",
    )
    args = parser.parse_args()

    configure_logging()
    domain_names = [args.domain] if args.domain else DOMAIN_NAMES

    asyncio.run(run(domain_names))


if __name__ == "__main__":
    main()
