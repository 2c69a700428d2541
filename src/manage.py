"""Orderflow database management CLI.

Creates and drops the relational tables of the CQRS aggregates and
projections (carts, promotions, order timeline, notifications). Orders
themselves live in the event store.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db --domain notifications # Drop one domain's tables
"""

import argparse
import sys

from rich.console import Console

console = Console()

DOMAIN_NAMES = ["ordering", "notifications"]


def _domains(names=None):
    from notifications.domain import notifications
    from ordering.domain import ordering

    all_domains = {"ordering": ordering, "notifications": notifications}
    return {name: all_domains[name] for name in names} if names else all_domains


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    from ordering.utils.db import setup_db

    for name, domain in _domains(domains).items():
        console.print(f"Initializing [bold]{name}[/bold] domain...")
        domain.init()
        setup_db(domain)
        console.print(f"  [green]{name} schema ready.[/green]")

    console.print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    from ordering.utils.db import drop_db

    for name, domain in _domains(domains).items():
        console.print(f"Initializing [bold]{name}[/bold] domain...")
        domain.init()
        drop_db(domain)
        console.print(f"  [yellow]{name} schema dropped.[/yellow]")

    console.print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Orderflow database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("setup-db", "Create all database tables"), ("drop-db", "Drop all database tables")):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument(
            "--domain",
            choices=DOMAIN_NAMES,
            nargs="*",
            help="Specific domain(s) (default: all)",
        )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
