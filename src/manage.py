"""OrderEase management CLI.

Provides commands to create and drop the database schema and to run the
periodic cleanup job.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py cleanup    # Purge old completed orders and unused offline products
"""

import argparse
import sys


def _domain():
    from orderease.config import configure_domain, get_settings
    from orderease.domain import orderease
    from orderease.shared.identity import configure_generator

    settings = get_settings()
    configure_generator(settings.node_id)
    configure_domain(orderease, settings)
    print("Initializing orderease domain...")
    orderease.init()
    return orderease


def setup_database():
    """Create the database schema."""
    from orderease.utils.db import setup_db

    domain = _domain()
    print("Creating database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    """Drop the database schema."""
    from orderease.utils.db import drop_db

    domain = _domain()
    print("Dropping database schema...")
    drop_db(domain)
    print("Done.")


def cleanup():
    """Run the retention cleanup once."""
    from orderease.maintenance.cleanup import run_cleanup

    domain = _domain()
    with domain.domain_context():
        removed = run_cleanup()
    print(f"Removed {removed['orders']} completed orders and {removed['products']} offline products.")


def main():
    parser = argparse.ArgumentParser(description="OrderEase management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("cleanup", help="Delete completed orders older than three months and unused offline products")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "cleanup":
        cleanup()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
