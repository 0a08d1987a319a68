"""Dropstream management CLI.

Usage:
    python src/manage.py setup-db              # Create all tables
    python src/manage.py drop-db               # Drop all tables
    python src/manage.py sync-tracking         # Run one tracking reconciliation pass
    python src/manage.py retry-notifications   # Resend failed emails still under their retry budget
"""

import argparse
import json
import sys

from ordering.utils.logging import configure_logging


def _ordering():
    from ordering.domain import ordering

    ordering.init()
    return ordering


def setup_database():
    from ordering.utils.db import setup_db

    print("Creating ordering database schema...")
    setup_db(_ordering())
    print("Done.")


def drop_database():
    from ordering.utils.db import drop_db

    print("Dropping ordering database schema...")
    drop_db(_ordering())
    print("Done.")


def sync_tracking():
    from ordering.order.tracking import TrackingReconciliationJob

    with _ordering().domain_context():
        report = TrackingReconciliationJob().run()
    print(json.dumps(report.to_dict(), indent=2))
    return report


def retry_notifications():
    from ordering.notification.retry import redeliver_failed_notifications

    with _ordering().domain_context():
        summary = redeliver_failed_notifications()
    print(json.dumps(summary, indent=2))
    return summary


def main():
    parser = argparse.ArgumentParser(description="Dropstream management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("sync-tracking", help="Pull supplier tracking into in-flight orders")
    subparsers.add_parser("retry-notifications", help="Resend failed notification emails")

    args = parser.parse_args()
    configure_logging()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "sync-tracking":
        report = sync_tracking()
        sys.exit(1 if any(r.error for r in report.results) else 0)
    elif args.command == "retry-notifications":
        retry_notifications()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
