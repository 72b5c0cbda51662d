"""Group-buy management CLI.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py auto-complete-orders     # Complete orders of long-closed collections
    python src/manage.py completion-stats         # Orders waiting for auto-completion
    python src/manage.py purge-cart-items         # Delete long-inactive cart lines
"""

import argparse
import sys
from datetime import timedelta


def _domain():
    from groupbuy.domain import groupbuy

    groupbuy.init()
    return groupbuy


def setup_databases():
    """Create database schemas for every SQL provider."""
    from groupbuy.utils.db import setup_db

    print("Initializing groupbuy domain...")
    providers = setup_db(_domain())
    print(f"  Schema ready on: {', '.join(providers) or 'no SQL providers'}.")


def drop_databases():
    """Drop database schemas for every SQL provider."""
    from groupbuy.utils.db import drop_db

    print("Initializing groupbuy domain...")
    providers = drop_db(_domain())
    print(f"  Schema dropped on: {', '.join(providers) or 'no SQL providers'}.")


def run_auto_completion(grace_days=3):
    from groupbuy.order.completion import auto_complete_orders

    domain = _domain()
    with domain.domain_context():
        result = auto_complete_orders(grace=timedelta(days=grace_days))

    print(f"Completed {result.completed} order(s).")
    for error in result.errors:
        print(f"  {error}")
    return result


def show_completion_stats(grace_days=3):
    from groupbuy.order.completion import auto_completion_stats

    domain = _domain()
    with domain.domain_context():
        stats = auto_completion_stats(grace=timedelta(days=grace_days))

    print(f"Pending: {stats['pending']}  Overdue: {stats['overdue']}  (grace {stats['grace_days']} days)")
    return stats


def purge_cart_items(retention_days=30):
    from groupbuy.accounts.guest_merge import purge_inactive_cart_items

    domain = _domain()
    with domain.domain_context():
        purged = purge_inactive_cart_items(older_than=timedelta(days=retention_days))

    print(f"Purged {purged} inactive cart line(s).")
    return purged


def main(argv=None):
    from groupbuy.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="Group-buy management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    complete_parser = subparsers.add_parser("auto-complete-orders", help="Complete orders of closed collections")
    complete_parser.add_argument("--grace-days", type=int, default=3)

    stats_parser = subparsers.add_parser("completion-stats", help="Count orders awaiting auto-completion")
    stats_parser.add_argument("--grace-days", type=int, default=3)

    purge_parser = subparsers.add_parser("purge-cart-items", help="Delete cart lines inactive past retention")
    purge_parser.add_argument("--retention-days", type=int, default=30)

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "auto-complete-orders":
        result = run_auto_completion(args.grace_days)
        if result.errors:
            sys.exit(1)
    elif args.command == "completion-stats":
        show_completion_stats(args.grace_days)
    elif args.command == "purge-cart-items":
        purge_cart_items(args.retention_days)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
