"""Command-line interface for storefront maintenance."""

import argparse
import sys

from storefront.data.database import SessionLocal
from storefront.services.email_service import EmailService
from storefront.services.order_service import OrderService
from storefront.services.registration_service import PendingVerificationRegistry
from storefront.services.setting_service import SettingService
from storefront.utils.clock import as_utc, utcnow
from storefront.utils.settings import PENDING_ORDER_EMAIL_DAYS


def confirm(question: str) -> bool:
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def cmd_cleanup_pending(args: argparse.Namespace, db) -> int:
    """Delete expired pending verifications."""
    registry = PendingVerificationRegistry(db)

    def ask(count: int) -> bool:
        return confirm(f"Found {count} expired pending verification(s). Do you want to delete them?")

    overview = registry.overview()
    if overview.expired == 0:
        print("No expired pending verifications found.")
        return 0

    deleted = registry.cleanup_expired(force=args.force, confirm=ask)
    if deleted == 0:
        print("Cleanup cancelled.")
        return 0

    print(f"Successfully deleted {deleted} expired pending verification(s).")
    return 0


def cmd_pending_status(args: argparse.Namespace, db) -> int:
    """Show pending verifications overview or details for one email."""
    registry = PendingVerificationRegistry(db)

    if args.email:
        pending = registry.get_pending(args.email)
        if pending is None:
            print(f"No pending verification found for: {args.email}")
            return 0

        expired = pending.is_expired()
        expires_at = as_utc(pending.token_expires_at)
        print(f"Pending verification details for: {pending.email}")
        print(f"  Name:    {pending.name}")
        print(f"  Created: {as_utc(pending.created_at):%Y-%m-%d %H:%M:%S}")
        print(f"  Expires: {expires_at:%Y-%m-%d %H:%M:%S}")
        print(f"  Status:  {'EXPIRED' if expired else 'ACTIVE'}")
        if not expired:
            minutes = int((expires_at - utcnow()).total_seconds() // 60)
            print(f"  Time left: {minutes // 60}h {minutes % 60}m")
        return 0

    overview = registry.overview()
    print("Pending User Verifications Overview")
    print("===================================")
    print(f"Total pending: {overview.total}")
    print(f"Active: {overview.active}")
    print(f"Expired: {overview.expired}")

    if overview.recent_active:
        print()
        print("Recent active pending verifications:")
        for p in overview.recent_active:
            print(
                f"  {p.name:<20} {p.email:<30} "
                f"{as_utc(p.created_at):%Y-%m-%d %H:%M} -> {as_utc(p.token_expires_at):%Y-%m-%d %H:%M}"
            )

    if overview.expired:
        print()
        print(f"There are {overview.expired} expired pending verification(s).")
        print('Run "storefront cleanup-pending" to remove them.')
    return 0


def cmd_send_pending_emails(args: argparse.Namespace, db) -> int:
    """Send confirmation emails for paid orders that never got one."""
    #jednorazowe wywolanie, cache zyje tylko do konca komendy
    email_service = EmailService(db, SettingService(db, {}))
    svc = OrderService(db, email_service)
    preview = svc.send_pending_confirmation_emails(days=args.days, dry_run=True)

    if not preview.candidates:
        print("No orders found that need confirmation emails.")
        return 0

    print(f"Found {len(preview.candidates)} orders that need confirmation emails:")
    for order in preview.candidates:
        email = order.customer_email() or "No email"
        print(
            f"  {order.order_number:<16} {as_utc(order.created_at):%Y-%m-%d %H:%M} "
            f"{email:<30} {order.total_amount} {order.currency} {order.status}"
        )

    if args.dry_run:
        print("DRY RUN MODE - No emails will be sent.")
        return 0

    if not args.yes and not confirm("Send confirmation emails to these orders?"):
        print("Operation cancelled.")
        return 0

    report = svc.send_pending_confirmation_emails(days=args.days)
    print(f"Successfully sent: {report.sent} emails")
    if report.failed:
        print(f"Failed to send: {report.failed} emails", file=sys.stderr)
        return 1
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront", description="Storefront maintenance commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    cleanup_parser = subparsers.add_parser("cleanup-pending", help="Clean up expired pending user verifications")
    cleanup_parser.add_argument("--force", action="store_true", help="Force cleanup without confirmation")
    cleanup_parser.set_defaults(func=cmd_cleanup_pending)

    status_parser = subparsers.add_parser("pending-status", help="Check the status of pending user verifications")
    status_parser.add_argument("--email", help="Check specific email")
    status_parser.set_defaults(func=cmd_pending_status)

    emails_parser = subparsers.add_parser(
        "send-pending-emails",
        help="Send confirmation emails for orders that haven't received them yet",
    )
    emails_parser.add_argument("--dry-run", action="store_true", help="Preview without sending")
    emails_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    emails_parser.add_argument("--days", type=int, default=PENDING_ORDER_EMAIL_DAYS, help="Look back this many days")
    emails_parser.set_defaults(func=cmd_send_pending_emails)

    return parser


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    db = session_factory()
    try:
        return args.func(args, db)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
