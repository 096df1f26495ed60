"""Merge one user account into another.

Usage:
    merge-accounts <primary_user_id> <merged_user_id> [--reason "..."] [--admin-id "..."] [--force] [--preview]
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from identity_dedup.cli import configure_logging
from identity_dedup.errors import IdentityDedupError, InvalidArgument
from identity_dedup.models.account_merge import MergeType
from identity_dedup.schemas.merge import MergeAccountsRequest, MergePreview
from identity_dedup.services.audit import AuditSink, get_audit_sink
from identity_dedup.services.merge import merge_accounts, preview_account_merge

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Manual merge via script"

COUNT_LABELS = {
    "bookings": "Bookings",
    "messages": "Messages",
    "reviews": "Reviews",
    "transactions": "Transactions",
    "events": "Events",
    "proposals": "Proposals",
    "packages": "Packages",
    "notifications": "Notifications",
    "payouts": "Payouts",
    "disputes": "Disputes",
    "referrals": "Referrals",
    "activities": "Activities",
    "kyc_submissions": "KYC submissions",
    "direct_messages": "Direct messages",
    "availability": "Availability entries",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Merge a duplicate user account into a primary account.")
    parser.add_argument("primary_user_id", help="Account that survives the merge.")
    parser.add_argument("merged_user_id", help="Account whose data moves to the primary and is then deleted.")
    parser.add_argument("--reason", default=DEFAULT_REASON, help=f"Reason for the merge (default: {DEFAULT_REASON!r})")
    parser.add_argument("--admin-id", default=None, help="Admin user ID performing the merge.")
    parser.add_argument("--force", action="store_true", help="Skip the confirmation prompt.")
    parser.add_argument("--preview", action="store_true", help="Show the merge preview only.")
    return parser.parse_args(argv)


def confirm_merge() -> bool:
    answer = input("Do you want to proceed with the merge? (yes/no): ")
    return answer.strip().lower() in {"yes", "y"}


def print_preview(preview: MergePreview) -> None:
    data = preview.data_to_merge
    print("Merge Preview:")
    print("==============")
    for label, snapshot in (("Primary User", preview.primary_user), ("Merged User", preview.merged_user)):
        print(f"{label}: {snapshot.email} ({snapshot.role.value})")
        print(f"  Created: {snapshot.created_at.isoformat()}")
        print(f"  Name: {snapshot.name or 'N/A'}")
        print()
    print("Data to be merged:")
    for field_name, count in data.model_dump().items():
        print(f"  {COUNT_LABELS.get(field_name, field_name)}: {count}")
    print()
    if preview.conflicts:
        print("Conflicts detected:")
        for conflict in preview.conflicts:
            print(f"  - {conflict}")
        print()


def run(
    db: Session,
    options: argparse.Namespace,
    *,
    audit_sink: AuditSink,
    confirm: Callable[[], bool] = confirm_merge,
) -> int:
    request = MergeAccountsRequest(
        primary_user_id=options.primary_user_id,
        merged_user_id=options.merged_user_id,
        merge_reason=options.reason,
        merge_type=MergeType.ADMIN_INITIATED,
        merged_by_admin_id=options.admin_id,
    )
    try:
        print("Validating users...")
        if request.primary_user_id == request.merged_user_id:
            raise InvalidArgument("Cannot merge a user with itself")
        preview = preview_account_merge(db, request.primary_user_id, request.merged_user_id)
        print(f"Primary user: {preview.primary_user.email} ({preview.primary_user.role.value})")
        print(f"Merged user: {preview.merged_user.email} ({preview.merged_user.role.value})")
        print()
        print_preview(preview)

        if options.preview:
            print("Preview mode - no changes made.")
            return 0
        if not options.force and not confirm():
            print("Merge cancelled.")
            return 0

        print("Performing merge...")
        merged_data = merge_accounts(db, request, audit_sink=audit_sink)
    except IdentityDedupError as exc:
        print(f"Merge failed: {exc}")
        return 1

    print("Merge completed successfully!")
    print(f"  {preview.merged_user.email} merged into {preview.primary_user.email}")
    print(f"  Bookings moved: {merged_data.bookings}")
    print(f"  Messages moved: {merged_data.messages}")
    return 0


def main(argv: list[str] | None = None) -> int:
    options = parse_args(argv)
    configure_logging()

    from identity_dedup.db.session import SessionLocal

    print("Account Merge")
    print("=============\n")
    try:
        with SessionLocal() as db:
            return run(db, options, audit_sink=get_audit_sink())
    except Exception as exc:
        logger.exception("merge_accounts.failed")
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
