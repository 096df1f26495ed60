"""Find, report and optionally merge duplicate user accounts.

Usage:
    find-duplicates [--fix] [--merge-similar] [--dry-run] [--verbose]
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.orm import Session

from identity_dedup.cli import configure_logging
from identity_dedup.config import get_settings
from identity_dedup.errors import IdentityDedupError
from identity_dedup.models.account_merge import MergeType
from identity_dedup.schemas.detection import DuplicateCandidate
from identity_dedup.schemas.merge import MergeAccountsRequest
from identity_dedup.services.audit import AuditSink, get_audit_sink
from identity_dedup.services.duplicates import (
    ConfidenceTier,
    find_existing_duplicates,
    get_duplicate_stats,
    group_by_tier,
)
from identity_dedup.services.merge import merge_accounts, preview_account_merge

logger = logging.getLogger(__name__)

RULE = "-" * 50


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Find and report duplicate user accounts.")
    parser.add_argument("--fix", action="store_true", help="Preview merges for high-confidence duplicates.")
    parser.add_argument(
        "--merge-similar",
        action="store_true",
        help="Merge high-confidence duplicates into their original accounts.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show what would be merged without merging.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show low-confidence matches and debug logs.")
    return parser.parse_args(argv)


def _percent(score: float) -> str:
    return f"{score * 100:.1f}%"


def display_stats(audit_sink: AuditSink) -> None:
    stats = get_duplicate_stats(audit_sink)
    print("Duplicate Detection Statistics")
    print("==============================")
    print(f"Total detections: {stats.total_detections}")
    print(f"Unresolved detections: {stats.unresolved_detections}")
    print(f"Duplicate registration attempts: {stats.registration_attempts}")
    print(f"Recent detections (7 days): {stats.recent_detections}")
    print()


def display_duplicates(duplicates: list[DuplicateCandidate], verbose: bool) -> None:
    if not duplicates:
        print("No duplicate users found.")
        return

    print(f"Found {len(duplicates)} potential duplicate users:")
    print("=" * 60)
    tiers = group_by_tier(duplicates)

    if tiers[ConfidenceTier.HIGH]:
        print("\nHIGH CONFIDENCE DUPLICATES (>=95% similarity):")
        for duplicate in tiers[ConfidenceTier.HIGH]:
            print(f"  User ID: {duplicate.user_id}")
            print(f"  Email: {duplicate.email}")
            print(f"  Name: {duplicate.name or 'N/A'}")
            print(f"  Role: {duplicate.role.value}")
            print(f"  Created: {duplicate.created_at.isoformat()}")
            print(f"  Original: {duplicate.original_email} ({duplicate.original_user_id})")
            print(f"  Similarity: {_percent(duplicate.similarity_score)}")
            print(f"  Reasons: {', '.join(duplicate.reasons)}")
            print(f"  {RULE}")

    if tiers[ConfidenceTier.MEDIUM]:
        print("\nMEDIUM CONFIDENCE DUPLICATES (85-94% similarity):")
        for duplicate in tiers[ConfidenceTier.MEDIUM]:
            print(f"  User ID: {duplicate.user_id}")
            print(f"  Email: {duplicate.email}")
            print(f"  Name: {duplicate.name or 'N/A'}")
            print(f"  Role: {duplicate.role.value}")
            print(f"  Similarity: {_percent(duplicate.similarity_score)}")
            print(f"  Reasons: {', '.join(duplicate.reasons)}")
            if verbose:
                print(f"  Created: {duplicate.created_at.isoformat()}")
            print(f"  {RULE}")

    if tiers[ConfidenceTier.LOW] and verbose:
        print("\nLOW CONFIDENCE DUPLICATES (<85% similarity):")
        for duplicate in tiers[ConfidenceTier.LOW]:
            print(f"  {duplicate.email} ({duplicate.role.value}) - {_percent(duplicate.similarity_score)}")
            print(f"    Reasons: {', '.join(duplicate.reasons)}")


def handle_merging(
    db: Session,
    duplicates: list[DuplicateCandidate],
    options: argparse.Namespace,
    audit_sink: AuditSink,
) -> int:
    """Preview, and with --merge-similar perform, merges of high-confidence pairs.

    Returns the number of merges performed.
    """

    high_confidence = group_by_tier(duplicates)[ConfidenceTier.HIGH]
    if not high_confidence:
        print("\nNo high-confidence duplicates to merge.")
        return 0

    print(f"\nProcessing {len(high_confidence)} high-confidence duplicates for merging...")
    merged_count = 0
    for duplicate in high_confidence:
        try:
            print(f"\nMerge Preview for {duplicate.email}:")
            preview = preview_account_merge(db, duplicate.original_user_id, duplicate.user_id)
            data = preview.data_to_merge
            print(f"  Primary: {preview.primary_user.email} ({preview.primary_user.role.value})")
            print(f"  Merged: {preview.merged_user.email} ({preview.merged_user.role.value})")
            print("  Data to merge:")
            print(f"    - Bookings: {data.bookings}")
            print(f"    - Messages: {data.messages}")
            print(f"    - Reviews: {data.reviews}")
            print(f"    - Transactions: {data.transactions}")
            print(f"    - Events: {data.events}")
            print(f"    - Packages: {data.packages}")
            if preview.conflicts:
                print("  Conflicts:")
                for conflict in preview.conflicts:
                    print(f"    - {conflict}")

            if options.dry_run:
                print(f"  DRY RUN: Would merge {duplicate.email} into {duplicate.original_email}")
                continue
            if not options.merge_similar:
                print("  Use --merge-similar to perform the merge")
                continue

            print(f"  Merging {duplicate.email} into {duplicate.original_email}...")
            merge_accounts(
                db,
                MergeAccountsRequest(
                    primary_user_id=duplicate.original_user_id,
                    merged_user_id=duplicate.user_id,
                    merge_reason=f"Automatic merge - {', '.join(duplicate.reasons)}",
                    merge_type=MergeType.AUTOMATIC,
                ),
                audit_sink=audit_sink,
            )
            merged_count += 1
            print(f"  Successfully merged {duplicate.email}")
        except IdentityDedupError as exc:
            logger.warning("find_duplicates.merge_skipped user_id=%s error=%s", duplicate.user_id, exc)
            print(f"  Error processing {duplicate.email}: {exc}")
    return merged_count


def write_report(duplicates: list[DuplicateCandidate], report_dir: Path, now: datetime | None = None) -> Path:
    """Write the dated JSON report and return its path."""

    now = now or datetime.now(timezone.utc)
    tiers = group_by_tier(duplicates)
    report = {
        "timestamp": now.isoformat(),
        "totalDuplicates": len(duplicates),
        "highConfidence": len(tiers[ConfidenceTier.HIGH]),
        "mediumConfidence": len(tiers[ConfidenceTier.MEDIUM]),
        "lowConfidence": len(tiers[ConfidenceTier.LOW]),
        "duplicates": [duplicate.model_dump(mode="json") for duplicate in duplicates],
    }
    report_dir.mkdir(parents=True, exist_ok=True)
    report_path = report_dir / f"duplicate-report-{now.date().isoformat()}.json"
    report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return report_path


def run(db: Session, options: argparse.Namespace, *, audit_sink: AuditSink, report_dir: Path) -> int:
    if options.verbose:
        print(f"Options: {vars(options)}")
        print()

    display_stats(audit_sink)

    print("Scanning for duplicate users...")
    duplicates = find_existing_duplicates(db, audit_sink=audit_sink)
    display_duplicates(duplicates, options.verbose)

    if options.fix or options.merge_similar or options.dry_run:
        handle_merging(db, duplicates, options, audit_sink)

    if duplicates:
        report_path = write_report(duplicates, report_dir)
        print(f"\nDetailed report saved to: {report_path}")

    tiers = group_by_tier(duplicates)
    print("\nSummary:")
    print(f"  Total duplicates found: {len(duplicates)}")
    print(f"  High confidence (>=95%): {len(tiers[ConfidenceTier.HIGH])}")
    print(f"  Medium confidence (85-94%): {len(tiers[ConfidenceTier.MEDIUM])}")
    print(f"  Low confidence (<85%): {len(tiers[ConfidenceTier.LOW])}")

    if duplicates and not options.fix and not options.merge_similar:
        print("\nNext steps:")
        print("  - Review the duplicates above")
        print("  - Use --merge-similar to merge high-confidence duplicates")
        print("  - Use --dry-run to preview merge operations")
        print("  - Use --verbose for more detailed output")
    return 0


def main(argv: list[str] | None = None) -> int:
    options = parse_args(argv)
    configure_logging(options.verbose)

    from identity_dedup.db.session import SessionLocal

    print("Duplicate User Detection")
    print("========================\n")
    try:
        with SessionLocal() as db:
            return run(db, options, audit_sink=get_audit_sink(), report_dir=Path(get_settings().report_dir))
    except Exception as exc:
        logger.exception("find_duplicates.failed")
        print(f"Error running duplicate detection: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
