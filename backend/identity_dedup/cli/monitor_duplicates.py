"""Periodic duplicate monitoring, suitable for cron.

Usage:
    monitor-duplicates [--alert-threshold 0.95] [--email alerts@example.com] [--slack-webhook URL] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from identity_dedup.cli import configure_logging
from identity_dedup.config import get_settings
from identity_dedup.schemas.detection import DuplicateCandidate
from identity_dedup.services.alerts import AlertSink, build_alert_sinks, dispatch_alert
from identity_dedup.services.audit import AuditSink, get_audit_sink
from identity_dedup.services.duplicates import (
    ConfidenceTier,
    find_existing_duplicates,
    get_duplicate_stats,
    group_by_tier,
)

logger = logging.getLogger(__name__)

DEFAULT_ALERT_THRESHOLD = 0.95
REGISTRATION_WINDOW = timedelta(hours=1)
DAILY_REPORT_WINDOW_MINUTES = 30


def _unit_interval(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number") from exc
    if not 0.0 <= parsed <= 1.0:
        raise argparse.ArgumentTypeError("alert threshold must be between 0.0 and 1.0")
    return parsed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse script CLI arguments."""

    settings = get_settings()
    parser = argparse.ArgumentParser(description="Monitor for duplicate registrations and duplicate users.")
    parser.add_argument(
        "--alert-threshold",
        type=_unit_interval,
        default=DEFAULT_ALERT_THRESHOLD,
        help=f"Minimum similarity that triggers an alert (default: {DEFAULT_ALERT_THRESHOLD})",
    )
    parser.add_argument("--email", default=settings.duplicate_alert_email, help="Address for email alerts.")
    parser.add_argument(
        "--slack-webhook",
        default=settings.duplicate_alert_slack_webhook,
        help="Slack incoming webhook URL for alerts.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print details and the daily report.")
    return parser.parse_args(argv)


def check_recent_registrations(
    options: argparse.Namespace,
    audit_sink: AuditSink,
    sinks: Sequence[AlertSink],
    now: datetime,
) -> int:
    attempts = audit_sink.recent_duplicate_registrations(now - REGISTRATION_WINDOW)
    if attempts:
        message = f"{len(attempts)} duplicate registration attempts detected in the last hour"
        if options.verbose:
            print(message)
            for attempt in attempts:
                print(f"  - {attempt.email} ({attempt.detection_reason})")
        dispatch_alert(sinks, "Duplicate Registration Attempts Detected", message)
    return len(attempts)


def check_high_confidence_duplicates(
    options: argparse.Namespace,
    duplicates: list[DuplicateCandidate],
    sinks: Sequence[AlertSink],
) -> int:
    flagged = [duplicate for duplicate in duplicates if duplicate.similarity_score >= options.alert_threshold]
    if flagged:
        message = (
            f"{len(flagged)} high-confidence duplicate users found "
            f"(>={options.alert_threshold * 100:.0f}% similarity)"
        )
        if options.verbose:
            print(message)
            for duplicate in flagged:
                print(
                    f"  - {duplicate.email} ({duplicate.similarity_score * 100:.1f}%): {', '.join(duplicate.reasons)}"
                )
        dispatch_alert(sinks, "High-Confidence Duplicate Users Detected", message)
    return len(flagged)


def build_daily_report(audit_sink: AuditSink, duplicates: list[DuplicateCandidate], now: datetime) -> str:
    stats = get_duplicate_stats(audit_sink)
    tiers = group_by_tier(duplicates)
    action = (
        "Action Required: Review and merge duplicate accounts via admin panel"
        if duplicates
        else "No action required"
    )
    lines = [
        f"Daily Duplicate Detection Report - {now.date().isoformat()}",
        "=" * 60,
        "",
        "Statistics:",
        f"- Total detections: {stats.total_detections}",
        f"- Unresolved detections: {stats.unresolved_detections}",
        f"- Duplicate registrations: {stats.registration_attempts}",
        f"- Recent detections (7 days): {stats.recent_detections}",
        "",
        "Current Status:",
        f"- Total potential duplicates: {len(duplicates)}",
        f"- High confidence (>=95%): {len(tiers[ConfidenceTier.HIGH])}",
        f"- Medium confidence (85-94%): {len(tiers[ConfidenceTier.MEDIUM])}",
        f"- Low confidence (<85%): {len(tiers[ConfidenceTier.LOW])}",
        "",
        action,
    ]
    return "\n".join(lines)


def run(
    db: Session,
    options: argparse.Namespace,
    *,
    audit_sink: AuditSink,
    sinks: Sequence[AlertSink],
    now: datetime | None = None,
) -> int:
    now = now or datetime.now(timezone.utc)
    if options.verbose:
        print("Duplicate Monitoring")
        print("====================")
        print(f"Alert threshold: {options.alert_threshold * 100:.0f}%")
        print(f"Email alerts: {options.email or 'disabled'}")
        print(f"Slack alerts: {'enabled' if options.slack_webhook else 'disabled'}")
        print()

    try:
        recent_duplicates = check_recent_registrations(options, audit_sink, sinks, now)
        duplicates = find_existing_duplicates(db, audit_sink=audit_sink)
        high_confidence = check_high_confidence_duplicates(options, duplicates, sinks)

        is_report_window = now.hour == 0 and now.minute < DAILY_REPORT_WINDOW_MINUTES
        if is_report_window or options.verbose:
            report = build_daily_report(audit_sink, duplicates, now)
            print(report)
            dispatch_alert(sinks, "Daily Duplicate Detection Report", report)
    except Exception as exc:
        logger.exception("monitor.failed")
        message = f"Error in duplicate monitoring: {exc}"
        print(message)
        dispatch_alert(sinks, "Duplicate Monitoring Error", message)
        return 1

    if options.verbose:
        status = "All clear" if recent_duplicates == 0 and high_confidence == 0 else "Attention needed"
        print("\nMonitoring Summary:")
        print(f"  Recent duplicate registrations: {recent_duplicates}")
        print(f"  High-confidence duplicates: {high_confidence}")
        print(f"  Status: {status}")
    logger.info(
        "monitor.complete recent_duplicate_registrations=%d high_confidence=%d",
        recent_duplicates,
        high_confidence,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    options = parse_args(argv)
    configure_logging(options.verbose)
    sinks = build_alert_sinks(
        email=options.email,
        slack_webhook=options.slack_webhook,
        timeout_seconds=get_settings().alert_timeout_seconds,
    )

    from identity_dedup.db.session import SessionLocal

    try:
        with SessionLocal() as db:
            return run(db, options, audit_sink=get_audit_sink(), sinks=sinks)
    except Exception as exc:
        logger.exception("monitor.failed")
        dispatch_alert(sinks, "Duplicate Monitoring Error", f"Error in duplicate monitoring: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
