"""Tests for the find-duplicates, merge-accounts and monitor-duplicates commands."""

from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock

from sqlalchemy import func, select

from identity_dedup.cli import find_duplicates, merge_accounts, monitor_duplicates
from identity_dedup.detection.detector import DuplicateDetector
from identity_dedup.models.account_merge import AccountMerge, MergeType
from identity_dedup.models.accounts import Activity
from identity_dedup.models.events import TalentAvailability
from identity_dedup.models.user import User
from identity_dedup.services.audit import DatabaseAuditSink, NullAuditSink
from tests.support import DatabaseTestCase


class _RecordingSink:
    name = "recording"

    def __init__(self) -> None:
        self.subjects: list[str] = []

    def send(self, subject: str, message: str) -> None:
        self.subjects.append(subject)


class _BrokenAuditSink(NullAuditSink):
    def recent_duplicate_registrations(self, since):
        raise RuntimeError("audit query failed")


class FindDuplicatesCommandTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.original_id = self.add_user("alice@test.com", "Alice", talent_phone="+15551234567")
        self.duplicate_id = self.add_user("alice@test.co", "Alice", talent_phone="+15551234567")
        self.add_user("bob@other.org", "Bob")
        self.report_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.report_dir.cleanup)

    def _run(self, *argv: str, audit_sink=None) -> tuple[int, str]:
        options = find_duplicates.parse_args(list(argv))
        output = io.StringIO()
        with redirect_stdout(output):
            code = find_duplicates.run(
                self.db,
                options,
                audit_sink=audit_sink or NullAuditSink(),
                report_dir=Path(self.report_dir.name),
            )
        return code, output.getvalue()

    def _user_count(self) -> int:
        return self.db.scalar(select(func.count()).select_from(User))

    def test_report_lists_duplicates_and_writes_json(self) -> None:
        code, output = self._run()

        self.assertEqual(code, 0)
        self.assertIn("Found 1 potential duplicate users:", output)
        self.assertIn("HIGH CONFIDENCE DUPLICATES", output)
        self.assertIn("Next steps:", output)
        reports = list(Path(self.report_dir.name).glob("duplicate-report-*.json"))
        self.assertEqual(len(reports), 1)
        report = json.loads(reports[0].read_text(encoding="utf-8"))
        self.assertEqual(report["totalDuplicates"], 1)
        self.assertEqual(report["highConfidence"], 1)
        self.assertEqual(report["duplicates"][0]["user_id"], self.duplicate_id)
        self.assertEqual(self._user_count(), 3)

    def test_dry_run_does_not_merge(self) -> None:
        code, output = self._run("--dry-run")

        self.assertEqual(code, 0)
        self.assertIn("DRY RUN: Would merge alice@test.co into alice@test.com", output)
        self.assertEqual(self._user_count(), 3)

    def test_fix_without_merge_similar_only_previews(self) -> None:
        code, output = self._run("--fix")

        self.assertEqual(code, 0)
        self.assertIn("Use --merge-similar to perform the merge", output)
        self.assertEqual(self._user_count(), 3)

    def test_merge_similar_merges_high_confidence_pairs(self) -> None:
        code, output = self._run("--merge-similar", audit_sink=DatabaseAuditSink(self.SessionLocal))

        self.assertEqual(code, 0)
        self.assertIn("Successfully merged alice@test.co", output)
        self.assertEqual(self._user_count(), 2)
        self.assertIsNone(self.db.scalar(select(User).where(User.id == self.duplicate_id)))
        record = self.db.scalar(select(AccountMerge))
        self.assertEqual(record.merge_type, MergeType.AUTOMATIC)
        self.assertEqual(record.primary_user_id, self.original_id)
        self.assertTrue(record.merge_reason.startswith("Automatic merge - "))

    def test_no_duplicates_writes_no_report(self) -> None:
        self._reset_tables()
        self.add_user("solo@one.org", "Solo")

        code, output = self._run()

        self.assertEqual(code, 0)
        self.assertIn("No duplicate users found.", output)
        self.assertEqual(list(Path(self.report_dir.name).iterdir()), [])

    def test_write_report_uses_dated_filename(self) -> None:
        now = datetime(2026, 3, 4, tzinfo=timezone.utc)

        path = find_duplicates.write_report([], Path(self.report_dir.name), now=now)

        self.assertEqual(path.name, "duplicate-report-2026-03-04.json")
        self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["totalDuplicates"], 0)


class MergeAccountsCommandTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.primary_id = self.add_user("alice@test.com", "Alice")
        self.merged_id = self.add_user("alice@test.co", "Alice")

    def _run(self, *argv: str, confirm=lambda: True) -> tuple[int, str]:
        options = merge_accounts.parse_args(list(argv))
        output = io.StringIO()
        with redirect_stdout(output):
            code = merge_accounts.run(self.db, options, audit_sink=DatabaseAuditSink(self.SessionLocal), confirm=confirm)
        return code, output.getvalue()

    def _merged_user_exists(self) -> bool:
        return self.db.scalar(select(User).where(User.id == self.merged_id)) is not None

    def test_force_merges_without_prompt(self) -> None:
        def _never_called() -> bool:
            raise AssertionError("confirmation should be skipped")

        code, output = self._run(
            self.primary_id,
            self.merged_id,
            "--force",
            "--admin-id",
            "admin-7",
            confirm=_never_called,
        )

        self.assertEqual(code, 0)
        self.assertIn("Merge completed successfully!", output)
        self.assertFalse(self._merged_user_exists())
        record = self.db.scalar(select(AccountMerge))
        self.assertEqual(record.merge_type, MergeType.ADMIN_INITIATED)
        self.assertEqual(record.merge_reason, "Manual merge via script")
        self.assertEqual(record.merged_by_admin_id, "admin-7")

    def test_preview_makes_no_changes(self) -> None:
        self.db.add_all([Activity(user_id=self.merged_id, action="login"), TalentAvailability(talent_id=self.merged_id)])
        self.db.commit()

        code, output = self._run(self.primary_id, self.merged_id, "--preview")

        self.assertEqual(code, 0)
        self.assertIn("Merge Preview:", output)
        self.assertIn("  Activities: 1\n", output)
        self.assertIn("  Availability entries: 1\n", output)
        for label in merge_accounts.COUNT_LABELS.values():
            self.assertIn(f"  {label}: ", output)
        self.assertIn("Preview mode - no changes made.", output)
        self.assertTrue(self._merged_user_exists())

    def test_declined_confirmation_cancels(self) -> None:
        code, output = self._run(self.primary_id, self.merged_id, confirm=lambda: False)

        self.assertEqual(code, 0)
        self.assertIn("Merge cancelled.", output)
        self.assertTrue(self._merged_user_exists())

    def test_self_merge_fails(self) -> None:
        code, output = self._run(self.primary_id, self.primary_id, "--force")

        self.assertEqual(code, 1)
        self.assertIn("Merge failed: Cannot merge a user with itself", output)

    def test_unknown_user_fails(self) -> None:
        code, output = self._run(self.primary_id, "missing-user", "--force")

        self.assertEqual(code, 1)
        self.assertIn("Merged user with ID missing-user not found", output)
        self.assertTrue(self._merged_user_exists())


class MonitorDuplicatesCommandTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_user("alice@test.com", "Alice", talent_phone="+15551234567")
        self.add_user("alice@test.co", "Alice", talent_phone="+15551234567")
        self.sink = _RecordingSink()

    def _run(self, *argv: str, audit_sink=None, now: datetime | None = None) -> tuple[int, str]:
        options = monitor_duplicates.parse_args(list(argv))
        output = io.StringIO()
        with redirect_stdout(output):
            code = monitor_duplicates.run(
                self.db,
                options,
                audit_sink=audit_sink or NullAuditSink(),
                sinks=[self.sink],
                now=now or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
            )
        return code, output.getvalue()

    def test_high_confidence_duplicates_raise_an_alert(self) -> None:
        code, output = self._run()

        self.assertEqual(code, 0)
        self.assertEqual(self.sink.subjects, ["High-Confidence Duplicate Users Detected"])
        self.assertNotIn("Daily Duplicate Detection Report", output)

    def test_alert_threshold_is_respected(self) -> None:
        self._reset_tables()
        self.add_user("jonathan@mail.com", None)
        self.add_user("jonathan@mail.co", None)

        code, _ = self._run()
        self.assertEqual(code, 0)
        self.assertEqual(self.sink.subjects, [])

        code, _ = self._run("--alert-threshold", "0.9")
        self.assertEqual(code, 0)
        self.assertEqual(self.sink.subjects, ["High-Confidence Duplicate Users Detected"])

    def test_daily_report_in_midnight_window(self) -> None:
        code, output = self._run(now=datetime(2026, 10, 19, 0, 10, tzinfo=timezone.utc))

        self.assertEqual(code, 0)
        self.assertIn("Daily Duplicate Detection Report - 2026-10-19", output)
        self.assertIn("Action Required", output)
        self.assertEqual(
            self.sink.subjects,
            ["High-Confidence Duplicate Users Detected", "Daily Duplicate Detection Report"],
        )

    def test_recent_duplicate_registrations_raise_an_alert(self) -> None:
        audit_sink = DatabaseAuditSink(self.SessionLocal)
        DuplicateDetector(self.db, audit_sink=audit_sink).check_single("alice@test.com")

        code, output = self._run("--verbose", audit_sink=audit_sink, now=datetime.now(timezone.utc))

        self.assertEqual(code, 0)
        self.assertIn("Duplicate Registration Attempts Detected", self.sink.subjects)
        self.assertIn("1 duplicate registration attempts detected in the last hour", output)
        self.assertIn("Monitoring Summary:", output)

    def test_failure_is_reported_and_exits_nonzero(self) -> None:
        with self.assertLogs("identity_dedup.cli.monitor_duplicates", level="ERROR"):
            code, output = self._run(audit_sink=_BrokenAuditSink())

        self.assertEqual(code, 1)
        self.assertIn("Error in duplicate monitoring: audit query failed", output)
        self.assertEqual(self.sink.subjects, ["Duplicate Monitoring Error"])

    def test_alert_threshold_must_be_a_unit_interval(self) -> None:
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit):
            with mock.patch("sys.stderr", io.StringIO()):
                monitor_duplicates.parse_args(["--alert-threshold", "1.5"])


if __name__ == "__main__":
    unittest.main()
