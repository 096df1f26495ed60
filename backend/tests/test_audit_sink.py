"""Tests for audit sink selection and the audit read paths."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from identity_dedup.config import Settings
from identity_dedup.models.duplicate_detection_log import DetectionType, DuplicateDetectionLog
from identity_dedup.services.audit import DatabaseAuditSink, DetectionLogEntry, NullAuditSink, build_audit_sink
from identity_dedup.services.duplicates import get_duplicate_stats, get_pending_merges
from tests.support import DatabaseTestCase


def _log(email: str, score: float, *, detection_type=DetectionType.EXISTING_SCAN, resolved=False, detected=True):
    return DuplicateDetectionLog(
        email=email,
        email_normalized=email.lower(),
        detection_type=detection_type,
        similarity_score=score,
        detection_reason="Similar email",
        duplicate_detected=detected,
        resolved=resolved,
    )


class AuditSinkSelectionTests(DatabaseTestCase):
    def test_database_sink_when_tables_exist(self) -> None:
        sink = build_audit_sink(self.engine, self.SessionLocal, Settings(audit_store_enabled=True))

        self.assertIsInstance(sink, DatabaseAuditSink)
        self.assertTrue(sink.available)

    def test_null_sink_when_disabled(self) -> None:
        sink = build_audit_sink(self.engine, self.SessionLocal, Settings(audit_store_enabled=False))

        self.assertIsInstance(sink, NullAuditSink)
        self.assertFalse(sink.available)

    def test_null_sink_when_tables_are_missing(self) -> None:
        bare_engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        try:
            with self.assertLogs("identity_dedup.services.audit", level="WARNING") as captured:
                sink = build_audit_sink(
                    bare_engine,
                    sessionmaker(bind=bare_engine),
                    Settings(audit_store_enabled=True),
                )
        finally:
            bare_engine.dispose()

        self.assertIsInstance(sink, NullAuditSink)
        self.assertIn("missing tables", captured.output[0])

    def test_null_sink_answers_with_empty_results(self) -> None:
        sink = NullAuditSink()
        sink.log_detections(
            [
                DetectionLogEntry(
                    email="a@b.c",
                    detection_type=DetectionType.MANUAL_CHECK,
                    similarity_score=0.0,
                    detection_reason="No duplicates detected",
                    duplicate_detected=False,
                )
            ]
        )

        self.assertEqual(get_duplicate_stats(sink).total_detections, 0)
        self.assertEqual(get_pending_merges(audit_sink=sink), [])
        self.assertEqual(sink.merge_history("anyone"), [])


class DatabaseAuditSinkTests(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sink = DatabaseAuditSink(self.SessionLocal)

    def test_stats_counts(self) -> None:
        self.db.add_all(
            [
                _log("a@x.com", 1.0, detection_type=DetectionType.REGISTRATION_ATTEMPT),
                _log("b@x.com", 0.9, resolved=True),
                _log("c@x.com", 0.0, detection_type=DetectionType.REGISTRATION_ATTEMPT, detected=False),
            ]
        )
        self.db.commit()

        stats = get_duplicate_stats(self.sink)

        self.assertEqual(stats.total_detections, 3)
        self.assertEqual(stats.unresolved_detections, 2)
        self.assertEqual(stats.registration_attempts, 1)
        self.assertEqual(stats.recent_detections, 3)

    def test_pending_merges_are_unresolved_and_high_scoring(self) -> None:
        self.db.add_all(
            [
                _log("high@x.com", 0.9),
                _log("low@x.com", 0.5),
                _log("done@x.com", 0.99, resolved=True),
                _log("top@x.com", 0.97),
            ]
        )
        self.db.commit()

        pending = get_pending_merges(audit_sink=self.sink)

        self.assertEqual([entry.email for entry in pending], ["top@x.com", "high@x.com"])
        self.assertEqual(len(get_pending_merges(limit=1, audit_sink=self.sink)), 1)

    def test_unresolved_detections_exclude_resolved(self) -> None:
        self.db.add_all([_log("open@x.com", 0.85), _log("closed@x.com", 0.85, resolved=True)])
        self.db.commit()

        unresolved = self.sink.unresolved_detections()

        self.assertEqual([entry.email for entry in unresolved], ["open@x.com"])

    def test_recent_duplicate_registrations(self) -> None:
        self.sink.log_detections(
            [
                DetectionLogEntry(
                    email="Dup@X.com",
                    detection_type=DetectionType.REGISTRATION_ATTEMPT,
                    similarity_score=1.0,
                    detection_reason="Exact email match",
                    duplicate_detected=True,
                ),
                DetectionLogEntry(
                    email="fresh@x.com",
                    detection_type=DetectionType.REGISTRATION_ATTEMPT,
                    similarity_score=0.0,
                    detection_reason="No duplicates detected",
                    duplicate_detected=False,
                ),
            ]
        )

        since = datetime.now(timezone.utc) - timedelta(hours=1)
        recent = self.sink.recent_duplicate_registrations(since)

        self.assertEqual(len(recent), 1)
        self.assertEqual(recent[0].email, "Dup@X.com")
        self.assertEqual(recent[0].email_normalized, "dup@x.com")

    def test_long_reasons_are_truncated(self) -> None:
        self.sink.log_detections(
            [
                DetectionLogEntry(
                    email="long@x.com",
                    detection_type=DetectionType.EXISTING_SCAN,
                    similarity_score=0.9,
                    detection_reason="r" * 600,
                    duplicate_detected=True,
                )
            ]
        )

        self.assertEqual(len(self.sink.unresolved_detections()[0].detection_reason), 512)


if __name__ == "__main__":
    unittest.main()
