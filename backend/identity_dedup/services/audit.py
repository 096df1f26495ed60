"""Best-effort audit sinks for detection and merge events.

The sink is chosen once, at startup: ``DatabaseAuditSink`` when the audit
tables are configured and present, ``NullAuditSink`` otherwise. Callers never
probe the schema per call and never fail because auditing is unavailable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache
from datetime import datetime, timedelta, timezone
from typing import Protocol

from sqlalchemy import func, inspect, or_, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from identity_dedup.config import Settings, get_settings
from identity_dedup.detection.normalize import normalize_email
from identity_dedup.errors import AuditUnavailable
from identity_dedup.models.account_merge import AccountMerge
from identity_dedup.models.duplicate_detection_log import DetectionType, DuplicateDetectionLog
from identity_dedup.schemas.detection import DetectionLogRead, DuplicateStats
from identity_dedup.schemas.merge import AccountMergeRead, MergeAccountsRequest, MergeDataCounts

logger = logging.getLogger(__name__)

RESOLUTION_MERGED = "MERGED"
PENDING_MERGE_MIN_SCORE = 0.8
RECENT_DETECTION_WINDOW = timedelta(days=7)


@dataclass(slots=True)
class DetectionLogEntry:
    """One detection evaluation waiting to be written."""

    email: str
    detection_type: DetectionType
    similarity_score: float
    detection_reason: str
    duplicate_detected: bool
    potential_duplicate_user_id: str | None = None
    original_user_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class AuditSink(Protocol):
    """Capability interface for the optional audit store."""

    available: bool

    def log_detections(self, entries: Iterable[DetectionLogEntry]) -> None: ...

    def record_merge(self, db: Session, request: MergeAccountsRequest, merged_data: MergeDataCounts) -> None: ...

    def resolve_detections(self, db: Session, merged_user_id: str, resolved_by: str | None) -> int: ...

    def stats(self) -> DuplicateStats: ...

    def unresolved_detections(self, limit: int = 50) -> list[DetectionLogRead]: ...

    def pending_merges(self, limit: int = 50) -> list[DetectionLogRead]: ...

    def recent_duplicate_registrations(self, since: datetime) -> list[DetectionLogRead]: ...

    def merge_history(self, user_id: str) -> list[AccountMergeRead]: ...


class NullAuditSink:
    """Sink used when no audit store is configured."""

    available = False

    def log_detections(self, entries: Iterable[DetectionLogEntry]) -> None:
        return None

    def record_merge(self, db: Session, request: MergeAccountsRequest, merged_data: MergeDataCounts) -> None:
        return None

    def resolve_detections(self, db: Session, merged_user_id: str, resolved_by: str | None) -> int:
        return 0

    def stats(self) -> DuplicateStats:
        return DuplicateStats()

    def unresolved_detections(self, limit: int = 50) -> list[DetectionLogRead]:
        return []

    def pending_merges(self, limit: int = 50) -> list[DetectionLogRead]:
        return []

    def recent_duplicate_registrations(self, since: datetime) -> list[DetectionLogRead]:
        return []

    def merge_history(self, user_id: str) -> list[AccountMergeRead]:
        return []


class DatabaseAuditSink:
    """Sink backed by the ``duplicate_detection_logs`` and ``account_merges`` tables.

    Detection logs are written in a session of their own so a failed write
    never touches the caller's transaction. Merge records are written through
    the merge session and commit or roll back with the merge.
    """

    available = True

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def log_detections(self, entries: Iterable[DetectionLogEntry]) -> None:
        rows = [
            DuplicateDetectionLog(
                email=entry.email,
                email_normalized=normalize_email(entry.email),
                detection_type=entry.detection_type,
                potential_duplicate_user_id=entry.potential_duplicate_user_id,
                original_user_id=entry.original_user_id,
                similarity_score=entry.similarity_score,
                detection_reason=entry.detection_reason[:512],
                duplicate_detected=entry.duplicate_detected,
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
                resolved=False,
            )
            for entry in entries
        ]
        if not rows:
            return
        try:
            with self._session_factory() as db:
                db.add_all(rows)
                db.commit()
        except SQLAlchemyError:
            logger.warning("audit.detection_log_failed rows=%d", len(rows), exc_info=True)

    def record_merge(self, db: Session, request: MergeAccountsRequest, merged_data: MergeDataCounts) -> None:
        db.add(
            AccountMerge(
                primary_user_id=request.primary_user_id,
                merged_user_id=request.merged_user_id,
                merge_reason=request.merge_reason,
                merged_data=merged_data.model_dump(),
                merged_by_admin_id=request.merged_by_admin_id,
                merged_by_user_id=request.merged_by_user_id,
                merge_type=request.merge_type,
            )
        )

    def resolve_detections(self, db: Session, merged_user_id: str, resolved_by: str | None) -> int:
        result = db.execute(
            update(DuplicateDetectionLog)
            .where(
                or_(
                    DuplicateDetectionLog.potential_duplicate_user_id == merged_user_id,
                    DuplicateDetectionLog.original_user_id == merged_user_id,
                ),
                DuplicateDetectionLog.resolved.is_(False),
            )
            .values(
                resolved=True,
                resolved_at=datetime.now(timezone.utc),
                resolved_by=resolved_by,
                resolution_action=RESOLUTION_MERGED,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def stats(self) -> DuplicateStats:
        recent_since = datetime.now(timezone.utc) - RECENT_DETECTION_WINDOW
        count = select(func.count()).select_from(DuplicateDetectionLog)
        try:
            with self._session_factory() as db:
                return DuplicateStats(
                    total_detections=db.scalar(count) or 0,
                    unresolved_detections=db.scalar(count.where(DuplicateDetectionLog.resolved.is_(False))) or 0,
                    registration_attempts=db.scalar(
                        count.where(
                            DuplicateDetectionLog.detection_type == DetectionType.REGISTRATION_ATTEMPT,
                            DuplicateDetectionLog.duplicate_detected.is_(True),
                        )
                    )
                    or 0,
                    recent_detections=db.scalar(count.where(DuplicateDetectionLog.created_at >= recent_since)) or 0,
                )
        except SQLAlchemyError:
            logger.warning("audit.stats_failed", exc_info=True)
            return DuplicateStats()

    def unresolved_detections(self, limit: int = 50) -> list[DetectionLogRead]:
        stmt = (
            select(DuplicateDetectionLog)
            .where(DuplicateDetectionLog.resolved.is_(False))
            .order_by(DuplicateDetectionLog.similarity_score.desc(), DuplicateDetectionLog.created_at.desc())
            .limit(limit)
        )
        return self._read_logs(stmt)

    def pending_merges(self, limit: int = 50) -> list[DetectionLogRead]:
        stmt = (
            select(DuplicateDetectionLog)
            .where(
                DuplicateDetectionLog.resolved.is_(False),
                DuplicateDetectionLog.similarity_score >= PENDING_MERGE_MIN_SCORE,
            )
            .order_by(DuplicateDetectionLog.similarity_score.desc(), DuplicateDetectionLog.created_at.desc())
            .limit(limit)
        )
        return self._read_logs(stmt)

    def recent_duplicate_registrations(self, since: datetime) -> list[DetectionLogRead]:
        stmt = (
            select(DuplicateDetectionLog)
            .where(
                DuplicateDetectionLog.detection_type == DetectionType.REGISTRATION_ATTEMPT,
                DuplicateDetectionLog.duplicate_detected.is_(True),
                DuplicateDetectionLog.created_at >= since,
            )
            .order_by(DuplicateDetectionLog.created_at.desc())
        )
        return self._read_logs(stmt)

    def merge_history(self, user_id: str) -> list[AccountMergeRead]:
        stmt = (
            select(AccountMerge)
            .where(or_(AccountMerge.primary_user_id == user_id, AccountMerge.merged_user_id == user_id))
            .order_by(AccountMerge.created_at.desc())
        )
        try:
            with self._session_factory() as db:
                return [AccountMergeRead.model_validate(row) for row in db.scalars(stmt).all()]
        except SQLAlchemyError:
            logger.warning("audit.merge_history_failed user_id=%s", user_id, exc_info=True)
            return []

    def _read_logs(self, stmt) -> list[DetectionLogRead]:
        try:
            with self._session_factory() as db:
                return [DetectionLogRead.model_validate(row) for row in db.scalars(stmt).all()]
        except SQLAlchemyError:
            logger.warning("audit.log_query_failed", exc_info=True)
            return []


def build_audit_sink(
    engine: Engine,
    session_factory: Callable[[], Session],
    settings: Settings | None = None,
) -> AuditSink:
    """Select the audit sink once, based on configuration and schema presence."""

    settings = settings or get_settings()
    if not settings.audit_store_enabled:
        logger.info("audit.disabled reason=configuration")
        return NullAuditSink()
    try:
        inspector = inspect(engine)
        missing = [
            table
            for table in (DuplicateDetectionLog.__tablename__, AccountMerge.__tablename__)
            if not inspector.has_table(table)
        ]
    except SQLAlchemyError as exc:
        logger.warning("audit.unavailable %s", AuditUnavailable(f"inspection failed: {exc}"))
        return NullAuditSink()
    if missing:
        logger.warning("audit.unavailable %s", AuditUnavailable(f"missing tables: {', '.join(missing)}"))
        return NullAuditSink()
    return DatabaseAuditSink(session_factory)


@lru_cache
def get_audit_sink() -> AuditSink:
    """Process-wide audit sink, selected on first use."""

    from identity_dedup.db.session import SessionLocal, engine

    return build_audit_sink(engine, SessionLocal)
