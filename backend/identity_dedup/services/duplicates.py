"""Library entry points for duplicate detection consumed by admin tooling."""

from __future__ import annotations

from dataclasses import replace
from enum import Enum

from sqlalchemy.orm import Session

from identity_dedup.config import get_settings
from identity_dedup.detection.detector import DEFAULT_THRESHOLDS, DetectionThresholds, DuplicateDetector
from identity_dedup.models.duplicate_detection_log import DetectionType
from identity_dedup.schemas.detection import DetectionLogRead, DetectionResult, DuplicateCandidate, DuplicateStats
from identity_dedup.schemas.merge import AccountMergeRead
from identity_dedup.services.audit import AuditSink, get_audit_sink

HIGH_CONFIDENCE_MIN = 0.95
MEDIUM_CONFIDENCE_MIN = 0.85


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def confidence_tier(score: float) -> ConfidenceTier:
    """High is >= 0.95, medium is [0.85, 0.95), anything lower is low."""

    if score >= HIGH_CONFIDENCE_MIN:
        return ConfidenceTier.HIGH
    if score >= MEDIUM_CONFIDENCE_MIN:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def group_by_tier(duplicates: list[DuplicateCandidate]) -> dict[ConfidenceTier, list[DuplicateCandidate]]:
    grouped: dict[ConfidenceTier, list[DuplicateCandidate]] = {tier: [] for tier in ConfidenceTier}
    for duplicate in duplicates:
        grouped[confidence_tier(duplicate.similarity_score)].append(duplicate)
    return grouped


def configured_thresholds() -> DetectionThresholds:
    return replace(DEFAULT_THRESHOLDS, name_similarity=get_settings().name_similarity_threshold)


def build_detector(db: Session, audit_sink: AuditSink | None = None) -> DuplicateDetector:
    settings = get_settings()
    return DuplicateDetector(
        db,
        audit_sink=audit_sink if audit_sink is not None else get_audit_sink(),
        thresholds=configured_thresholds(),
        scan_workers=settings.scan_workers,
    )


def check_for_duplicate_user(
    db: Session,
    email: str,
    name: str | None = None,
    phone: str | None = None,
    *,
    detection_type: DetectionType = DetectionType.REGISTRATION_ATTEMPT,
    ip_address: str | None = None,
    user_agent: str | None = None,
    audit_sink: AuditSink | None = None,
) -> DetectionResult:
    """Check a prospective registration against existing users."""

    return build_detector(db, audit_sink).check_single(
        email,
        name,
        phone,
        detection_type=detection_type,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def find_existing_duplicates(db: Session, *, audit_sink: AuditSink | None = None) -> list[DuplicateCandidate]:
    """Scan the whole user base for duplicate pairs."""

    return build_detector(db, audit_sink).scan_all()


def get_duplicate_stats(audit_sink: AuditSink | None = None) -> DuplicateStats:
    return (audit_sink or get_audit_sink()).stats()


def get_pending_merges(limit: int = 50, audit_sink: AuditSink | None = None) -> list[DetectionLogRead]:
    """Unresolved detections scored high enough to be merge candidates."""

    return (audit_sink or get_audit_sink()).pending_merges(limit)


def get_merge_history(user_id: str, audit_sink: AuditSink | None = None) -> list[AccountMergeRead]:
    return (audit_sink or get_audit_sink()).merge_history(user_id)
