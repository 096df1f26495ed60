"""Rule-based duplicate account detection.

Two entry points share one set of heuristics: ``check_single`` scores an
identity that is about to register against a bounded candidate set, and
``scan_all`` compares every pair of existing users. The scan is O(n²) string
comparisons and is meant for operator-triggered batch jobs only.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from time import perf_counter

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from identity_dedup.detection.normalize import normalize_email, normalize_phone
from identity_dedup.detection.repository import UserRepository
from identity_dedup.detection.similarity import string_similarity
from identity_dedup.models.duplicate_detection_log import DetectionType
from identity_dedup.models.user import User
from identity_dedup.schemas.detection import DetectionResult, DuplicateCandidate
from identity_dedup.schemas.user import UserSnapshot
from identity_dedup.services.audit import AuditSink, DetectionLogEntry, NullAuditSink

logger = logging.getLogger(__name__)

EXACT_EMAIL_REASON = "Exact email match"
SAME_PHONE_REASON = "Same phone number"
NO_DUPLICATE_REASON = "No duplicates detected"
CHECK_FAILED_REASON = "Duplicate check failed"


@dataclass(frozen=True, slots=True)
class DetectionThresholds:
    """Similarity cut-offs; scores must be strictly greater unless noted."""

    email_similarity: float = 0.8
    # Tunable heuristic: similar names alone flag a duplicate, which is
    # aggressive for common names.
    name_similarity: float = 0.9
    phone_match_score: float = 0.95
    exact_email_score: float = 1.0
    # Anything short of an exact email match stays below exact_email_score.
    max_fuzzy_score: float = 0.99
    duplicate_cutoff: float = 0.8


DEFAULT_THRESHOLDS = DetectionThresholds()


@dataclass(slots=True)
class _ScoredMatch:
    user: User
    score: float = 0.0
    reasons: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _ScanRow:
    user: User
    email: str
    name: str | None
    phone: str | None


class DuplicateDetector:
    """Deterministic duplicate detector over the user table."""

    def __init__(
        self,
        db: Session,
        *,
        audit_sink: AuditSink | None = None,
        thresholds: DetectionThresholds = DEFAULT_THRESHOLDS,
        scan_workers: int = 1,
    ) -> None:
        self._repository = UserRepository(db)
        self._audit_sink = audit_sink or NullAuditSink()
        self._thresholds = thresholds
        self._scan_workers = max(1, scan_workers)

    def check_single(
        self,
        email: str,
        name: str | None = None,
        phone: str | None = None,
        *,
        detection_type: DetectionType = DetectionType.REGISTRATION_ATTEMPT,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> DetectionResult:
        """Score one identity against existing users before it is created."""

        normalized_email = normalize_email(email)
        normalized_phone = normalize_phone(phone)

        try:
            exact = self._repository.find_by_normalized_email(normalized_email)
            if exact is not None:
                result = DetectionResult(
                    is_duplicate=True,
                    matched_user_id=exact.id,
                    matched_user=UserSnapshot.model_validate(exact),
                    similarity_score=self._thresholds.exact_email_score,
                    reason=EXACT_EMAIL_REASON,
                )
            else:
                result = self._fuzzy_check(normalized_email, name, normalized_phone)
        except SQLAlchemyError:
            logger.warning(
                "dedup.check_failed email=%s detection_type=%s",
                normalized_email,
                detection_type.value,
                exc_info=True,
            )
            result = DetectionResult(is_duplicate=False, similarity_score=0.0, reason=CHECK_FAILED_REASON)

        self._audit_sink.log_detections(
            [
                DetectionLogEntry(
                    email=email,
                    detection_type=detection_type,
                    similarity_score=result.similarity_score,
                    detection_reason=result.reason,
                    duplicate_detected=result.is_duplicate,
                    potential_duplicate_user_id=result.matched_user_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            ]
        )
        return result

    def scan_all(self) -> list[DuplicateCandidate]:
        """Report every user that looks like a duplicate of an older user."""

        started = perf_counter()
        phones = self._repository.normalized_phones_by_user()
        rows = [
            _ScanRow(
                user=user,
                email=normalize_email(user.email),
                name=user.name.lower() if user.name else None,
                phone=phones.get(user.id),
            )
            for user in self._repository.list_oldest_first()
        ]

        if self._scan_workers > 1 and len(rows) > 2:
            with ThreadPoolExecutor(max_workers=self._scan_workers) as pool:
                per_original = list(pool.map(lambda i: self._score_against_later(rows, i), range(len(rows))))
        else:
            per_original = [self._score_against_later(rows, i) for i in range(len(rows))]

        duplicates: list[DuplicateCandidate] = []
        log_entries: list[DetectionLogEntry] = []
        matched_emails: set[str] = set()
        for i, matches in enumerate(per_original):
            original = rows[i]
            for j, score, reasons in matches:
                duplicate = rows[j]
                if duplicate.email in matched_emails:
                    continue
                matched_emails.add(duplicate.email)
                duplicates.append(
                    DuplicateCandidate(
                        user_id=duplicate.user.id,
                        email=duplicate.user.email,
                        name=duplicate.user.name,
                        role=duplicate.user.role,
                        created_at=duplicate.user.created_at,
                        original_user_id=original.user.id,
                        original_email=original.user.email,
                        similarity_score=score,
                        reasons=reasons,
                    )
                )
                log_entries.append(
                    DetectionLogEntry(
                        email=duplicate.user.email,
                        detection_type=DetectionType.EXISTING_SCAN,
                        similarity_score=score,
                        detection_reason=", ".join(reasons),
                        duplicate_detected=True,
                        potential_duplicate_user_id=duplicate.user.id,
                        original_user_id=original.user.id,
                    )
                )

        self._audit_sink.log_detections(log_entries)
        logger.info(
            "dedup.scan_complete users=%d duplicates=%d workers=%d elapsed_ms=%.2f",
            len(rows),
            len(duplicates),
            self._scan_workers,
            (perf_counter() - started) * 1000.0,
        )
        return duplicates

    def _fuzzy_check(
        self,
        normalized_email: str,
        name: str | None,
        normalized_phone: str | None,
    ) -> DetectionResult:
        matches: dict[str, _ScoredMatch] = {}
        lowered_name = name.lower() if name else None

        for user in self._repository.find_email_candidates(normalized_email):
            score, reasons = self._score_identity(
                normalized_email,
                lowered_name,
                normalize_email(user.email),
                user.name.lower() if user.name else None,
            )
            if reasons:
                matches[user.id] = _ScoredMatch(user=user, score=score, reasons=reasons)

        if normalized_phone:
            phone_user_ids = self._repository.user_ids_by_phone(normalized_phone)
            for user in self._repository.find_by_ids(phone_user_ids):
                match = matches.setdefault(user.id, _ScoredMatch(user=user))
                match.score = max(match.score, self._thresholds.phone_match_score)
                match.reasons.append(SAME_PHONE_REASON)

        best: _ScoredMatch | None = None
        for match in matches.values():
            if best is None or match.score > best.score:
                best = match

        if best is None or best.score <= self._thresholds.duplicate_cutoff:
            return DetectionResult(is_duplicate=False, similarity_score=0.0, reason=NO_DUPLICATE_REASON)
        return DetectionResult(
            is_duplicate=True,
            matched_user_id=best.user.id,
            matched_user=UserSnapshot.model_validate(best.user),
            similarity_score=best.score,
            reason=", ".join(best.reasons),
        )

    def _score_identity(
        self,
        left_email: str,
        left_name: str | None,
        right_email: str,
        right_name: str | None,
    ) -> tuple[float, list[str]]:
        """Return (score, reasons) for the email and name heuristics."""

        if left_email == right_email:
            return self._thresholds.exact_email_score, [EXACT_EMAIL_REASON]

        email_similarity = string_similarity(left_email, right_email)
        name_similarity = string_similarity(left_name, right_name) if left_name and right_name else 0.0

        score = 0.0
        reasons: list[str] = []
        if email_similarity > self._thresholds.email_similarity:
            reasons.append(f"Similar email ({email_similarity * 100:.1f}% match)")
            score = max(score, email_similarity)
        if name_similarity > self._thresholds.name_similarity:
            reasons.append(f"Similar name ({name_similarity * 100:.1f}% match)")
            score = max(score, name_similarity)
        return min(score, self._thresholds.max_fuzzy_score), reasons

    def _score_against_later(self, rows: list[_ScanRow], index: int) -> list[tuple[int, float, list[str]]]:
        original = rows[index]
        matches: list[tuple[int, float, list[str]]] = []
        for j in range(index + 1, len(rows)):
            candidate = rows[j]
            score, reasons = self._score_identity(original.email, original.name, candidate.email, candidate.name)
            if original.phone and original.phone == candidate.phone:
                reasons.append(SAME_PHONE_REASON)
                score = max(score, self._thresholds.phone_match_score)
            if reasons and score > self._thresholds.duplicate_cutoff:
                matches.append((j, score, reasons))
        return matches
