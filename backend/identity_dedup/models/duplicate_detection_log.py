"""Duplicate detection log model."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class DetectionType(str, enum.Enum):
    REGISTRATION_ATTEMPT = "REGISTRATION_ATTEMPT"
    EXISTING_SCAN = "EXISTING_SCAN"
    MANUAL_CHECK = "MANUAL_CHECK"


class DuplicateDetectionLog(Base, IdMixin, CreatedAtMixin):
    """Append-only record of one detection evaluation.

    User ids are stored as plain columns so deleting a merged user never
    rewrites or cascades into detection history.
    """

    __tablename__ = "duplicate_detection_logs"

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    email_normalized: Mapped[str] = mapped_column(String(320), index=True, nullable=False)
    detection_type: Mapped[DetectionType] = mapped_column(
        Enum(DetectionType, name="detection_type", native_enum=False, length=32),
        nullable=False,
    )
    potential_duplicate_user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    original_user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    similarity_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    detection_reason: Mapped[str] = mapped_column(String(512), nullable=False)
    duplicate_detected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, index=True, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    resolution_action: Mapped[str | None] = mapped_column(String(32), nullable=True)
