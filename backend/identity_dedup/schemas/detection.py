"""Duplicate detection schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from identity_dedup.models.duplicate_detection_log import DetectionType
from identity_dedup.models.user import UserRole
from identity_dedup.schemas.user import UserSnapshot


class DetectionResult(BaseModel):
    """Outcome of checking one identity against existing users."""

    is_duplicate: bool
    matched_user_id: str | None = None
    matched_user: UserSnapshot | None = None
    similarity_score: float = Field(ge=0.0, le=1.0)
    reason: str


class DuplicateCandidate(BaseModel):
    """An existing user flagged as a probable duplicate of an older one."""

    user_id: str
    email: str
    name: str | None
    role: UserRole
    created_at: datetime
    original_user_id: str
    original_email: str
    similarity_score: float = Field(ge=0.0, le=1.0)
    reasons: list[str]


class DuplicateCheckRequest(BaseModel):
    email: str = Field(min_length=1)
    name: str | None = None
    phone: str | None = None


class DuplicateStats(BaseModel):
    total_detections: int = 0
    unresolved_detections: int = 0
    registration_attempts: int = 0
    recent_detections: int = 0


class DetectionLogRead(BaseModel):
    """Serialized detection log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    email_normalized: str
    detection_type: DetectionType
    potential_duplicate_user_id: str | None
    original_user_id: str | None
    similarity_score: float
    detection_reason: str
    duplicate_detected: bool
    resolved: bool
    resolved_at: datetime | None
    resolved_by: str | None
    resolution_action: str | None
    created_at: datetime
