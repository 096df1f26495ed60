"""SQLAlchemy metadata registry import for Alembic."""

from identity_dedup.models import (
    AccountMerge,
    Activity,
    Booking,
    DirectMessage,
    Dispute,
    DuplicateDetectionLog,
    Event,
    KycSubmission,
    Message,
    Notification,
    OrganizerProfile,
    Package,
    Payout,
    Proposal,
    Referral,
    Review,
    TalentAvailability,
    TalentProfile,
    Transaction,
    User,
)
from identity_dedup.models.base import Base

__all__ = [
    "Base",
    "User",
    "TalentProfile",
    "OrganizerProfile",
    "Package",
    "Booking",
    "Message",
    "Review",
    "Transaction",
    "Event",
    "Proposal",
    "Notification",
    "Payout",
    "Dispute",
    "Referral",
    "Activity",
    "KycSubmission",
    "DirectMessage",
    "TalentAvailability",
    "DuplicateDetectionLog",
    "AccountMerge",
]
