"""ORM models package exports."""

from identity_dedup.models.account_merge import AccountMerge, MergeType
from identity_dedup.models.accounts import Activity, KycSubmission, Referral
from identity_dedup.models.bookings import Booking, Dispute, Payout, Review, Transaction
from identity_dedup.models.duplicate_detection_log import DetectionType, DuplicateDetectionLog
from identity_dedup.models.events import Event, Package, Proposal, TalentAvailability
from identity_dedup.models.messaging import DirectMessage, Message, Notification
from identity_dedup.models.profiles import OrganizerProfile, TalentProfile
from identity_dedup.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "TalentProfile",
    "OrganizerProfile",
    "Booking",
    "Review",
    "Transaction",
    "Payout",
    "Dispute",
    "Message",
    "DirectMessage",
    "Notification",
    "Event",
    "Proposal",
    "TalentAvailability",
    "Package",
    "Referral",
    "Activity",
    "KycSubmission",
    "DuplicateDetectionLog",
    "DetectionType",
    "AccountMerge",
    "MergeType",
]
