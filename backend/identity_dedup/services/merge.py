"""Account merge preview and execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from identity_dedup.detection.normalize import normalize_phone
from identity_dedup.errors import InvalidArgument, NotFound, TransactionFailure
from identity_dedup.models.accounts import Activity, KycSubmission, Referral
from identity_dedup.models.bookings import Booking, Dispute, Payout, Review, Transaction
from identity_dedup.models.events import Event, Package, Proposal, TalentAvailability
from identity_dedup.models.messaging import DirectMessage, Message, Notification
from identity_dedup.models.profiles import OrganizerProfile, TalentProfile
from identity_dedup.models.user import User
from identity_dedup.schemas.merge import MergeAccountsRequest, MergeDataCounts, MergePreview
from identity_dedup.schemas.user import UserSnapshot
from identity_dedup.services.audit import AuditSink, get_audit_sink

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserRelation:
    """One foreign-key column pointing at ``users.id``."""

    column: InstrumentedAttribute[str]
    category: str


# Every FK to users.id except the profile tables, which are reconciled
# separately. New relations must be registered here.
USER_RELATIONS: tuple[UserRelation, ...] = (
    UserRelation(Booking.organizer_id, "bookings"),
    UserRelation(Booking.talent_id, "bookings"),
    UserRelation(Message.sender_id, "messages"),
    UserRelation(Message.receiver_id, "messages"),
    UserRelation(Review.giver_id, "reviews"),
    UserRelation(Review.receiver_id, "reviews"),
    UserRelation(Transaction.user_id, "transactions"),
    UserRelation(Event.organizer_id, "events"),
    UserRelation(Proposal.talent_id, "proposals"),
    UserRelation(Notification.user_id, "notifications"),
    UserRelation(Payout.talent_id, "payouts"),
    UserRelation(Dispute.disputed_by_id, "disputes"),
    UserRelation(Referral.referrer_id, "referrals"),
    UserRelation(Referral.referred_id, "referrals"),
    UserRelation(Activity.user_id, "activities"),
    UserRelation(KycSubmission.user_id, "kyc_submissions"),
    UserRelation(DirectMessage.sender_id, "direct_messages"),
    UserRelation(DirectMessage.receiver_id, "direct_messages"),
    UserRelation(TalentAvailability.talent_id, "availability"),
)

_TALENT_SCALAR_FIELDS = (
    "bio",
    "tagline",
    "location",
    "website",
    "phone_number",
    "category",
    "experience",
    "hourly_rate",
    "mpesa_phone_number",
)
_TALENT_LIST_FIELDS = ("skills",)
_ORGANIZER_SCALAR_FIELDS = ("company_name", "bio", "website", "phone_number", "location")
_ORGANIZER_LIST_FIELDS = ("event_types",)


def preview_account_merge(db: Session, primary_user_id: str, merged_user_id: str) -> MergePreview:
    """Describe what merging ``merged_user_id`` into ``primary_user_id`` would move."""

    primary = db.scalar(select(User).where(User.id == primary_user_id))
    merged = db.scalar(select(User).where(User.id == merged_user_id))
    _require_users(primary_user_id, primary, merged_user_id, merged)
    return _build_preview(db, primary, merged)


def merge_accounts(
    db: Session,
    request: MergeAccountsRequest,
    *,
    audit_sink: AuditSink | None = None,
) -> MergeDataCounts:
    """Move every row owned by the merged user to the primary user, then delete it.

    Runs as one transaction on ``db``: either everything commits or nothing
    does. Returns the counts captured before the move.
    """

    audit_sink = audit_sink if audit_sink is not None else get_audit_sink()
    primary_user_id = request.primary_user_id
    merged_user_id = request.merged_user_id
    if primary_user_id == merged_user_id:
        raise InvalidArgument("Cannot merge a user with itself")

    started = perf_counter()
    try:
        locked = {
            user.id: user
            for user in db.scalars(
                select(User)
                .where(User.id.in_((primary_user_id, merged_user_id)))
                .order_by(User.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).all()
        }
        primary = locked.get(primary_user_id)
        merged = locked.get(merged_user_id)
        _require_users(primary_user_id, primary, merged_user_id, merged)
        preview = _build_preview(db, primary, merged)

        for relation in USER_RELATIONS:
            db.execute(
                update(relation.column.class_)
                .where(relation.column == merged_user_id)
                .values({relation.column.key: primary_user_id})
                .execution_options(synchronize_session=False)
            )

        _reconcile_talent_profile(db, primary_user_id, merged_user_id)
        _reconcile_organizer_profile(db, primary_user_id, merged_user_id)

        if audit_sink.available:
            audit_sink.record_merge(db, request, preview.data_to_merge)
            audit_sink.resolve_detections(db, merged_user_id, request.actor)

        db.execute(
            delete(User).where(User.id == merged_user_id).execution_options(synchronize_session=False)
        )
        db.commit()
    except NotFound:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        logger.exception(
            "merge.failed primary_user_id=%s merged_user_id=%s elapsed_ms=%.2f",
            primary_user_id,
            merged_user_id,
            (perf_counter() - started) * 1000.0,
        )
        raise TransactionFailure(
            f"Merging {merged_user_id} into {primary_user_id} failed and was rolled back"
        ) from exc

    logger.info(
        "merge.complete primary_user_id=%s merged_user_id=%s merge_type=%s audited=%s elapsed_ms=%.2f",
        primary_user_id,
        merged_user_id,
        request.merge_type.value,
        audit_sink.available,
        (perf_counter() - started) * 1000.0,
    )
    return preview.data_to_merge


def _require_users(primary_user_id: str, primary: User | None, merged_user_id: str, merged: User | None) -> None:
    if primary is None:
        raise NotFound(f"Primary user with ID {primary_user_id} not found")
    if merged is None:
        raise NotFound(f"Merged user with ID {merged_user_id} not found")


def _build_preview(db: Session, primary: User, merged: User) -> MergePreview:
    counts: dict[str, int] = {}
    for relation in USER_RELATIONS:
        count = db.scalar(
            select(func.count()).select_from(relation.column.class_).where(relation.column == merged.id)
        )
        counts[relation.category] = counts.get(relation.category, 0) + (count or 0)
    counts["packages"] = (
        db.scalar(
            select(func.count())
            .select_from(Package)
            .join(TalentProfile, TalentProfile.id == Package.talent_profile_id)
            .where(TalentProfile.user_id == merged.id)
        )
        or 0
    )

    conflicts: list[str] = []
    if primary.role != merged.role:
        conflicts.append(
            f"Role conflict: Primary user is {primary.role.value}, merged user is {merged.role.value}"
        )
    if primary.email != merged.email:
        conflicts.append(f"Email conflict: Primary user has {primary.email}, merged user has {merged.email}")
    if merged.name and primary.name != merged.name:
        conflicts.append(f'Name conflict: Primary user is "{primary.name}", merged user is "{merged.name}"')

    return MergePreview(
        primary_user=UserSnapshot.model_validate(primary),
        merged_user=UserSnapshot.model_validate(merged),
        data_to_merge=MergeDataCounts(**counts),
        conflicts=conflicts,
    )


def _fill_gaps(
    primary_profile: Any,
    merged_profile: Any,
    scalar_fields: tuple[str, ...],
    list_fields: tuple[str, ...],
) -> dict[str, Any]:
    """Take merged values only where the primary has nothing, or a shorter list."""

    values: dict[str, Any] = {}
    for field_name in scalar_fields:
        merged_value = getattr(merged_profile, field_name)
        if not getattr(primary_profile, field_name) and merged_value:
            values[field_name] = merged_value
    for field_name in list_fields:
        merged_list = getattr(merged_profile, field_name) or []
        if len(merged_list) > len(getattr(primary_profile, field_name) or []):
            values[field_name] = list(merged_list)
    if "phone_number" in values:
        values["phone_normalized"] = normalize_phone(values["phone_number"])
    return values


def _reconcile_talent_profile(db: Session, primary_user_id: str, merged_user_id: str) -> None:
    merged_profile = db.scalar(select(TalentProfile).where(TalentProfile.user_id == merged_user_id))
    if merged_profile is None:
        return
    primary_profile = db.scalar(select(TalentProfile).where(TalentProfile.user_id == primary_user_id))
    if primary_profile is None:
        db.execute(
            update(TalentProfile)
            .where(TalentProfile.id == merged_profile.id)
            .values(user_id=primary_user_id)
            .execution_options(synchronize_session=False)
        )
        return

    values = _fill_gaps(primary_profile, merged_profile, _TALENT_SCALAR_FIELDS, _TALENT_LIST_FIELDS)
    if values:
        db.execute(
            update(TalentProfile)
            .where(TalentProfile.id == primary_profile.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    db.execute(
        update(Package)
        .where(Package.talent_profile_id == merged_profile.id)
        .values(talent_profile_id=primary_profile.id)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(TalentProfile)
        .where(TalentProfile.id == merged_profile.id)
        .execution_options(synchronize_session=False)
    )


def _reconcile_organizer_profile(db: Session, primary_user_id: str, merged_user_id: str) -> None:
    merged_profile = db.scalar(select(OrganizerProfile).where(OrganizerProfile.user_id == merged_user_id))
    if merged_profile is None:
        return
    primary_profile = db.scalar(select(OrganizerProfile).where(OrganizerProfile.user_id == primary_user_id))
    if primary_profile is None:
        db.execute(
            update(OrganizerProfile)
            .where(OrganizerProfile.id == merged_profile.id)
            .values(user_id=primary_user_id)
            .execution_options(synchronize_session=False)
        )
        return

    values = _fill_gaps(primary_profile, merged_profile, _ORGANIZER_SCALAR_FIELDS, _ORGANIZER_LIST_FIELDS)
    if values:
        db.execute(
            update(OrganizerProfile)
            .where(OrganizerProfile.id == primary_profile.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    db.execute(
        delete(OrganizerProfile)
        .where(OrganizerProfile.id == merged_profile.id)
        .execution_options(synchronize_session=False)
    )
