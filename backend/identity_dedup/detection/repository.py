"""Storage access for duplicate detection."""

from __future__ import annotations

from sqlalchemy import String, func, or_, select, union
from sqlalchemy.orm import Session

from identity_dedup.models.profiles import OrganizerProfile, TalentProfile
from identity_dedup.models.user import User


class UserRepository:
    """Read-only user queries used by the detector."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_normalized_email(self, normalized_email: str) -> User | None:
        stmt = (
            select(User)
            .where(func.lower(func.trim(User.email)) == normalized_email)
            .order_by(User.created_at.asc(), User.id.asc())
            .limit(1)
        )
        return self._db.scalar(stmt)

    def find_email_candidates(self, normalized_email: str) -> list[User]:
        """Users sharing the local part as a substring, or the same domain."""

        local_part, _, domain = normalized_email.partition("@")
        lowered = func.lower(User.email, type_=String)
        conditions = []
        if local_part:
            conditions.append(lowered.contains(local_part, autoescape=True))
        if domain:
            conditions.append(lowered.endswith(f"@{domain}", autoescape=True))
        if not conditions:
            return []
        stmt = select(User).where(or_(*conditions)).order_by(User.created_at.asc(), User.id.asc())
        return list(self._db.scalars(stmt).all())

    def user_ids_by_phone(self, normalized_phone: str) -> set[str]:
        """Ids of users whose talent or organizer profile carries this phone."""

        stmt = union(
            select(TalentProfile.user_id).where(TalentProfile.phone_normalized == normalized_phone),
            select(OrganizerProfile.user_id).where(OrganizerProfile.phone_normalized == normalized_phone),
        )
        return set(self._db.scalars(stmt).all())

    def find_by_ids(self, user_ids: set[str]) -> list[User]:
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(user_ids)).order_by(User.created_at.asc(), User.id.asc())
        return list(self._db.scalars(stmt).all())

    def list_oldest_first(self) -> list[User]:
        stmt = select(User).order_by(User.created_at.asc(), User.id.asc())
        return list(self._db.scalars(stmt).all())

    def normalized_phones_by_user(self) -> dict[str, str]:
        """Map user id to normalized phone, talent profile first."""

        phones: dict[str, str] = {}
        organizer_rows = self._db.execute(
            select(OrganizerProfile.user_id, OrganizerProfile.phone_normalized).where(
                OrganizerProfile.phone_normalized.is_not(None)
            )
        ).all()
        talent_rows = self._db.execute(
            select(TalentProfile.user_id, TalentProfile.phone_normalized).where(
                TalentProfile.phone_normalized.is_not(None)
            )
        ).all()
        for user_id, phone in organizer_rows:
            phones[user_id] = phone
        for user_id, phone in talent_rows:
            phones[user_id] = phone
        return phones
