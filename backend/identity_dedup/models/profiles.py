"""Role-specific profile ORM models."""

from sqlalchemy import JSON, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from identity_dedup.detection.normalize import normalize_phone
from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class TalentProfile(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Profile owned by a TALENT user."""

    __tablename__ = "talent_profiles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    tagline: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    phone_normalized: Mapped[str | None] = mapped_column(String(32), index=True, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    mpesa_phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    user: Mapped["User"] = relationship(back_populates="talent_profile")  # noqa: F821

    @validates("phone_number")
    def _sync_phone_normalized(self, _key: str, value: str | None) -> str | None:
        self.phone_normalized = normalize_phone(value)
        return value


class OrganizerProfile(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Profile owned by an ORGANIZER user."""

    __tablename__ = "organizer_profiles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    phone_normalized: Mapped[str | None] = mapped_column(String(32), index=True, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_types: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    user: Mapped["User"] = relationship(back_populates="organizer_profile")  # noqa: F821

    @validates("phone_number")
    def _sync_phone_normalized(self, _key: str, value: str | None) -> str | None:
        self.phone_normalized = normalize_phone(value)
        return value
