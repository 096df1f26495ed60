"""Event marketplace ORM models that reference users or talent profiles."""

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class Event(Base, IdMixin, CreatedAtMixin):
    """Event posted by an organizer."""

    __tablename__ = "events"

    organizer_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)


class Proposal(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "proposals"

    talent_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    event_id: Mapped[str | None] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)


class TalentAvailability(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "talent_availability"

    talent_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    day: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="AVAILABLE", nullable=False)


class Package(Base, IdMixin, CreatedAtMixin):
    """Bookable offering attached to a talent profile."""

    __tablename__ = "packages"

    talent_profile_id: Mapped[str] = mapped_column(
        ForeignKey("talent_profiles.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
