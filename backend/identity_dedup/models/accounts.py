"""Account-level ORM models that reference users."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class Referral(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "referrals"

    referrer_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    referred_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)


class Activity(Base, IdMixin, CreatedAtMixin):
    """Activity log entry for a user."""

    __tablename__ = "activities"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    action: Mapped[str] = mapped_column(String(128), default="", nullable=False)


class KycSubmission(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "kyc_submissions"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="PENDING", nullable=False)
