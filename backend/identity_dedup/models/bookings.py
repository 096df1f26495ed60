"""Booking-side ORM models that reference users."""

from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class Booking(Base, IdMixin, CreatedAtMixin):
    """Booking between an organizer and a talent."""

    __tablename__ = "bookings"

    organizer_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    talent_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="PENDING", nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)


class Review(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "reviews"

    giver_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    receiver_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    rating: Mapped[int] = mapped_column(default=5, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)


class Transaction(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "transactions"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    kind: Mapped[str] = mapped_column(String(32), default="PAYMENT", nullable=False)


class Payout(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "payouts"

    talent_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)


class Dispute(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "disputes"

    disputed_by_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
