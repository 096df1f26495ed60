"""Messaging and notification ORM models that reference users."""

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class Message(Base, IdMixin, CreatedAtMixin):
    """Booking-thread message."""

    __tablename__ = "messages"

    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    receiver_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)


class DirectMessage(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "direct_messages"

    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    receiver_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)


class Notification(Base, IdMixin, CreatedAtMixin):
    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
