"""User ORM model."""

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    TALENT = "TALENT"
    ORGANIZER = "ORGANIZER"


class User(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Marketplace account."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", native_enum=False, length=16),
        default=UserRole.TALENT,
        nullable=False,
    )

    talent_profile: Mapped["TalentProfile | None"] = relationship(  # noqa: F821
        back_populates="user",
        uselist=False,
        foreign_keys="TalentProfile.user_id",
    )
    organizer_profile: Mapped["OrganizerProfile | None"] = relationship(  # noqa: F821
        back_populates="user",
        uselist=False,
        foreign_keys="OrganizerProfile.user_id",
    )
