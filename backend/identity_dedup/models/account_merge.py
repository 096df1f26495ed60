"""Account merge audit record model."""

import enum

from sqlalchemy import JSON, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from identity_dedup.models.base import Base, CreatedAtMixin, IdMixin


class MergeType(str, enum.Enum):
    ADMIN_INITIATED = "ADMIN_INITIATED"
    USER_INITIATED = "USER_INITIATED"
    AUTOMATIC = "AUTOMATIC"


class AccountMerge(Base, IdMixin, CreatedAtMixin):
    """One completed merge, written inside the merge transaction."""

    __tablename__ = "account_merges"

    primary_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    merged_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    merge_reason: Mapped[str] = mapped_column(Text, nullable=False)
    merged_data: Mapped[dict[str, int]] = mapped_column(JSON, default=dict, nullable=False)
    merged_by_admin_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    merged_by_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    merge_type: Mapped[MergeType] = mapped_column(
        Enum(MergeType, name="merge_type", native_enum=False, length=32),
        nullable=False,
    )
