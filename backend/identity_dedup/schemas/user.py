"""User snapshot schema."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from identity_dedup.models.user import UserRole


class UserSnapshot(BaseModel):
    """Identity fields of one user at read time."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None
    role: UserRole
    created_at: datetime
