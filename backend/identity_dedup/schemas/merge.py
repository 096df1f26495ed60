"""Account merge schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from identity_dedup.models.account_merge import MergeType
from identity_dedup.schemas.user import UserSnapshot


class MergeDataCounts(BaseModel):
    """Rows that would move from the merged user to the primary user."""

    bookings: int = 0
    messages: int = 0
    reviews: int = 0
    transactions: int = 0
    events: int = 0
    proposals: int = 0
    packages: int = 0
    notifications: int = 0
    payouts: int = 0
    disputes: int = 0
    referrals: int = 0
    activities: int = 0
    kyc_submissions: int = 0
    direct_messages: int = 0
    availability: int = 0


class MergePreview(BaseModel):
    primary_user: UserSnapshot
    merged_user: UserSnapshot
    data_to_merge: MergeDataCounts
    conflicts: list[str]


class MergeAccountsRequest(BaseModel):
    """Who merges what into whom, and why."""

    primary_user_id: str = Field(min_length=1)
    merged_user_id: str = Field(min_length=1)
    merge_reason: str = "Admin-initiated merge"
    merge_type: MergeType = MergeType.ADMIN_INITIATED
    merged_by_admin_id: str | None = None
    merged_by_user_id: str | None = None

    @property
    def actor(self) -> str | None:
        return self.merged_by_admin_id or self.merged_by_user_id


class MergeApiRequest(MergeAccountsRequest):
    """HTTP payload; ``preview`` returns the preview without merging."""

    preview: bool = False


class MergeResult(BaseModel):
    primary_user_id: str
    merged_user_id: str
    merged_data: MergeDataCounts


class AccountMergeRead(BaseModel):
    """Serialized merge audit record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    primary_user_id: str
    merged_user_id: str
    merge_reason: str
    merged_data: dict[str, int]
    merged_by_admin_id: str | None
    merged_by_user_id: str | None
    merge_type: MergeType
    created_at: datetime
