"""duplicate detection and account merge audit tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: str | None = "20261019_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "duplicate_detection_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("email_normalized", sa.String(length=320), nullable=False),
        sa.Column("detection_type", sa.String(length=32), nullable=False),
        sa.Column("potential_duplicate_user_id", sa.String(length=36), nullable=True),
        sa.Column("original_user_id", sa.String(length=36), nullable=True),
        sa.Column("similarity_score", sa.Float(), nullable=False),
        sa.Column("detection_reason", sa.String(length=512), nullable=False),
        sa.Column("duplicate_detected", sa.Boolean(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", sa.String(length=36), nullable=True),
        sa.Column("resolution_action", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_duplicate_detection_logs_email_normalized",
        "duplicate_detection_logs",
        ["email_normalized"],
        unique=False,
    )
    op.create_index(
        "ix_duplicate_detection_logs_potential_duplicate_user_id",
        "duplicate_detection_logs",
        ["potential_duplicate_user_id"],
        unique=False,
    )
    op.create_index(
        "ix_duplicate_detection_logs_original_user_id",
        "duplicate_detection_logs",
        ["original_user_id"],
        unique=False,
    )
    op.create_index("ix_duplicate_detection_logs_resolved", "duplicate_detection_logs", ["resolved"], unique=False)

    op.create_table(
        "account_merges",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("primary_user_id", sa.String(length=36), nullable=False),
        sa.Column("merged_user_id", sa.String(length=36), nullable=False),
        sa.Column("merge_reason", sa.Text(), nullable=False),
        sa.Column("merged_data", sa.JSON(), nullable=False),
        sa.Column("merged_by_admin_id", sa.String(length=36), nullable=True),
        sa.Column("merged_by_user_id", sa.String(length=36), nullable=True),
        sa.Column("merge_type", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_account_merges_primary_user_id", "account_merges", ["primary_user_id"], unique=False)
    op.create_index("ix_account_merges_merged_user_id", "account_merges", ["merged_user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_account_merges_merged_user_id", table_name="account_merges")
    op.drop_index("ix_account_merges_primary_user_id", table_name="account_merges")
    op.drop_table("account_merges")
    op.drop_index("ix_duplicate_detection_logs_resolved", table_name="duplicate_detection_logs")
    op.drop_index("ix_duplicate_detection_logs_original_user_id", table_name="duplicate_detection_logs")
    op.drop_index("ix_duplicate_detection_logs_potential_duplicate_user_id", table_name="duplicate_detection_logs")
    op.drop_index("ix_duplicate_detection_logs_email_normalized", table_name="duplicate_detection_logs")
    op.drop_table("duplicate_detection_logs")
