"""marketplace schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(length=36), nullable=False)


def _created_at_column() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _updated_at_column() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _user_fk(column: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint([column], ["users.id"], ondelete="RESTRICT")


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False),
        _created_at_column(),
        _updated_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "talent_profiles",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("tagline", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("website", sa.String(length=512), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("phone_normalized", sa.String(length=32), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("hourly_rate", sa.Float(), nullable=True),
        sa.Column("mpesa_phone_number", sa.String(length=32), nullable=True),
        _created_at_column(),
        _updated_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_talent_profiles_phone_normalized", "talent_profiles", ["phone_normalized"], unique=False)

    op.create_table(
        "organizer_profiles",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("website", sa.String(length=512), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("phone_normalized", sa.String(length=32), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("event_types", sa.JSON(), nullable=False),
        _created_at_column(),
        _updated_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index(
        "ix_organizer_profiles_phone_normalized",
        "organizer_profiles",
        ["phone_normalized"],
        unique=False,
    )

    op.create_table(
        "bookings",
        _id_column(),
        sa.Column("organizer_id", sa.String(length=36), nullable=False),
        sa.Column("talent_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        _created_at_column(),
        _user_fk("organizer_id"),
        _user_fk("talent_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_organizer_id", "bookings", ["organizer_id"], unique=False)
    op.create_index("ix_bookings_talent_id", "bookings", ["talent_id"], unique=False)

    op.create_table(
        "reviews",
        _id_column(),
        sa.Column("giver_id", sa.String(length=36), nullable=False),
        sa.Column("receiver_id", sa.String(length=36), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at_column(),
        _user_fk("giver_id"),
        _user_fk("receiver_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reviews_giver_id", "reviews", ["giver_id"], unique=False)
    op.create_index("ix_reviews_receiver_id", "reviews", ["receiver_id"], unique=False)

    op.create_table(
        "transactions",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        _created_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"], unique=False)

    op.create_table(
        "payouts",
        _id_column(),
        sa.Column("talent_id", sa.String(length=36), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        _created_at_column(),
        _user_fk("talent_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payouts_talent_id", "payouts", ["talent_id"], unique=False)

    op.create_table(
        "disputes",
        _id_column(),
        sa.Column("disputed_by_id", sa.String(length=36), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at_column(),
        _user_fk("disputed_by_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_disputes_disputed_by_id", "disputes", ["disputed_by_id"], unique=False)

    for table in ("messages", "direct_messages"):
        op.create_table(
            table,
            _id_column(),
            sa.Column("sender_id", sa.String(length=36), nullable=False),
            sa.Column("receiver_id", sa.String(length=36), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            _created_at_column(),
            _user_fk("sender_id"),
            _user_fk("receiver_id"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_sender_id", table, ["sender_id"], unique=False)
        op.create_index(f"ix_{table}_receiver_id", table, ["receiver_id"], unique=False)

    op.create_table(
        "notifications",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        _created_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)

    op.create_table(
        "events",
        _id_column(),
        sa.Column("organizer_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        _created_at_column(),
        _user_fk("organizer_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"], unique=False)

    op.create_table(
        "proposals",
        _id_column(),
        sa.Column("talent_id", sa.String(length=36), nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        _created_at_column(),
        _user_fk("talent_id"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_proposals_talent_id", "proposals", ["talent_id"], unique=False)

    op.create_table(
        "talent_availability",
        _id_column(),
        sa.Column("talent_id", sa.String(length=36), nullable=False),
        sa.Column("day", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        _created_at_column(),
        _user_fk("talent_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_talent_availability_talent_id", "talent_availability", ["talent_id"], unique=False)

    op.create_table(
        "packages",
        _id_column(),
        sa.Column("talent_profile_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        _created_at_column(),
        sa.ForeignKeyConstraint(["talent_profile_id"], ["talent_profiles.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_packages_talent_profile_id", "packages", ["talent_profile_id"], unique=False)

    op.create_table(
        "referrals",
        _id_column(),
        sa.Column("referrer_id", sa.String(length=36), nullable=False),
        sa.Column("referred_id", sa.String(length=36), nullable=False),
        _created_at_column(),
        _user_fk("referrer_id"),
        _user_fk("referred_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_referrals_referrer_id", "referrals", ["referrer_id"], unique=False)
    op.create_index("ix_referrals_referred_id", "referrals", ["referred_id"], unique=False)

    op.create_table(
        "activities",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=128), nullable=False),
        _created_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_user_id", "activities", ["user_id"], unique=False)

    op.create_table(
        "kyc_submissions",
        _id_column(),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        _created_at_column(),
        _user_fk("user_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_kyc_submissions_user_id", "kyc_submissions", ["user_id"], unique=False)


def downgrade() -> None:
    for table in (
        "kyc_submissions",
        "activities",
        "referrals",
        "packages",
        "talent_availability",
        "proposals",
        "events",
        "notifications",
        "direct_messages",
        "messages",
        "disputes",
        "payouts",
        "transactions",
        "reviews",
        "bookings",
        "organizer_profiles",
        "talent_profiles",
        "users",
    ):
        op.drop_table(table)
