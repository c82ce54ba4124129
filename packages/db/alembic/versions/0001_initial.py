"""create urge, progress, subscription, profile, content and check-in tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-02-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "urge_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_local", sa.Text(), nullable=False),
        sa.Column("from_screen", sa.Text(), nullable=False, server_default="panic"),
        sa.Column("urge_level", sa.Integer(), nullable=False, server_default="5"),
        sa.Column(
            "protocol_completed", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("urge_kind", sa.Text(), nullable=False),
        sa.Column("action_type", sa.Text(), nullable=False, server_default="general"),
        sa.Column("action_id", sa.Text(), nullable=False, server_default=""),
        sa.Column("outcome", sa.Text(), nullable=False),
        sa.Column("trigger_tag", sa.Text(), nullable=True),
        sa.Column("spend_category", sa.Text(), nullable=True),
        sa.Column("spend_item_type", sa.Text(), nullable=True),
    )
    op.create_index("ix_urge_events_date_local", "urge_events", ["date_local"], unique=False)

    op.create_table(
        "progress",
        sa.Column("date_local", sa.Text(), primary_key=True),
        sa.Column("streak_current", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meditation_count_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meditation_rank", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_success_date", sa.Text(), nullable=True),
        sa.Column(
            "spend_avoided_count_total", sa.Integer(), nullable=False, server_default="0"
        ),
    )

    op.create_table(
        "subscription_state",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="none"),
        sa.Column("product_id", sa.Text(), nullable=True),
        sa.Column("period", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trial_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "user_profile",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("locale", sa.Text(), nullable=False, server_default="en"),
        sa.Column("notification_style", sa.Text(), nullable=False, server_default="normal"),
        sa.Column("goal_type", sa.Text(), nullable=True),
        sa.Column("last_opened_on", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "content",
        sa.Column("content_id", sa.Text(), primary_key=True),
        sa.Column("day_index", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("action_text", sa.Text(), nullable=False),
        sa.Column("est_minutes", sa.Integer(), nullable=False),
    )
    op.create_index("ix_content_day_index", "content", ["day_index"], unique=False)

    op.create_table(
        "content_progress",
        sa.Column("content_id", sa.Text(), primary_key=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_local", sa.Text(), nullable=False),
    )
    op.create_index(
        "ix_content_progress_date_local", "content_progress", ["date_local"], unique=False
    )

    op.create_table(
        "daily_checkin",
        sa.Column("date_local", sa.Text(), primary_key=True),
        sa.Column("mood", sa.Integer(), nullable=False),
        sa.Column("fatigue", sa.Integer(), nullable=False),
        sa.Column("urge", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("opened_at_night", sa.Boolean(), nullable=True),
        sa.Column("spent_today", sa.Boolean(), nullable=True),
        sa.Column("spent_amount", sa.Integer(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("daily_checkin")
    op.drop_index("ix_content_progress_date_local", table_name="content_progress")
    op.drop_table("content_progress")
    op.drop_index("ix_content_day_index", table_name="content")
    op.drop_table("content")
    op.drop_table("user_profile")
    op.drop_table("subscription_state")
    op.drop_table("progress")
    op.drop_index("ix_urge_events_date_local", table_name="urge_events")
    op.drop_table("urge_events")
