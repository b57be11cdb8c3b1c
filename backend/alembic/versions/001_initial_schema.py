"""Initial schema — profiles, sessions, connections, requests, events, messaging, inbox.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_PAIR = sa.text("status IN ('pending', 'accepted')")
BLOCKING_REGISTRATION = sa.text("status IN ('pending', 'confirmed', 'rejected')")


def _profile_fk() -> sa.ForeignKey:
    return sa.ForeignKey("profiles.id", ondelete="CASCADE")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, index=True),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("status_reason", sa.Text, nullable=True),
        sa.Column("status_updated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "startup_profiles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=False, unique=True),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("tagline", sa.String(300), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("industry", sa.String(100), nullable=True),
        sa.Column("stage", sa.String(20), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("website_url", sa.Text, nullable=True),
        sa.Column("logo_url", sa.Text, nullable=True),
        sa.Column("pitch_deck_url", sa.Text, nullable=True),
        sa.Column("funding_goal", sa.Numeric(15, 2), nullable=True),
        sa.Column("funding_raised", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("slug", sa.String(200), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "mentor_profiles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=False, unique=True),
        sa.Column("expertise_tags", sa.JSON, nullable=False),
        sa.Column("industry_focus", sa.String(100), nullable=True),
        sa.Column("years_experience", sa.Integer, nullable=True),
        sa.Column("availability", sa.String(20), nullable=True),
        sa.Column("is_paid", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("company", sa.String(200), nullable=True),
        sa.Column("job_title", sa.String(200), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "investor_profiles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=False, unique=True),
        sa.Column("fund_name", sa.String(200), nullable=True),
        sa.Column("fund_size", sa.String(100), nullable=True),
        sa.Column("industry_focus", sa.String(100), nullable=True),
        sa.Column("investment_stage", sa.JSON, nullable=False),
        sa.Column("sectors", sa.JSON, nullable=False),
        sa.Column("ticket_size_min", sa.Integer, nullable=True),
        sa.Column("ticket_size_max", sa.Integer, nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("profile_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("token_digest", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "connections",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("requester_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("target_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("pair_low", sa.Uuid, nullable=False),
        sa.Column("pair_high", sa.Uuid, nullable=False),
        sa.Column("connection_type", sa.String(50), nullable=False, server_default="general"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("response_message", sa.Text, nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_connections_open_pair", "connections", ["pair_low", "pair_high"],
        unique=True, postgresql_where=OPEN_PAIR, sqlite_where=OPEN_PAIR,
    )

    op.create_table(
        "mentorship_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("startup_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("mentor_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("response_message", sa.Text, nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_mentorship_requests_open_pair", "mentorship_requests", ["startup_id", "mentor_id"],
        unique=True, postgresql_where=OPEN_PAIR, sqlite_where=OPEN_PAIR,
    )

    op.create_table(
        "investment_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("startup_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("investor_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("pitch_deck_url", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("response_message", sa.Text, nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_investment_requests_open_pair", "investment_requests", ["startup_id", "investor_id"],
        unique=True, postgresql_where=OPEN_PAIR, sqlite_where=OPEN_PAIR,
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("organizer_id", sa.Uuid, _profile_fk(), nullable=True, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("event_type", sa.String(30), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("is_virtual", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("meeting_link", sa.Text, nullable=True),
        sa.Column("max_participants", sa.Integer, nullable=True),
        sa.Column("confirmed_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("requires_approval", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("target_audience", sa.JSON, nullable=False),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("cancellation_reason", sa.Text, nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "max_participants IS NULL OR confirmed_count <= max_participants",
            name="ck_events_confirmed_within_capacity",
        ),
    )

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("event_id", sa.Uuid, sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("registration_type", sa.String(30), nullable=False, server_default="attendee"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("moderator_message", sa.Text, nullable=True),
        sa.Column("moderated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "uq_event_registrations_blocking", "event_registrations", ["event_id", "user_id"],
        unique=True, postgresql_where=BLOCKING_REGISTRATION, sqlite_where=BLOCKING_REGISTRATION,
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, _profile_fk(), nullable=True, index=True),
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("details", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("participant1_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("participant2_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint("participant1_id", "participant2_id", name="uq_conversation_pair"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("conversation_id", sa.Uuid, sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("sender_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("message_type", sa.String(20), nullable=False, server_default="text"),
        sa.Column("read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "user_blocks",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("blocker_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("blocked_id", sa.Uuid, _profile_fk(), nullable=False, index=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_user_block_pair"),
    )

    op.create_table(
        "rate_limit_counters",
        sa.Column("key", sa.String(200), primary_key=True),
        sa.Column("window_start", sa.DateTime(timezone=True), primary_key=True),
        sa.Column("count", sa.Integer, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    for table in (
        "rate_limit_counters", "user_blocks", "messages", "conversations", "activity_logs",
        "notifications", "event_registrations", "events", "investment_requests",
        "mentorship_requests", "connections", "auth_sessions", "investor_profiles",
        "mentor_profiles", "startup_profiles", "profiles",
    ):
        op.drop_table(table)
