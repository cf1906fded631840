"""initial schema

Revision ID: a7c3e91f2b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration:
1. Creates the users table with the user_role enum
2. Creates the sessions table with the session_status enum; session_code
   is indexed but not unique, codes are reused after 60 days
3. Creates participants, cascading on session delete
4. Creates valid_keys with the (key, month) and (session_id, pilot_name,
   month) unique constraints; session_id carries no foreign key so keys
   survive session deletion
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c3e91f2b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create users, sessions, participants and valid_keys."""
    # Enum labels are the Python enum member names
    user_role_enum = postgresql.ENUM(
        "PILOT", "DISPATCHER", "ADMIN", name="user_role", create_type=False
    )
    user_role_enum.create(op.get_bind(), checkfirst=True)

    session_status_enum = postgresql.ENUM(
        "OPEN", "CLOSING", "CLOSED", "COMPLETED", name="session_status", create_type=False
    )
    session_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="PILOT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("session_code", sa.String(length=4), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        # Literal YYYY-MM-DD / HH:mm strings, interpreted as UTC
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("registration_start_time", sa.String(length=5), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("closing_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("status", session_status_enum, nullable=False, server_default="OPEN"),
        sa.Column("comments", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_by_name", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sessions_session_code", "sessions", ["session_code"])
    op.create_index("ix_sessions_created_by_id", "sessions", ["created_by_id"])
    op.create_index("ix_sessions_date_start_time", "sessions", ["date", "start_time"])
    op.create_index("ix_sessions_status", "sessions", ["status"])
    op.create_index("ix_sessions_created_at", "sessions", ["created_at"])

    op.create_table(
        "participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("validation_code", sa.String(length=3), nullable=False),
        sa.Column("code", sa.String(length=4), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=True),
        sa.Column(
            "registered_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["sessions.id"],
            name="fk_participants_session_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_participants_session_id", "participants", ["session_id"])
    op.create_index(
        "ix_participants_session_validation_code",
        "participants",
        ["session_id", "validation_code"],
    )
    op.create_index("ix_participants_registered_at", "participants", ["registered_at"])

    op.create_table(
        "valid_keys",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("key", sa.String(length=4), nullable=False),
        sa.Column("pilot_name", sa.String(length=100), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key", "month", name="uq_valid_keys_key_month"),
        sa.UniqueConstraint(
            "session_id", "pilot_name", "month", name="uq_valid_keys_session_pilot_month"
        ),
    )
    op.create_index("ix_valid_keys_session_id", "valid_keys", ["session_id"])
    op.create_index("ix_valid_keys_key", "valid_keys", ["key"])
    op.create_index("ix_valid_keys_month", "valid_keys", ["month"])
    op.create_index("ix_valid_keys_session_month", "valid_keys", ["session_id", "month"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table("valid_keys")
    op.drop_table("participants")
    op.drop_table("sessions")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    postgresql.ENUM(name="session_status").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
