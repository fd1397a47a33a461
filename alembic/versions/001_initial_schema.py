"""001 – Initial schema: users, sessions, balances, requests, audit log.

Portable DDL: runs on both SQLite and PostgreSQL (enums are VARCHAR + CHECK).

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

USER_ROLES = ["EMPLOYEE", "MANAGER", "ADMIN"]
REQUEST_STATUSES = ["PENDING", "APPROVED", "REJECTED"]
TIME_OFF_TYPES = ["VACATION", "SICK", "PAID_LEAVE", "PERSONAL"]


def _enum(name: str, values: list[str]) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=20)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _review_columns() -> list[sa.Column]:
    return [
        sa.Column("reviewed_by", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
    ]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── 1. users ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("role", _enum("user_role", USER_ROLES), nullable=False),
        sa.Column("supervisor_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_supervisor_id", "users", ["supervisor_id"])

    # ── 2. user_sessions ──────────────────────────────────────────────────
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id", sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("token_hash", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("ix_user_sessions_token_hash", "user_sessions", ["token_hash"])

    # ── 3. time_off_balances ──────────────────────────────────────────────
    op.create_table(
        "time_off_balances",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id", sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("vacation_days", sa.Numeric(6, 2), nullable=False),
        sa.Column("sick_days", sa.Numeric(6, 2), nullable=False),
        sa.Column("paid_leave", sa.Numeric(6, 2), nullable=False),
        sa.Column("personal_days", sa.Numeric(6, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "year", name="uq_time_off_balance_user_year"),
        sa.CheckConstraint("vacation_days >= 0", name="ck_balance_vacation_non_negative"),
        sa.CheckConstraint("sick_days >= 0", name="ck_balance_sick_non_negative"),
        sa.CheckConstraint("paid_leave >= 0", name="ck_balance_paid_leave_non_negative"),
        sa.CheckConstraint("personal_days >= 0", name="ck_balance_personal_non_negative"),
    )

    # ── 4. time_off_requests ──────────────────────────────────────────────
    op.create_table(
        "time_off_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id", sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("type", _enum("time_off_type", TIME_OFF_TYPES), nullable=False),
        sa.Column("status", _enum("request_status", REQUEST_STATUSES), nullable=False),
        sa.Column("reason", sa.Text),
        sa.Column("working_days", sa.Integer, nullable=False),
        *_review_columns(),
        sa.Column("review_note", sa.Text),
        *_timestamps(),
        sa.CheckConstraint("start_date <= end_date", name="ck_time_off_date_order"),
    )
    op.create_index("ix_time_off_requests_user_status", "time_off_requests", ["user_id", "status"])
    op.create_index("ix_time_off_requests_dates", "time_off_requests", ["start_date", "end_date"])

    # ── 5. overtime_requests ──────────────────────────────────────────────
    op.create_table(
        "overtime_requests",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "user_id", sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("request_date", sa.Date, nullable=False),
        sa.Column("month", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("status", _enum("overtime_status", REQUEST_STATUSES), nullable=False),
        sa.Column("notes", sa.Text),
        *_review_columns(),
        *_timestamps(),
        sa.CheckConstraint("hours > 0", name="ck_overtime_hours_positive"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_overtime_month_range"),
    )
    op.create_index("ix_overtime_requests_user_year", "overtime_requests", ["user_id", "year"])
    op.create_index("ix_overtime_requests_status", "overtime_requests", ["status"])

    # ── 6. audit_logs ─────────────────────────────────────────────────────
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("actor_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid),
        sa.Column("details", sa.JSON),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_logs",
        "overtime_requests",
        "time_off_requests",
        "time_off_balances",
        "user_sessions",
        "users",
    ]
    for table in tables:
        op.drop_table(table)
