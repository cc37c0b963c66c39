"""Initial schema: users, sessions, participants, payments, proof requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users: ids are assigned by the chat platform
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("payment_qr_file_id", sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("group_id", sa.BigInteger(), nullable=False),
        sa.Column("host_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False, server_default="Badminton Session"),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("scheduled_for", sa.String(255), nullable=True),
        sa.Column("court_fee", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("tube_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("95")),
        sa.Column("shuttles_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'open'")),
        sa.Column("settled_at", sa.DateTime(), nullable=True),
        sa.Column("payment_deadline", sa.DateTime(), nullable=True),
        sa.Column("message_id", sa.BigInteger(), nullable=True),
        sa.Column("bill_message_id", sa.BigInteger(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('open', 'settled')", name="check_session_status"),
        sa.CheckConstraint("court_fee >= 0", name="check_court_fee_non_negative"),
        sa.CheckConstraint("tube_price >= 0", name="check_tube_price_non_negative"),
        sa.CheckConstraint("shuttles_used >= 0", name="check_shuttles_used_non_negative"),
    )
    op.create_index("ix_sessions_id", "sessions", ["id"])
    op.create_index("ix_sessions_group_id", "sessions", ["group_id"])
    op.create_index("ix_sessions_host_id", "sessions", ["host_id"])
    # Overdue sweep: WHERE status = 'settled' AND payment_deadline < now()
    op.create_index("ix_sessions_status_deadline", "sessions", ["status", "payment_deadline"])

    op.create_table(
        "session_participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default=sa.text("'in'")),
        sa.Column("joined_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        # One membership row per player per session; re-joining reuses it
        sa.UniqueConstraint("session_id", "user_id", name="uq_session_participant"),
        sa.CheckConstraint("status IN ('in', 'out')", name="check_participant_status"),
    )
    op.create_index("ix_session_participants_id", "session_participants", ["id"])
    op.create_index("ix_session_participants_user_id", "session_participants", ["user_id"])
    op.create_index(
        "ix_participants_session_status_joined",
        "session_participants",
        ["session_id", "status", "joined_at"],
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("proof_file_id", sa.String(255), nullable=True),
        sa.Column("reminder_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_sent_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        *_timestamps(),
        # Settlement inserts are insert-if-absent against this constraint
        sa.UniqueConstraint("session_id", "user_id", name="uq_session_payment"),
        sa.CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
        sa.CheckConstraint("status IN ('pending', 'paid')", name="check_payment_status"),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_session_id", "payments", ["session_id"])
    op.create_index("ix_payments_user_id", "payments", ["user_id"])

    op.create_table(
        "proof_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("requested_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_proof_request_user"),
    )
    op.create_index("ix_proof_requests_id", "proof_requests", ["id"])
    op.create_index("ix_proof_requests_expires_at", "proof_requests", ["expires_at"])


def downgrade() -> None:
    op.drop_table("proof_requests")
    op.drop_table("payments")
    op.drop_table("session_participants")
    op.drop_table("sessions")
    op.drop_table("users")
