"""Initial schema: profiles, events, enrollments, tickets, votes.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('superadmin', 'admin', 'user')", name="check_profile_role"),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'defined'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("poster_url", sa.String(1024), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("reserved_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("event_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ticket_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("voting_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voting_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voting_status", sa.String(10), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("capacity >= 0", name="check_event_capacity_non_negative"),
        sa.CheckConstraint("reserved_count >= 0", name="check_event_reserved_non_negative"),
        # Last line of defence against overselling
        sa.CheckConstraint("reserved_count <= capacity", name="check_event_reserved_lte_capacity"),
        sa.CheckConstraint("ticket_price IS NULL OR ticket_price >= 0", name="check_event_price_non_negative"),
        sa.CheckConstraint("type IN ('defined', 'undefined')", name="check_event_type"),
        sa.CheckConstraint("status IN ('draft', 'published', 'closed')", name="check_event_status"),
        sa.CheckConstraint(
            "voting_status IS NULL OR voting_status IN ('open', 'closed')",
            name="check_event_voting_status",
        ),
    )
    # Published listing: WHERE status = 'published' ORDER BY event_datetime
    op.create_index("ix_events_status_datetime", "events", ["status", "event_datetime"])

    op.create_table(
        "event_enrollments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'unpaid'")),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("idempotency_key", sa.String(128), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "idempotency_key", name="uq_enrollment_user_idempotency_key"),
        sa.CheckConstraint("quantity >= 1", name="check_enrollment_quantity_positive"),
        sa.CheckConstraint("amount_paid >= 0", name="check_enrollment_amount_paid_non_negative"),
        sa.CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'refunded')",
            name="check_enrollment_payment_status",
        ),
    )
    op.create_index("ix_event_enrollments_event_id", "event_enrollments", ["event_id"])
    op.create_index("ix_event_enrollments_user_id", "event_enrollments", ["user_id"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("enrollment_id", sa.Integer(), sa.ForeignKey("event_enrollments.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("tier_name", sa.String(50), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("enrollment_id", "position", name="uq_ticket_enrollment_position"),
    )
    op.create_index("ix_tickets_enrollment_id", "tickets", ["enrollment_id"])

    op.create_table(
        "event_votes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_vote_user"),
    )
    op.create_index("ix_event_votes_event_id", "event_votes", ["event_id"])
    op.create_index("ix_event_votes_user_id", "event_votes", ["user_id"])


def downgrade() -> None:
    op.drop_table("event_votes")
    op.drop_table("tickets")
    op.drop_table("event_enrollments")
    op.drop_table("events")
    op.drop_table("profiles")
