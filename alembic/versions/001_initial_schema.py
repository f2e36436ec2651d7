"""Initial schema: waitlist_entries and contact_entries with indexes and constraints.

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


def upgrade() -> None:
    op.create_table(
        "waitlist_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=False),
        sa.Column("user_agent", sa.String(500), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("position >= 1", name="check_waitlist_position_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'notified', 'converted')",
            name="check_waitlist_status",
        ),
    )
    op.create_index("ix_waitlist_entries_id", "waitlist_entries", ["id"])
    # UNIQUE EMAIL: the real de-duplication guard. Two concurrent signups for
    # the same address can both pass the pre-insert lookup; this index makes
    # the second INSERT fail so it can be reported as a duplicate.
    op.create_index("ix_waitlist_entries_email", "waitlist_entries", ["email"], unique=True)
    # Per-IP rolling window: WHERE ip_address = ? AND joined_at >= ?
    op.create_index("ix_waitlist_entries_ip_joined", "waitlist_entries", ["ip_address", "joined_at"])
    # Stats: WHERE joined_at >= now() - interval '24 hours'
    op.create_index("ix_waitlist_entries_joined_at", "waitlist_entries", ["joined_at"])
    op.create_index("ix_waitlist_entries_position", "waitlist_entries", ["position"])

    op.create_table(
        "contact_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=False),
        sa.Column("user_agent", sa.String(500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_contact_entries_id", "contact_entries", ["id"])
    op.create_index("ix_contact_entries_email", "contact_entries", ["email"])
    op.create_index("ix_contact_entries_ip_created", "contact_entries", ["ip_address", "created_at"])


def downgrade() -> None:
    op.drop_table("contact_entries")
    op.drop_table("waitlist_entries")
