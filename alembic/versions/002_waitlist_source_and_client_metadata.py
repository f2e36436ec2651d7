"""Waitlist source, referral code and client metadata columns.

Revision ID: 002
Revises: 001
Create Date: 2026-10-20
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("waitlist_entries") as batch:
        batch.add_column(sa.Column("source", sa.String(20), nullable=False, server_default=sa.text("'website'")))
        batch.add_column(sa.Column("referral_code", sa.String(20), nullable=True))
        batch.add_column(sa.Column("browser", sa.String(30), nullable=False, server_default=sa.text("'unknown'")))
        batch.add_column(sa.Column("os", sa.String(30), nullable=False, server_default=sa.text("'unknown'")))
        batch.add_column(sa.Column("device", sa.String(20), nullable=False, server_default=sa.text("'desktop'")))
        batch.create_check_constraint(
            "check_waitlist_source",
            "source IN ('website', 'referral', 'social', 'direct')",
        )
        batch.create_check_constraint(
            "check_waitlist_device",
            "device IN ('desktop', 'mobile', 'tablet')",
        )
        batch.create_index("ix_waitlist_entries_referral_code", ["referral_code"])


def downgrade() -> None:
    with op.batch_alter_table("waitlist_entries") as batch:
        batch.drop_index("ix_waitlist_entries_referral_code")
        batch.drop_constraint("check_waitlist_device", type_="check")
        batch.drop_constraint("check_waitlist_source", type_="check")
        batch.drop_column("device")
        batch.drop_column("os")
        batch.drop_column("browser")
        batch.drop_column("referral_code")
        batch.drop_column("source")
