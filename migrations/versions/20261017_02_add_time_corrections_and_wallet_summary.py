"""add time_corrections and allowance_wallets.status_summary

Revision ID: 20261017_02
Revises: 3f9c2a7d51e0
Create Date: 2026-10-17 15:10:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_02"
down_revision = "3f9c2a7d51e0"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "time_corrections",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("intern_id", sa.String(length=64), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("requested_clock_in_at", sa.DateTime(timezone=True)),
        sa.Column("requested_clock_out_at", sa.DateTime(timezone=True)),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("reviewed_by", sa.String(length=64)),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_time_corrections_intern_id", "time_corrections", ["intern_id"])

    op.add_column(
        "allowance_wallets",
        sa.Column("status_summary", sa.String(length=20), nullable=False, server_default="EMPTY"),
    )


def downgrade() -> None:
    op.drop_column("allowance_wallets", "status_summary")
    op.drop_index("ix_time_corrections_intern_id", table_name="time_corrections")
    op.drop_table("time_corrections")
