"""create allowance claim, wallet and sync lock tables

Revision ID: 3f9c2a7d51e0
Revises:
Create Date: 2026-10-17 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c2a7d51e0"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(14, 2)


def upgrade() -> None:
    op.create_table(
        "intern_profiles",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("lifecycle_status", sa.String(length=30), nullable=False, server_default="ACTIVE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("intern_id", sa.String(length=64), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("work_mode", sa.String(length=10), nullable=False, server_default="WFO"),
        sa.Column("clock_in_at", sa.DateTime(timezone=True)),
        sa.Column("clock_out_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("intern_id", "work_date", name="uq_attendance_intern_day"),
    )
    op.create_index("ix_attendance_records_intern_id", "attendance_records", ["intern_id"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("intern_id", sa.String(length=64), nullable=False),
        sa.Column("leave_type", sa.String(length=20), nullable=False, server_default="PERSONAL"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("approved_by", sa.String(length=64)),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_leave_requests_intern_id", "leave_requests", ["intern_id"])

    op.create_table(
        "allowance_settings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("payout_frequency", sa.String(length=20), nullable=False, server_default="MONTHLY"),
        sa.Column("wfo_rate", MONEY, nullable=False, server_default="100"),
        sa.Column("wfh_rate", MONEY, nullable=False, server_default="50"),
        sa.Column("apply_tax", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tax_percent", sa.Numeric(5, 2), nullable=False, server_default="3"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "allowance_claims",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("intern_id", sa.String(length=64), nullable=False),
        sa.Column("period_key", sa.String(length=20), nullable=False),
        sa.Column("wfo_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wfh_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("leave_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("computed_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("resolved_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("supervisor_adjusted_amount", MONEY),
        sa.Column("supervisor_adjustment_note", sa.Text()),
        sa.Column("supervisor_adjusted_by", sa.String(length=64)),
        sa.Column("supervisor_adjusted_at_ms", sa.BigInteger()),
        sa.Column("admin_adjusted_amount", MONEY),
        sa.Column("admin_adjustment_note", sa.Text()),
        sa.Column("admin_adjusted_by", sa.String(length=64)),
        sa.Column("admin_adjusted_at_ms", sa.BigInteger()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("payment_date", sa.Date()),
        sa.Column("approved_at_ms", sa.BigInteger()),
        sa.Column("paid_at_ms", sa.BigInteger()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at_ms", sa.BigInteger()),
    )
    op.create_index("ix_allowance_claims_intern_id", "allowance_claims", ["intern_id"])
    op.create_index("ix_allowance_claims_period_intern", "allowance_claims", ["period_key", "intern_id"])

    op.create_table(
        "allowance_wallets",
        sa.Column("intern_id", sa.String(length=64), primary_key=True),
        sa.Column("total_computed_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_resolved_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_paid_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_pending_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_wfo_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_wfh_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_leave_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("claim_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("synced_at_ms", sa.BigInteger()),
    )

    op.create_table(
        "wallet_sync_locks",
        sa.Column("intern_id", sa.String(length=64), primary_key=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="RUNNING"),
        sa.Column("started_at_ms", sa.BigInteger(), nullable=False),
        sa.Column("finished_at_ms", sa.BigInteger()),
        sa.Column("error_message", sa.Text()),
    )


def downgrade() -> None:
    op.drop_table("wallet_sync_locks")
    op.drop_table("allowance_wallets")
    op.drop_index("ix_allowance_claims_period_intern", table_name="allowance_claims")
    op.drop_index("ix_allowance_claims_intern_id", table_name="allowance_claims")
    op.drop_table("allowance_claims")
    op.drop_table("allowance_settings")
    op.drop_index("ix_leave_requests_intern_id", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_index("ix_attendance_records_intern_id", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_table("intern_profiles")
