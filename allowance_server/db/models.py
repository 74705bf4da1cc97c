"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import BigInteger, Boolean, Column, Date, DateTime, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from allowance_server.infrastructure.database.base import Base

MONEY = Numeric(14, 2)


def generate_uuid() -> str:
    return str(uuid.uuid4())


class InternProfile(Base):
    """Lifecycle view of an intern, owned by the user-management collaborator."""

    __tablename__ = "intern_profiles"

    id = Column(String(64), primary_key=True)
    start_date = Column(Date)
    end_date = Column(Date)
    lifecycle_status = Column(String(30), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (UniqueConstraint("intern_id", "work_date", name="uq_attendance_intern_day"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    intern_id = Column(String(64), nullable=False, index=True)
    work_date = Column(Date, nullable=False)
    work_mode = Column(String(10), nullable=False, default="WFO")
    clock_in_at = Column(DateTime(timezone=True))
    clock_out_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    intern_id = Column(String(64), nullable=False, index=True)
    leave_type = Column(String(20), nullable=False, default="PERSONAL")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(Text)
    status = Column(String(20), nullable=False, default="PENDING")
    approved_by = Column(String(64))
    approved_at = Column(DateTime(timezone=True))
    requested_at = Column(DateTime(timezone=True), server_default=func.now())


class TimeCorrectionRequest(Base):
    """Clock time amendment requested by an intern, reviewed by a supervisor."""

    __tablename__ = "time_corrections"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    intern_id = Column(String(64), nullable=False, index=True)
    work_date = Column(Date, nullable=False)
    requested_clock_in_at = Column(DateTime(timezone=True))
    requested_clock_out_at = Column(DateTime(timezone=True))
    reason = Column(Text)
    status = Column(String(20), nullable=False, default="PENDING")
    reviewed_by = Column(String(64))
    requested_at = Column(DateTime(timezone=True), server_default=func.now())


class AllowanceSettingsRecord(Base):
    """Allowance rules record maintained by the admin settings collaborator."""

    __tablename__ = "allowance_settings"

    id = Column(String(36), primary_key=True, default="allowance")
    payout_frequency = Column(String(20), nullable=False, default="MONTHLY")
    wfo_rate = Column(MONEY, nullable=False, default=100)
    wfh_rate = Column(MONEY, nullable=False, default=50)
    apply_tax = Column(Boolean, nullable=False, default=True)
    tax_percent = Column(Numeric(5, 2), nullable=False, default=3)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AllowanceClaim(Base):
    __tablename__ = "allowance_claims"
    __table_args__ = (Index("ix_allowance_claims_period_intern", "period_key", "intern_id"),)

    # "{intern_id}_{period_key}"
    id = Column(String(100), primary_key=True)
    intern_id = Column(String(64), nullable=False, index=True)
    period_key = Column(String(20), nullable=False)
    wfo_days = Column(Integer, nullable=False, default=0)
    wfh_days = Column(Integer, nullable=False, default=0)
    leave_days = Column(Integer, nullable=False, default=0)
    computed_amount = Column(MONEY, nullable=False, default=0)
    resolved_amount = Column(MONEY, nullable=False, default=0)
    supervisor_adjusted_amount = Column(MONEY)
    supervisor_adjustment_note = Column(Text)
    supervisor_adjusted_by = Column(String(64))
    supervisor_adjusted_at_ms = Column(BigInteger)
    admin_adjusted_amount = Column(MONEY)
    admin_adjustment_note = Column(Text)
    admin_adjusted_by = Column(String(64))
    admin_adjusted_at_ms = Column(BigInteger)
    status = Column(String(20), nullable=False, default="PENDING")
    payment_date = Column(Date)
    approved_at_ms = Column(BigInteger)
    paid_at_ms = Column(BigInteger)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at_ms = Column(BigInteger)


class AllowanceWallet(Base):
    __tablename__ = "allowance_wallets"

    intern_id = Column(String(64), primary_key=True)
    total_computed_amount = Column(MONEY, nullable=False, default=0)
    total_resolved_amount = Column(MONEY, nullable=False, default=0)
    total_paid_amount = Column(MONEY, nullable=False, default=0)
    total_pending_amount = Column(MONEY, nullable=False, default=0)
    total_wfo_days = Column(Integer, nullable=False, default=0)
    total_wfh_days = Column(Integer, nullable=False, default=0)
    total_leave_days = Column(Integer, nullable=False, default=0)
    claim_count = Column(Integer, nullable=False, default=0)
    status_summary = Column(String(20), nullable=False, default="EMPTY")
    synced_at_ms = Column(BigInteger)


class WalletSyncLock(Base):
    __tablename__ = "wallet_sync_locks"

    intern_id = Column(String(64), primary_key=True)
    status = Column(String(20), nullable=False, default="RUNNING")
    started_at_ms = Column(BigInteger, nullable=False)
    finished_at_ms = Column(BigInteger)
    error_message = Column(Text)
