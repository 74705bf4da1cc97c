"""Pydantic schemas used across the project."""
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from allowance_server.modules.allowances.models import ClaimStatus, PayoutFrequency, SyncStatus, WalletStatusSummary


class TokenData(BaseModel):
    subject: str
    role: str


class BreakdownResponse(BaseModel):
    wfo: int = 0
    wfh: int = 0
    leaves: int = 0

    model_config = ConfigDict(from_attributes=True)


class AdjustmentRequest(BaseModel):
    amount: Decimal
    note: str


class AdjustmentResponse(BaseModel):
    amount: Decimal
    note: str
    actor_id: str
    timestamp_ms: int

    model_config = ConfigDict(from_attributes=True)


class ClaimResponse(BaseModel):
    id: str
    intern_id: str
    period_key: str
    breakdown: BreakdownResponse
    computed_amount: Decimal
    resolved_amount: Decimal
    supervisor_adjustment: Optional[AdjustmentResponse] = None
    admin_adjustment: Optional[AdjustmentResponse] = None
    status: ClaimStatus
    payment_date: Optional[date] = None
    approved_at_ms: Optional[int] = None
    paid_at_ms: Optional[int] = None
    updated_at_ms: Optional[int] = None
    is_payout_locked: bool = False
    lock_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClaimListResponse(BaseModel):
    intern_id: str
    claims: list[ClaimResponse]


class PaymentRequest(BaseModel):
    payment_date: Optional[date] = None


class BulkPaymentRequest(BaseModel):
    period_key: str
    payment_date: Optional[date] = None
    intern_ids: Optional[list[str]] = None


class BulkPaymentResponse(BaseModel):
    period_key: str
    paid_claim_ids: list[str] = Field(default_factory=list)


class WalletResponse(BaseModel):
    intern_id: str
    total_computed_amount: Decimal
    total_resolved_amount: Decimal
    total_paid_amount: Decimal
    total_pending_amount: Decimal
    total_breakdown: BreakdownResponse
    claim_count: int
    status_summary: WalletStatusSummary = WalletStatusSummary.EMPTY
    synced_at_ms: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class SyncLockResponse(BaseModel):
    intern_id: str
    status: SyncStatus
    started_at_ms: int
    finished_at_ms: Optional[int] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SyncResponse(BaseModel):
    intern_id: str
    already_running: bool
    status: Optional[SyncStatus] = None
    error_message: Optional[str] = None
    wallet: Optional[WalletResponse] = None


class AllowanceRulesResponse(BaseModel):
    payout_frequency: PayoutFrequency
    wfo_rate: Decimal
    wfh_rate: Decimal
    apply_tax: bool
    tax_percent: Decimal

    model_config = ConfigDict(from_attributes=True)
