"""Domain models for allowance claims, wallets and sync locks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0")

# Period key used for claims when allowances are paid once at programme end.
END_OF_PROGRAM_PERIOD = "END_OF_PROGRAM"


class PayoutFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    END_OF_PROGRAM = "END_OF_PROGRAM"


class ClaimStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"


class AdjustmentActor(str, Enum):
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class SyncStatus(str, Enum):
    RUNNING = "RUNNING"
    DONE = "DONE"
    ERROR = "ERROR"


class WalletStatusSummary(str, Enum):
    EMPTY = "EMPTY"
    HAS_PENDING = "HAS_PENDING"
    ALL_PAID = "ALL_PAID"


@dataclass(frozen=True, slots=True)
class AllowanceRules:
    payout_frequency: PayoutFrequency = PayoutFrequency.MONTHLY
    wfo_rate: Decimal = Decimal("100")
    wfh_rate: Decimal = Decimal("50")
    apply_tax: bool = True
    tax_percent: Decimal = Decimal("3")


@dataclass(frozen=True, slots=True)
class Breakdown:
    wfo: int = 0
    wfh: int = 0
    leaves: int = 0

    def __add__(self, other: "Breakdown") -> "Breakdown":
        return Breakdown(
            wfo=self.wfo + other.wfo,
            wfh=self.wfh + other.wfh,
            leaves=self.leaves + other.leaves,
        )

    @property
    def has_work_days(self) -> bool:
        return self.wfo > 0 or self.wfh > 0


@dataclass(frozen=True, slots=True)
class Adjustment:
    amount: Decimal
    note: str
    actor_id: str
    timestamp_ms: int


def claim_key(intern_id: str, period_key: str) -> str:
    return f"{intern_id}_{period_key}"


@dataclass(slots=True)
class AllowanceClaim:
    intern_id: str
    period_key: str
    breakdown: Breakdown = field(default_factory=Breakdown)
    computed_amount: Decimal = ZERO
    resolved_amount: Decimal = ZERO
    supervisor_adjustment: Optional[Adjustment] = None
    admin_adjustment: Optional[Adjustment] = None
    status: ClaimStatus = ClaimStatus.PENDING
    payment_date: Optional[date] = None
    approved_at_ms: Optional[int] = None
    paid_at_ms: Optional[int] = None
    updated_at_ms: Optional[int] = None
    # Derived on read, never stored.
    is_payout_locked: bool = False
    lock_reason: Optional[str] = None

    @property
    def id(self) -> str:
        return claim_key(self.intern_id, self.period_key)

    @property
    def is_paid(self) -> bool:
        return self.status is ClaimStatus.PAID

    def adjustment_for(self, actor: AdjustmentActor) -> Optional[Adjustment]:
        if actor is AdjustmentActor.SUPERVISOR:
            return self.supervisor_adjustment
        return self.admin_adjustment


@dataclass(slots=True)
class WalletAggregate:
    """Lifetime allowance totals for one intern, rebuilt by a wallet sync."""

    intern_id: str
    total_computed_amount: Decimal = ZERO
    total_resolved_amount: Decimal = ZERO
    total_paid_amount: Decimal = ZERO
    total_pending_amount: Decimal = ZERO
    total_breakdown: Breakdown = field(default_factory=Breakdown)
    claim_count: int = 0
    status_summary: WalletStatusSummary = WalletStatusSummary.EMPTY
    synced_at_ms: Optional[int] = None


@dataclass(slots=True)
class SyncLock:
    intern_id: str
    status: SyncStatus
    started_at_ms: int
    error_message: Optional[str] = None
    finished_at_ms: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.status is SyncStatus.RUNNING
