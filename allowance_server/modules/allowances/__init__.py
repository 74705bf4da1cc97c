"""Allowance claim domain exports."""

from .models import (
    END_OF_PROGRAM_PERIOD,
    Adjustment,
    AdjustmentActor,
    AllowanceClaim,
    AllowanceRules,
    Breakdown,
    ClaimStatus,
    PayoutFrequency,
    SyncLock,
    SyncStatus,
    WalletAggregate,
    WalletStatusSummary,
    claim_key,
)
from .exceptions import (
    AllowanceError,
    ClaimNotFoundError,
    ImmutableClaimError,
    PayoutLockedError,
    StoreUnavailableError,
    SyncFailure,
    ValidationError,
)
from .calculator import compute_allowance
from .resolver import pick_adjustment, resolve_amount
from .periods import month_key, period_bounds, period_key_for, validate_period_key
from .repository import AllowanceRulesSource, ClaimStore, StoreScope
from .service import ClaimService, reconcile_claim

__all__ = [
    "END_OF_PROGRAM_PERIOD",
    "Adjustment",
    "AdjustmentActor",
    "AllowanceClaim",
    "AllowanceError",
    "AllowanceRules",
    "AllowanceRulesSource",
    "Breakdown",
    "ClaimNotFoundError",
    "ClaimService",
    "ClaimStatus",
    "ClaimStore",
    "ImmutableClaimError",
    "PayoutFrequency",
    "PayoutLockedError",
    "StoreScope",
    "StoreUnavailableError",
    "SyncFailure",
    "SyncLock",
    "SyncStatus",
    "ValidationError",
    "WalletAggregate",
    "WalletStatusSummary",
    "claim_key",
    "compute_allowance",
    "month_key",
    "period_bounds",
    "period_key_for",
    "pick_adjustment",
    "reconcile_claim",
    "resolve_amount",
    "validate_period_key",
]
