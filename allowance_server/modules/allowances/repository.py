"""Repository protocols for allowance claims, wallets and sync locks."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncContextManager, Callable, Iterable, Optional, Protocol, Sequence

from .models import (
    AdjustmentActor,
    AllowanceClaim,
    AllowanceRules,
    Breakdown,
    SyncLock,
    SyncStatus,
    WalletAggregate,
)
from .validators import Number


class ClaimStore(Protocol):
    """Persistence boundary for claims, wallet aggregates and sync locks.

    Write operations on a claim refuse to touch it once it is paid. Lock
    acquisition must be a single conditional write in the backing store.
    """

    async def get_claim(self, intern_id: str, period_key: str) -> AllowanceClaim | None:
        ...

    async def list_claims(self, intern_id: str) -> Sequence[AllowanceClaim]:
        ...

    async def list_period_claims(
        self,
        period_key: str,
        intern_ids: Iterable[str] | None = None,
    ) -> Sequence[AllowanceClaim]:
        ...

    async def create_claim(self, intern_id: str, period_key: str, breakdown: Breakdown) -> AllowanceClaim:
        ...

    async def upsert_adjustment(
        self,
        claim_id: str,
        *,
        actor: AdjustmentActor,
        amount: Number,
        note: str,
        actor_id: str,
        timestamp_ms: int,
    ) -> AllowanceClaim:
        ...

    async def save_resolution(
        self,
        claim_id: str,
        *,
        computed_amount: Decimal,
        resolved_amount: Decimal,
        updated_at_ms: int,
        breakdown: Breakdown | None = None,
    ) -> AllowanceClaim:
        ...

    async def mark_approved(self, claim_id: str, approved_at_ms: int) -> AllowanceClaim:
        ...

    async def mark_paid(self, claim_id: str, *, payment_date: date, paid_at_ms: int) -> AllowanceClaim:
        ...

    async def get_wallet(self, intern_id: str) -> WalletAggregate | None:
        ...

    async def put_wallet(self, intern_id: str, aggregate: WalletAggregate) -> None:
        ...

    async def get_lock(self, intern_id: str) -> SyncLock | None:
        ...

    async def try_acquire_lock(
        self,
        intern_id: str,
        *,
        started_at_ms: int,
        stale_before_ms: Optional[int] = None,
    ) -> bool:
        ...

    async def release_lock(
        self,
        intern_id: str,
        status: SyncStatus,
        *,
        finished_at_ms: int,
        error_message: str | None = None,
    ) -> None:
        ...


# Opens one unit of work; writes are committed on clean exit and discarded
# when the block raises.
StoreScope = Callable[[], AsyncContextManager[ClaimStore]]


class AllowanceRulesSource(Protocol):
    async def get_rules(self) -> AllowanceRules:
        ...
