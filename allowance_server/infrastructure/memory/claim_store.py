"""In-process claim store used by tests and single-process deployments."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from allowance_server.modules.allowances.exceptions import ClaimNotFoundError, ImmutableClaimError
from allowance_server.modules.allowances.models import (
    Adjustment,
    AdjustmentActor,
    AllowanceClaim,
    Breakdown,
    ClaimStatus,
    SyncLock,
    SyncStatus,
    WalletAggregate,
    claim_key,
)
from allowance_server.modules.allowances.validators import Number, validate_adjustment_input

_MISSING = object()


@dataclass(slots=True)
class MemoryState:
    claims: dict[str, AllowanceClaim] = field(default_factory=dict)
    wallets: dict[str, WalletAggregate] = field(default_factory=dict)
    locks: dict[str, SyncLock] = field(default_factory=dict)


class InMemoryClaimStore:
    """Claim store over plain dicts.

    Every write is journaled so :meth:`scope` can undo a unit of work that
    raises. Methods never await between a check and the write it guards, which
    keeps the lock check-and-set atomic on a single event loop.
    """

    def __init__(self, state: MemoryState | None = None) -> None:
        self.state = state if state is not None else MemoryState()
        self._journal: list[tuple[dict[str, Any], str, Any]] | None = None

    @asynccontextmanager
    async def scope(self) -> AsyncIterator["InMemoryClaimStore"]:
        unit = type(self)(self.state)
        unit._journal = []
        try:
            yield unit
        except BaseException:
            unit._rollback()
            raise
        finally:
            unit._journal = None

    def _write(self, table: dict[str, Any], key: str, value: Any) -> None:
        if self._journal is not None:
            self._journal.append((table, key, table.get(key, _MISSING)))
        table[key] = value

    def _rollback(self) -> None:
        for table, key, previous in reversed(self._journal or []):
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        self._journal = []

    async def get_claim(self, intern_id: str, period_key: str) -> AllowanceClaim | None:
        claim = self.state.claims.get(claim_key(intern_id, period_key))
        return replace(claim) if claim is not None else None

    async def list_claims(self, intern_id: str) -> list[AllowanceClaim]:
        claims = [claim for claim in self.state.claims.values() if claim.intern_id == intern_id]
        return [replace(claim) for claim in sorted(claims, key=lambda claim: claim.period_key)]

    async def list_period_claims(
        self,
        period_key: str,
        intern_ids: Iterable[str] | None = None,
    ) -> list[AllowanceClaim]:
        wanted = set(intern_ids) if intern_ids is not None else None
        claims = [
            claim
            for claim in self.state.claims.values()
            if claim.period_key == period_key and (wanted is None or claim.intern_id in wanted)
        ]
        return [replace(claim) for claim in sorted(claims, key=lambda claim: claim.intern_id)]

    async def create_claim(self, intern_id: str, period_key: str, breakdown: Breakdown) -> AllowanceClaim:
        claim = AllowanceClaim(intern_id=intern_id, period_key=period_key, breakdown=breakdown)
        existing = self.state.claims.get(claim.id)
        if existing is not None:
            return replace(existing)
        self._write(self.state.claims, claim.id, claim)
        return replace(claim)

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
        clean_amount, clean_note = validate_adjustment_input(amount, note)
        adjustment = Adjustment(amount=clean_amount, note=clean_note, actor_id=actor_id, timestamp_ms=timestamp_ms)
        if actor is AdjustmentActor.SUPERVISOR:
            return self._update_unpaid(claim_id, supervisor_adjustment=adjustment, updated_at_ms=timestamp_ms)
        return self._update_unpaid(claim_id, admin_adjustment=adjustment, updated_at_ms=timestamp_ms)

    async def save_resolution(
        self,
        claim_id: str,
        *,
        computed_amount: Decimal,
        resolved_amount: Decimal,
        updated_at_ms: int,
        breakdown: Breakdown | None = None,
    ) -> AllowanceClaim:
        changes: dict[str, Any] = {
            "computed_amount": computed_amount,
            "resolved_amount": resolved_amount,
            "updated_at_ms": updated_at_ms,
        }
        if breakdown is not None:
            changes["breakdown"] = breakdown
        return self._update_unpaid(claim_id, **changes)

    async def mark_approved(self, claim_id: str, approved_at_ms: int) -> AllowanceClaim:
        claim = self._require_unpaid(claim_id)
        if claim.status is not ClaimStatus.PENDING:
            return replace(claim)
        return self._update_unpaid(
            claim_id,
            status=ClaimStatus.APPROVED,
            approved_at_ms=approved_at_ms,
            updated_at_ms=approved_at_ms,
        )

    async def mark_paid(self, claim_id: str, *, payment_date: date, paid_at_ms: int) -> AllowanceClaim:
        claim = self._require_unpaid(claim_id)
        return self._update_unpaid(
            claim_id,
            status=ClaimStatus.PAID,
            payment_date=payment_date,
            paid_at_ms=paid_at_ms,
            approved_at_ms=claim.approved_at_ms if claim.approved_at_ms is not None else paid_at_ms,
            updated_at_ms=paid_at_ms,
        )

    def _require_unpaid(self, claim_id: str) -> AllowanceClaim:
        claim = self.state.claims.get(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        if claim.is_paid:
            raise ImmutableClaimError(f"Claim {claim_id} is already paid")
        return claim

    def _update_unpaid(self, claim_id: str, **changes: Any) -> AllowanceClaim:
        updated = replace(self._require_unpaid(claim_id), **changes)
        self._write(self.state.claims, claim_id, updated)
        return replace(updated)

    async def get_wallet(self, intern_id: str) -> WalletAggregate | None:
        wallet = self.state.wallets.get(intern_id)
        return replace(wallet) if wallet is not None else None

    async def put_wallet(self, intern_id: str, aggregate: WalletAggregate) -> None:
        self._write(self.state.wallets, intern_id, replace(aggregate, intern_id=intern_id))

    async def get_lock(self, intern_id: str) -> SyncLock | None:
        lock = self.state.locks.get(intern_id)
        return replace(lock) if lock is not None else None

    async def try_acquire_lock(
        self,
        intern_id: str,
        *,
        started_at_ms: int,
        stale_before_ms: Optional[int] = None,
    ) -> bool:
        current = self.state.locks.get(intern_id)
        if current is not None and current.is_running:
            if stale_before_ms is None or current.started_at_ms >= stale_before_ms:
                return False
        self._write(
            self.state.locks,
            intern_id,
            SyncLock(intern_id=intern_id, status=SyncStatus.RUNNING, started_at_ms=started_at_ms),
        )
        return True

    async def release_lock(
        self,
        intern_id: str,
        status: SyncStatus,
        *,
        finished_at_ms: int,
        error_message: str | None = None,
    ) -> None:
        current = self.state.locks.get(intern_id)
        if current is None:
            return
        self._write(
            self.state.locks,
            intern_id,
            replace(current, status=status, finished_at_ms=finished_at_ms, error_message=error_message),
        )
