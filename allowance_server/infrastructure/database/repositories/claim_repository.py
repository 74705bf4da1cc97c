"""SQLAlchemy implementation of the claim store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from allowance_server.db.models import (
    AllowanceClaim as ClaimModel,
    AllowanceWallet as WalletModel,
    WalletSyncLock as LockModel,
)
from allowance_server.infrastructure.database.errors import STORE_ERRORS, execute, unavailable
from allowance_server.modules.allowances.exceptions import (
    ClaimNotFoundError,
    ImmutableClaimError,
    StoreUnavailableError,
)
from allowance_server.modules.allowances.models import (
    Adjustment,
    AdjustmentActor,
    AllowanceClaim,
    Breakdown,
    ClaimStatus,
    SyncLock,
    SyncStatus,
    WalletAggregate,
    WalletStatusSummary,
    claim_key,
)
from allowance_server.modules.allowances.repository import StoreScope
from allowance_server.modules.allowances.validators import Number, validate_adjustment_input


class SqlClaimStore:
    """Claim store backed by SQLAlchemy models.

    Lock acquisition and wallet writes use ``INSERT ... ON CONFLICT`` so the
    backend must be PostgreSQL or SQLite.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, stmt: Any):
        return await execute(self._session, stmt)

    def _insert(self, table: Any):
        dialect = self._session.bind.dialect.name
        if dialect == "postgresql":
            return pg_insert(table)
        if dialect == "sqlite":
            return sqlite_insert(table)
        raise StoreUnavailableError(f"Unsupported database dialect for conditional writes: {dialect}")

    async def get_claim(self, intern_id: str, period_key: str) -> AllowanceClaim | None:
        return await self._get_by_id(claim_key(intern_id, period_key))

    async def _get_by_id(self, claim_id: str) -> AllowanceClaim | None:
        claims = await self._select_claims(select(ClaimModel).where(ClaimModel.id == claim_id))
        return claims[0] if claims else None

    async def _select_claims(self, stmt: Any) -> list[AllowanceClaim]:
        # Rows changed by bulk UPDATE statements must not be served stale from the identity map.
        result = await self._execute(stmt.execution_options(populate_existing=True))
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_claims(self, intern_id: str) -> list[AllowanceClaim]:
        stmt = select(ClaimModel).where(ClaimModel.intern_id == intern_id).order_by(ClaimModel.period_key)
        return await self._select_claims(stmt)

    async def list_period_claims(
        self,
        period_key: str,
        intern_ids: Iterable[str] | None = None,
    ) -> list[AllowanceClaim]:
        stmt = select(ClaimModel).where(ClaimModel.period_key == period_key)
        if intern_ids is not None:
            stmt = stmt.where(ClaimModel.intern_id.in_(list(intern_ids)))
        return await self._select_claims(stmt.order_by(ClaimModel.intern_id))

    async def create_claim(self, intern_id: str, period_key: str, breakdown: Breakdown) -> AllowanceClaim:
        stmt = (
            self._insert(ClaimModel)
            .values(
                id=claim_key(intern_id, period_key),
                intern_id=intern_id,
                period_key=period_key,
                wfo_days=breakdown.wfo,
                wfh_days=breakdown.wfh,
                leave_days=breakdown.leaves,
                computed_amount=0,
                resolved_amount=0,
                status=ClaimStatus.PENDING.value,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        await self._execute(stmt)
        claim = await self.get_claim(intern_id, period_key)
        if claim is None:
            raise ClaimNotFoundError(claim_key(intern_id, period_key))
        return claim

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
        prefix = "supervisor" if actor is AdjustmentActor.SUPERVISOR else "admin"
        return await self._update_unpaid(
            claim_id,
            {
                f"{prefix}_adjusted_amount": clean_amount,
                f"{prefix}_adjustment_note": clean_note,
                f"{prefix}_adjusted_by": actor_id,
                f"{prefix}_adjusted_at_ms": timestamp_ms,
                "updated_at_ms": timestamp_ms,
            },
        )

    async def save_resolution(
        self,
        claim_id: str,
        *,
        computed_amount: Decimal,
        resolved_amount: Decimal,
        updated_at_ms: int,
        breakdown: Breakdown | None = None,
    ) -> AllowanceClaim:
        values: dict[str, Any] = {
            "computed_amount": computed_amount,
            "resolved_amount": resolved_amount,
            "updated_at_ms": updated_at_ms,
        }
        if breakdown is not None:
            values.update(wfo_days=breakdown.wfo, wfh_days=breakdown.wfh, leave_days=breakdown.leaves)
        return await self._update_unpaid(claim_id, values)

    async def mark_approved(self, claim_id: str, approved_at_ms: int) -> AllowanceClaim:
        stmt = (
            update(ClaimModel)
            .where(ClaimModel.id == claim_id, ClaimModel.status == ClaimStatus.PENDING.value)
            .values(
                status=ClaimStatus.APPROVED.value,
                approved_at_ms=approved_at_ms,
                updated_at_ms=approved_at_ms,
            )
            .execution_options(synchronize_session=False)
            .returning(ClaimModel.id)
        )
        result = await self._execute(stmt)
        updated = result.first() is not None
        existing = await self._get_by_id(claim_id)
        if updated and existing is not None:
            return existing
        if existing is None:
            raise ClaimNotFoundError(claim_id)
        if existing.is_paid:
            raise ImmutableClaimError(f"Claim {claim_id} is already paid")
        return existing

    async def mark_paid(self, claim_id: str, *, payment_date: date, paid_at_ms: int) -> AllowanceClaim:
        return await self._update_unpaid(
            claim_id,
            {
                "status": ClaimStatus.PAID.value,
                "payment_date": payment_date,
                "paid_at_ms": paid_at_ms,
                "approved_at_ms": func.coalesce(ClaimModel.approved_at_ms, paid_at_ms),
                "updated_at_ms": paid_at_ms,
            },
        )

    async def _update_unpaid(self, claim_id: str, values: dict[str, Any]) -> AllowanceClaim:
        # The status guard makes the paid check and the write one statement.
        stmt = (
            update(ClaimModel)
            .where(ClaimModel.id == claim_id, ClaimModel.status != ClaimStatus.PAID.value)
            .values(**values)
            .execution_options(synchronize_session=False)
            .returning(ClaimModel.id)
        )
        result = await self._execute(stmt)
        updated = result.first() is not None
        claim = await self._get_by_id(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        if not updated:
            raise ImmutableClaimError(f"Claim {claim_id} is already paid")
        return claim

    async def get_wallet(self, intern_id: str) -> WalletAggregate | None:
        stmt = select(WalletModel).where(WalletModel.intern_id == intern_id).execution_options(populate_existing=True)
        result = await self._execute(stmt)
        model = result.scalars().first()
        if model is None:
            return None
        return WalletAggregate(
            intern_id=model.intern_id,
            total_computed_amount=Decimal(model.total_computed_amount),
            total_resolved_amount=Decimal(model.total_resolved_amount),
            total_paid_amount=Decimal(model.total_paid_amount),
            total_pending_amount=Decimal(model.total_pending_amount),
            total_breakdown=Breakdown(
                wfo=model.total_wfo_days,
                wfh=model.total_wfh_days,
                leaves=model.total_leave_days,
            ),
            claim_count=model.claim_count,
            status_summary=WalletStatusSummary(model.status_summary or WalletStatusSummary.EMPTY.value),
            synced_at_ms=model.synced_at_ms,
        )

    async def put_wallet(self, intern_id: str, aggregate: WalletAggregate) -> None:
        values = {
            "intern_id": intern_id,
            "total_computed_amount": aggregate.total_computed_amount,
            "total_resolved_amount": aggregate.total_resolved_amount,
            "total_paid_amount": aggregate.total_paid_amount,
            "total_pending_amount": aggregate.total_pending_amount,
            "total_wfo_days": aggregate.total_breakdown.wfo,
            "total_wfh_days": aggregate.total_breakdown.wfh,
            "total_leave_days": aggregate.total_breakdown.leaves,
            "claim_count": aggregate.claim_count,
            "status_summary": aggregate.status_summary.value,
            "synced_at_ms": aggregate.synced_at_ms,
        }
        stmt = self._insert(WalletModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["intern_id"],
            set_={key: stmt.excluded[key] for key in values if key != "intern_id"},
        )
        await self._execute(stmt)

    async def get_lock(self, intern_id: str) -> SyncLock | None:
        stmt = select(LockModel).where(LockModel.intern_id == intern_id).execution_options(populate_existing=True)
        result = await self._execute(stmt)
        model = result.scalars().first()
        if model is None:
            return None
        return SyncLock(
            intern_id=model.intern_id,
            status=SyncStatus(model.status),
            started_at_ms=model.started_at_ms,
            error_message=model.error_message,
            finished_at_ms=model.finished_at_ms,
        )

    async def try_acquire_lock(
        self,
        intern_id: str,
        *,
        started_at_ms: int,
        stale_before_ms: Optional[int] = None,
    ) -> bool:
        """Create the lock, or take over a finished (or stale) one, in one statement."""
        stmt = self._insert(LockModel).values(
            intern_id=intern_id,
            status=SyncStatus.RUNNING.value,
            started_at_ms=started_at_ms,
            finished_at_ms=None,
            error_message=None,
        )
        takeover = LockModel.status != SyncStatus.RUNNING.value
        if stale_before_ms is not None:
            takeover = or_(takeover, LockModel.started_at_ms < stale_before_ms)
        stmt = stmt.on_conflict_do_update(
            index_elements=["intern_id"],
            set_={
                "status": stmt.excluded.status,
                "started_at_ms": stmt.excluded.started_at_ms,
                "finished_at_ms": None,
                "error_message": None,
            },
            where=takeover,
        ).returning(LockModel.intern_id)
        result = await self._execute(stmt)
        return result.first() is not None

    async def release_lock(
        self,
        intern_id: str,
        status: SyncStatus,
        *,
        finished_at_ms: int,
        error_message: str | None = None,
    ) -> None:
        stmt = (
            update(LockModel)
            .where(LockModel.intern_id == intern_id)
            .values(status=status.value, finished_at_ms=finished_at_ms, error_message=error_message)
            .execution_options(synchronize_session=False)
        )
        await self._execute(stmt)

    @staticmethod
    def _to_domain(model: ClaimModel | None) -> AllowanceClaim | None:
        if model is None:
            return None
        return AllowanceClaim(
            intern_id=model.intern_id,
            period_key=model.period_key,
            breakdown=Breakdown(wfo=model.wfo_days, wfh=model.wfh_days, leaves=model.leave_days),
            computed_amount=Decimal(model.computed_amount),
            resolved_amount=Decimal(model.resolved_amount),
            supervisor_adjustment=_adjustment(
                model.supervisor_adjusted_amount,
                model.supervisor_adjustment_note,
                model.supervisor_adjusted_by,
                model.supervisor_adjusted_at_ms,
            ),
            admin_adjustment=_adjustment(
                model.admin_adjusted_amount,
                model.admin_adjustment_note,
                model.admin_adjusted_by,
                model.admin_adjusted_at_ms,
            ),
            status=ClaimStatus(model.status),
            payment_date=model.payment_date,
            approved_at_ms=model.approved_at_ms,
            paid_at_ms=model.paid_at_ms,
            updated_at_ms=model.updated_at_ms,
        )


def _adjustment(
    amount: Decimal | None,
    note: str | None,
    actor_id: str | None,
    timestamp_ms: int | None,
) -> Adjustment | None:
    if amount is None or timestamp_ms is None:
        return None
    return Adjustment(amount=Decimal(amount), note=note or "", actor_id=actor_id or "", timestamp_ms=timestamp_ms)


def make_store_scope(session_factory: async_sessionmaker[AsyncSession]) -> StoreScope:
    """Return a scope factory that runs each unit of work in its own session."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[SqlClaimStore]:
        async with session_factory() as session:
            try:
                yield SqlClaimStore(session)
                await session.commit()
            except STORE_ERRORS as exc:
                await session.rollback()
                raise unavailable(exc) from exc
            except Exception:
                await session.rollback()
                raise

    return scope
