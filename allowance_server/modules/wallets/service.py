"""Wallet synchronisation guarded by a per-intern lock record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from allowance_server.modules.allowances.exceptions import SyncFailure
from allowance_server.modules.allowances.models import (
    AllowanceClaim,
    AllowanceRules,
    Breakdown,
    ClaimStatus,
    SyncLock,
    SyncStatus,
    WalletAggregate,
    WalletStatusSummary,
)
from allowance_server.modules.allowances.periods import now_ms
from allowance_server.modules.allowances.repository import StoreScope
from allowance_server.modules.allowances.service import reconcile_claim

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    intern_id: str
    already_running: bool
    status: Optional[SyncStatus] = None
    wallet: Optional[WalletAggregate] = None
    error_message: Optional[str] = None


def fold_claims(intern_id: str, claims: Iterable[AllowanceClaim], synced_at_ms: int) -> WalletAggregate:
    """Sum resolved claims into a fresh wallet aggregate.

    Paid claims count towards the paid total, every other status towards the
    pending total. The status summary is EMPTY without claims, HAS_PENDING
    while any claim is unpaid and ALL_PAID otherwise.
    """
    wallet = WalletAggregate(intern_id=intern_id, total_breakdown=Breakdown(), synced_at_ms=synced_at_ms)
    has_pending = False
    for claim in claims:
        wallet.total_computed_amount += claim.computed_amount
        wallet.total_resolved_amount += claim.resolved_amount
        if claim.status is ClaimStatus.PAID:
            wallet.total_paid_amount += claim.resolved_amount
        else:
            wallet.total_pending_amount += claim.resolved_amount
            has_pending = True
        wallet.total_breakdown = wallet.total_breakdown + claim.breakdown
        wallet.claim_count += 1
    if has_pending:
        wallet.status_summary = WalletStatusSummary.HAS_PENDING
    elif wallet.claim_count:
        wallet.status_summary = WalletStatusSummary.ALL_PAID
    return wallet


@dataclass(slots=True)
class WalletSyncCoordinator:
    """Rebuilds an intern's wallet from every claim, one run per intern at a time.

    A second trigger while a run holds the lock returns immediately with
    ``already_running`` set. When ``stale_after_seconds`` is set a RUNNING lock
    older than that may be taken over; otherwise a crashed run keeps the lock
    until an admin releases it.
    """

    store_scope: StoreScope
    stale_after_seconds: Optional[int] = None

    async def sync(self, intern_id: str, rules: AllowanceRules) -> SyncOutcome:
        started_at_ms = now_ms()
        stale_before_ms = None
        if self.stale_after_seconds:
            stale_before_ms = started_at_ms - self.stale_after_seconds * 1000

        async with self.store_scope() as store:
            acquired = await store.try_acquire_lock(
                intern_id,
                started_at_ms=started_at_ms,
                stale_before_ms=stale_before_ms,
            )
        if not acquired:
            logger.info("Wallet sync for intern %s is already running", intern_id)
            return SyncOutcome(intern_id=intern_id, already_running=True)

        logger.info("Wallet sync for intern %s started", intern_id)
        try:
            wallet = await self._rebuild(intern_id, rules)
        except SyncFailure as exc:
            message = str(exc)
            logger.exception("Wallet sync for intern %s failed", intern_id)
            async with self.store_scope() as store:
                await store.release_lock(
                    intern_id,
                    SyncStatus.ERROR,
                    finished_at_ms=now_ms(),
                    error_message=message,
                )
            return SyncOutcome(
                intern_id=intern_id,
                already_running=False,
                status=SyncStatus.ERROR,
                error_message=message,
            )

        logger.info(
            "Wallet sync for intern %s finished: %d claim(s), resolved total %s",
            intern_id,
            wallet.claim_count,
            wallet.total_resolved_amount,
        )
        return SyncOutcome(intern_id=intern_id, already_running=False, status=SyncStatus.DONE, wallet=wallet)

    async def _rebuild(self, intern_id: str, rules: AllowanceRules) -> WalletAggregate:
        # Claim updates, the wallet and the DONE lock commit together or not at all.
        try:
            async with self.store_scope() as store:
                reconciled: list[AllowanceClaim] = []
                for claim in await store.list_claims(intern_id):
                    current = reconcile_claim(claim, rules)
                    if (current.computed_amount, current.resolved_amount) != (
                        claim.computed_amount,
                        claim.resolved_amount,
                    ):
                        current = await store.save_resolution(
                            claim.id,
                            computed_amount=current.computed_amount,
                            resolved_amount=current.resolved_amount,
                            updated_at_ms=now_ms(),
                        )
                    reconciled.append(current)

                wallet = fold_claims(intern_id, reconciled, synced_at_ms=now_ms())
                await store.put_wallet(intern_id, wallet)
                await store.release_lock(intern_id, SyncStatus.DONE, finished_at_ms=wallet.synced_at_ms)
        except SyncFailure:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise SyncFailure(str(exc) or exc.__class__.__name__) from exc
        return wallet

    async def get_wallet(self, intern_id: str) -> WalletAggregate | None:
        async with self.store_scope() as store:
            return await store.get_wallet(intern_id)

    async def get_lock(self, intern_id: str) -> SyncLock | None:
        async with self.store_scope() as store:
            return await store.get_lock(intern_id)

    async def force_release(self, intern_id: str, released_by: str) -> SyncLock | None:
        """Mark a RUNNING lock as ERROR so the next trigger can proceed."""
        async with self.store_scope() as store:
            lock = await store.get_lock(intern_id)
            if lock is None or not lock.is_running:
                return lock
            message = f"Released manually by {released_by}"
            finished_at_ms = now_ms()
            await store.release_lock(
                intern_id,
                SyncStatus.ERROR,
                finished_at_ms=finished_at_ms,
                error_message=message,
            )
        logger.warning("Wallet sync lock for intern %s released manually by %s", intern_id, released_by)
        return SyncLock(
            intern_id=intern_id,
            status=SyncStatus.ERROR,
            started_at_ms=lock.started_at_ms,
            error_message=message,
            finished_at_ms=finished_at_ms,
        )
