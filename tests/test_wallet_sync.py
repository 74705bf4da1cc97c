import asyncio
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal

import pytest

from allowance_server.modules.allowances import (
    AdjustmentActor,
    AllowanceClaim,
    Breakdown,
    ClaimStatus,
    SyncStatus,
    WalletStatusSummary,
)
from allowance_server.modules.allowances.periods import now_ms
from allowance_server.modules.wallets import WalletSyncCoordinator, fold_claims


@pytest.fixture
def coordinator(memory_store) -> WalletSyncCoordinator:
    return WalletSyncCoordinator(store_scope=memory_store.scope)


def patched_scope(store, **overrides):
    """Scope factory whose units have some store methods replaced."""

    @asynccontextmanager
    async def scope():
        async with store.scope() as unit:
            for name, factory in overrides.items():
                setattr(unit, name, factory(getattr(unit, name)))
            yield unit

    return scope


async def seed_claims(store):
    await store.create_claim("intern-1", "2026-02", Breakdown(wfo=4))

    await store.create_claim("intern-1", "2026-03", Breakdown(wfo=10, wfh=5))
    await store.upsert_adjustment(
        "intern-1_2026-03", actor=AdjustmentActor.ADMIN, amount="1000", note="cap", actor_id="adm-1", timestamp_ms=1
    )

    await store.create_claim("intern-1", "2026-04", Breakdown(wfo=2))
    await store.save_resolution(
        "intern-1_2026-04", computed_amount=Decimal("194"), resolved_amount=Decimal("194"), updated_at_ms=1
    )
    await store.mark_paid("intern-1_2026-04", payment_date=date(2026, 5, 5), paid_at_ms=2)

    await store.create_claim("intern-2", "2026-03", Breakdown(wfo=20))


async def test_sync_folds_every_claim(coordinator, memory_store, rules):
    await seed_claims(memory_store)

    outcome = await coordinator.sync("intern-1", rules)

    assert outcome.already_running is False
    assert outcome.status is SyncStatus.DONE
    wallet = await memory_store.get_wallet("intern-1")
    assert wallet == outcome.wallet
    assert wallet.claim_count == 3
    assert wallet.total_computed_amount == Decimal("1795")
    assert wallet.total_resolved_amount == Decimal("1582")
    assert wallet.total_paid_amount == Decimal("194")
    assert wallet.total_pending_amount == Decimal("1388")
    assert wallet.total_breakdown == Breakdown(wfo=16, wfh=5)
    assert wallet.status_summary is WalletStatusSummary.HAS_PENDING

    stored = await memory_store.list_claims("intern-1")
    assert wallet.total_resolved_amount == sum(claim.resolved_amount for claim in stored)
    assert stored[0].resolved_amount == Decimal("388")

    lock = await memory_store.get_lock("intern-1")
    assert lock.status is SyncStatus.DONE
    assert lock.finished_at_ms == wallet.synced_at_ms
    assert await memory_store.get_wallet("intern-2") is None


async def test_second_trigger_returns_immediately(memory_store, rules):
    await seed_claims(memory_store)
    entered = asyncio.Event()
    release = asyncio.Event()

    def gate(list_claims):
        async def gated(intern_id):
            entered.set()
            await release.wait()
            return await list_claims(intern_id)

        return gated

    coordinator = WalletSyncCoordinator(store_scope=patched_scope(memory_store, list_claims=gate))
    first = asyncio.create_task(coordinator.sync("intern-1", rules))
    await entered.wait()

    second = await coordinator.sync("intern-1", rules)

    assert second.already_running is True
    assert second.status is None
    assert await memory_store.get_wallet("intern-1") is None
    assert (await memory_store.get_lock("intern-1")).is_running

    release.set()
    outcome = await first
    assert outcome.status is SyncStatus.DONE
    assert (await coordinator.sync("intern-1", rules)).status is SyncStatus.DONE


async def test_failed_sync_records_error_and_writes_nothing(memory_store, rules):
    await seed_claims(memory_store)

    def broken(_put_wallet):
        async def put_wallet(intern_id, aggregate):
            raise OSError("disk full")

        return put_wallet

    coordinator = WalletSyncCoordinator(store_scope=patched_scope(memory_store, put_wallet=broken))

    outcome = await coordinator.sync("intern-1", rules)

    assert outcome.status is SyncStatus.ERROR
    assert outcome.error_message == "disk full"
    assert outcome.wallet is None
    assert await memory_store.get_wallet("intern-1") is None
    lock = await memory_store.get_lock("intern-1")
    assert lock.status is SyncStatus.ERROR
    assert lock.error_message == "disk full"
    # Claim amounts reconciled during the failed run are rolled back.
    february = await memory_store.get_claim("intern-1", "2026-02")
    assert february.resolved_amount == Decimal("0")


async def test_stale_lock_is_taken_over_when_enabled(memory_store, rules):
    await memory_store.try_acquire_lock("intern-1", started_at_ms=now_ms() - 600_000)

    patient = WalletSyncCoordinator(store_scope=memory_store.scope)
    assert (await patient.sync("intern-1", rules)).already_running is True

    impatient = WalletSyncCoordinator(store_scope=memory_store.scope, stale_after_seconds=60)
    outcome = await impatient.sync("intern-1", rules)

    assert outcome.status is SyncStatus.DONE
    assert outcome.wallet.claim_count == 0


async def test_recent_lock_is_not_stale(memory_store, rules):
    await memory_store.try_acquire_lock("intern-1", started_at_ms=now_ms())
    coordinator = WalletSyncCoordinator(store_scope=memory_store.scope, stale_after_seconds=60)

    assert (await coordinator.sync("intern-1", rules)).already_running is True


async def test_force_release_unblocks_sync(coordinator, memory_store, rules):
    assert await coordinator.force_release("intern-1", "adm-1") is None
    await memory_store.try_acquire_lock("intern-1", started_at_ms=123)

    released = await coordinator.force_release("intern-1", "adm-1")

    assert released.status is SyncStatus.ERROR
    assert released.error_message == "Released manually by adm-1"
    assert released.started_at_ms == 123
    assert (await coordinator.get_lock("intern-1")).status is SyncStatus.ERROR
    assert (await coordinator.sync("intern-1", rules)).status is SyncStatus.DONE

    done = await coordinator.force_release("intern-1", "adm-1")
    assert done.status is SyncStatus.DONE


async def test_wallet_is_absent_before_first_sync(coordinator):
    assert await coordinator.get_wallet("intern-1") is None


def test_fold_claims_counts_approved_as_pending():
    claims = [
        AllowanceClaim("intern-1", "2026-01", Breakdown(wfo=1), Decimal("97"), Decimal("97"), status=ClaimStatus.APPROVED),
        AllowanceClaim("intern-1", "2026-02", Breakdown(wfh=2), Decimal("97"), Decimal("50"), status=ClaimStatus.PAID),
    ]

    wallet = fold_claims("intern-1", claims, synced_at_ms=7)

    assert wallet.total_pending_amount == Decimal("97")
    assert wallet.total_paid_amount == Decimal("50")
    assert wallet.total_resolved_amount == Decimal("147")
    assert wallet.total_computed_amount == Decimal("194")
    assert wallet.synced_at_ms == 7
    assert wallet.status_summary is WalletStatusSummary.HAS_PENDING


def test_status_summary_tracks_payment_state():
    assert fold_claims("intern-1", [], synced_at_ms=1).status_summary is WalletStatusSummary.EMPTY

    paid = [
        AllowanceClaim("intern-1", "2026-01", Breakdown(wfo=1), Decimal("97"), Decimal("97"), status=ClaimStatus.PAID),
        AllowanceClaim("intern-1", "2026-02", Breakdown(), Decimal("0"), Decimal("0"), status=ClaimStatus.PAID),
    ]
    assert fold_claims("intern-1", paid, synced_at_ms=1).status_summary is WalletStatusSummary.ALL_PAID


async def test_empty_sync_writes_empty_summary(coordinator, memory_store, rules):
    outcome = await coordinator.sync("intern-1", rules)

    assert outcome.wallet.status_summary is WalletStatusSummary.EMPTY
    assert (await memory_store.get_wallet("intern-1")).status_summary is WalletStatusSummary.EMPTY
