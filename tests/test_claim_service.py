from datetime import date
from decimal import Decimal

import pytest

from allowance_server.modules.allowances import (
    END_OF_PROGRAM_PERIOD,
    AdjustmentActor,
    AllowanceRules,
    ClaimNotFoundError,
    ClaimService,
    ClaimStatus,
    ImmutableClaimError,
    PayoutFrequency,
    PayoutLockedError,
    ValidationError,
)
from allowance_server.modules.attendance import CorrectionStatus, LifecycleStatus, WorkMode

PAY_DAY = date(2026, 4, 5)


@pytest.fixture
def service(memory_store, aggregator) -> ClaimService:
    return ClaimService(memory_store, aggregator)


@pytest.fixture
def march_attendance(attendance):
    # 10 WFO + 5 WFH: 1250 gross, 1213 after tax
    attendance.add_days("intern-1", date(2026, 3, 2), 10, WorkMode.WFO)
    attendance.add_days("intern-1", date(2026, 3, 16), 5, WorkMode.WFH)
    return attendance


async def test_get_claim_materialises_from_attendance(service, memory_store, march_attendance, rules):
    claim = await service.get_claim("intern-1", "2026-03", rules)

    assert claim.id == "intern-1_2026-03"
    assert claim.breakdown.wfo == 10
    assert claim.breakdown.wfh == 5
    assert claim.computed_amount == Decimal("1213")
    assert claim.resolved_amount == Decimal("1213")
    assert claim.status is ClaimStatus.PENDING
    assert await memory_store.get_claim("intern-1", "2026-03") is not None


async def test_invalid_period_key_is_rejected(service, rules):
    with pytest.raises(ValidationError):
        await service.get_claim("intern-1", "March", rules)


async def test_adjustment_precedence_follows_timestamps(service, march_attendance, rules):
    await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.SUPERVISOR, amount="900", note="late reports",
        actor_id="sup-1", rules=rules, timestamp_ms=1_000,
    )
    claim = await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.ADMIN, amount="1100", note="policy exception",
        actor_id="adm-1", rules=rules, timestamp_ms=2_000,
    )
    assert claim.resolved_amount == Decimal("1100")

    claim = await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.SUPERVISOR, amount="950", note="recount",
        actor_id="sup-1", rules=rules, timestamp_ms=3_000,
    )
    assert claim.resolved_amount == Decimal("950")
    assert claim.supervisor_adjustment.note == "recount"
    assert claim.admin_adjustment.amount == Decimal("1100")


async def test_adjustment_tie_goes_to_admin(service, march_attendance, rules):
    await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.ADMIN, amount="700", note="admin",
        actor_id="adm-1", rules=rules, timestamp_ms=5_000,
    )
    claim = await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.SUPERVISOR, amount="800", note="supervisor",
        actor_id="sup-1", rules=rules, timestamp_ms=5_000,
    )

    assert claim.resolved_amount == Decimal("700")


@pytest.mark.parametrize("amount, note", [("100", "   "), ("NaN", "note"), ("Infinity", "note"), ("abc", "note")])
async def test_invalid_adjustments_write_nothing(service, memory_store, march_attendance, rules, amount, note):
    with pytest.raises(ValidationError):
        await service.adjust(
            "intern-1", "2026-03", actor=AdjustmentActor.ADMIN, amount=amount, note=note,
            actor_id="adm-1", rules=rules,
        )

    assert await memory_store.get_claim("intern-1", "2026-03") is None


async def test_paid_claim_is_immutable(service, march_attendance, rules):
    await service.get_claim("intern-1", "2026-03", rules)
    paid = await service.mark_paid("intern-1", "2026-03", payment_date=PAY_DAY, rules=rules)

    assert paid.status is ClaimStatus.PAID
    assert paid.resolved_amount == Decimal("1213")
    assert paid.payment_date == PAY_DAY
    assert paid.approved_at_ms is not None

    with pytest.raises(ImmutableClaimError):
        await service.adjust(
            "intern-1", "2026-03", actor=AdjustmentActor.ADMIN, amount="1", note="too late",
            actor_id="adm-1", rules=rules,
        )
    with pytest.raises(ImmutableClaimError):
        await service.refresh_claim("intern-1", "2026-03", rules)
    with pytest.raises(ImmutableClaimError):
        await service.mark_paid("intern-1", "2026-03", payment_date=PAY_DAY, rules=rules)

    # Rate changes do not touch a paid claim.
    richer = AllowanceRules(wfo_rate=Decimal("500"))
    assert (await service.get_claim("intern-1", "2026-03", richer)).resolved_amount == Decimal("1213")


async def test_mark_paid_requires_an_existing_claim(service, rules):
    with pytest.raises(ClaimNotFoundError):
        await service.mark_paid("ghost", "2026-03", payment_date=PAY_DAY, rules=rules)


async def test_refresh_picks_up_new_attendance(service, march_attendance, rules):
    await service.refresh_claim("intern-1", "2026-03", rules)
    march_attendance.add_days("intern-1", date(2026, 3, 23), 2, WorkMode.WFO)

    claim = await service.refresh_claim("intern-1", "2026-03", rules)

    # 1450 gross after two more WFO days
    assert claim.breakdown.wfo == 12
    assert claim.computed_amount == Decimal("1407")
    assert claim.resolved_amount == Decimal("1407")


async def test_refresh_keeps_manual_override(service, march_attendance, rules):
    await service.adjust(
        "intern-1", "2026-03", actor=AdjustmentActor.SUPERVISOR, amount="500", note="partial month",
        actor_id="sup-1", rules=rules,
    )
    march_attendance.add_days("intern-1", date(2026, 3, 23), 2, WorkMode.WFO)

    claim = await service.refresh_claim("intern-1", "2026-03", rules)

    assert claim.computed_amount == Decimal("1407")
    assert claim.resolved_amount == Decimal("500")


async def test_approve_then_pay(service, march_attendance, rules):
    approved = await service.approve("intern-1", "2026-03", rules)
    assert approved.status is ClaimStatus.APPROVED
    assert approved.resolved_amount == Decimal("1213")

    again = await service.approve("intern-1", "2026-03", rules)
    assert again.approved_at_ms == approved.approved_at_ms

    paid = await service.mark_paid("intern-1", "2026-03", payment_date=PAY_DAY, rules=rules, paid_at_ms=42)
    assert paid.approved_at_ms == approved.approved_at_ms
    assert paid.paid_at_ms == 42

    with pytest.raises(ImmutableClaimError):
        await service.approve("intern-1", "2026-03", rules)


async def test_end_of_program_payout_waits_for_completion(service, attendance):
    rules = AllowanceRules(payout_frequency=PayoutFrequency.END_OF_PROGRAM)
    profile = attendance.add_profile("intern-1", start=date(2026, 1, 5), end=date(2026, 6, 30))
    attendance.add_days("intern-1", date(2026, 2, 2), 3, WorkMode.WFO)
    await service.get_claim("intern-1", END_OF_PROGRAM_PERIOD, rules)

    with pytest.raises(PayoutLockedError):
        await service.mark_paid("intern-1", END_OF_PROGRAM_PERIOD, payment_date=PAY_DAY, rules=rules)

    profile.lifecycle_status = LifecycleStatus.COMPLETED
    paid = await service.mark_paid("intern-1", END_OF_PROGRAM_PERIOD, payment_date=PAY_DAY, rules=rules)

    assert paid.status is ClaimStatus.PAID
    assert paid.resolved_amount == Decimal("291")


async def test_bulk_pay_skips_paid_and_locked_claims(service, attendance, rules):
    for intern_id in ("intern-1", "intern-2", "intern-3"):
        attendance.add_days(intern_id, date(2026, 3, 2), 2, WorkMode.WFO)
        await service.get_claim(intern_id, "2026-03", rules)
        await service.get_claim(intern_id, END_OF_PROGRAM_PERIOD, rules)
    await service.mark_paid("intern-2", "2026-03", payment_date=PAY_DAY, rules=rules)

    paid = await service.bulk_mark_paid("2026-03", payment_date=PAY_DAY, rules=rules)
    assert [claim.id for claim in paid] == ["intern-1_2026-03", "intern-3_2026-03"]
    assert all(claim.resolved_amount == Decimal("194") for claim in paid)

    attendance.add_profile("intern-3", status=LifecycleStatus.COMPLETED)
    paid = await service.bulk_mark_paid(
        END_OF_PROGRAM_PERIOD, payment_date=PAY_DAY, rules=rules, intern_ids=["intern-1", "intern-3"]
    )
    assert [claim.id for claim in paid] == ["intern-3_END_OF_PROGRAM"]


async def test_invalid_adjustment_keeps_existing_claim_untouched(service, memory_store, march_attendance, rules):
    before = await service.get_claim("intern-1", "2026-03", rules)

    with pytest.raises(ValidationError):
        await service.adjust(
            "intern-1", "2026-03", actor=AdjustmentActor.SUPERVISOR, amount="-Infinity", note="x",
            actor_id="sup-1", rules=rules,
        )

    stored = await memory_store.get_claim("intern-1", "2026-03")
    assert stored.supervisor_adjustment is None
    assert stored.updated_at_ms == before.updated_at_ms


async def test_pending_time_correction_locks_payout(service, attendance, march_attendance, rules):
    correction = attendance.add_correction("intern-1", date(2026, 3, 4))

    claim = await service.get_claim("intern-1", "2026-03", rules)
    assert claim.is_payout_locked is True
    assert claim.lock_reason == "Has 1 pending time correction request(s). Payout locked until resolved."

    with pytest.raises(PayoutLockedError):
        await service.mark_paid("intern-1", "2026-03", payment_date=PAY_DAY, rules=rules)
    assert await service.bulk_mark_paid("2026-03", payment_date=PAY_DAY, rules=rules) == []

    correction.status = CorrectionStatus.APPROVED
    claim = await service.get_claim("intern-1", "2026-03", rules)
    assert claim.is_payout_locked is False
    assert claim.lock_reason is None

    paid = await service.mark_paid("intern-1", "2026-03", payment_date=PAY_DAY, rules=rules)
    assert paid.status is ClaimStatus.PAID


async def test_end_of_program_claim_reports_its_lock(service, attendance):
    rules = AllowanceRules(payout_frequency=PayoutFrequency.END_OF_PROGRAM)
    attendance.add_profile("intern-1", start=date(2026, 1, 5), end=date(2026, 6, 30))

    claim = await service.get_claim("intern-1", END_OF_PROGRAM_PERIOD, rules)
    monthly = await service.get_claim("intern-1", "2026-03", rules)

    assert claim.is_payout_locked is True
    assert claim.lock_reason == "Locked until programme completion"
    assert monthly.is_payout_locked is False

    attendance.add_correction("intern-1", date(2026, 2, 2))
    listed = await service.list_claims("intern-1", rules)
    assert all(claim.is_payout_locked for claim in listed)
    assert all("pending time correction" in claim.lock_reason for claim in listed)
