from decimal import Decimal

from allowance_server.modules.allowances import (
    Adjustment,
    AllowanceClaim,
    Breakdown,
    ClaimStatus,
    pick_adjustment,
    resolve_amount,
)


def _adjustment(amount: str, at_ms: int, actor_id: str = "someone") -> Adjustment:
    return Adjustment(amount=Decimal(amount), note="manual", actor_id=actor_id, timestamp_ms=at_ms)


def _claim(**kwargs) -> AllowanceClaim:
    kwargs.setdefault("breakdown", Breakdown(wfo=4))
    return AllowanceClaim(intern_id="intern-1", period_key="2026-03", **kwargs)


def test_later_admin_adjustment_wins():
    claim = _claim(
        supervisor_adjustment=_adjustment("300", 1_000),
        admin_adjustment=_adjustment("450", 2_000),
    )

    assert resolve_amount(Decimal("388"), claim) == Decimal("450")


def test_later_supervisor_adjustment_wins():
    claim = _claim(
        supervisor_adjustment=_adjustment("300", 3_000),
        admin_adjustment=_adjustment("450", 2_000),
    )

    assert resolve_amount(Decimal("388"), claim) == Decimal("300")


def test_equal_timestamps_go_to_admin():
    supervisor = _adjustment("300", 5_000, "sup")
    admin = _adjustment("450", 5_000, "adm")

    assert pick_adjustment(supervisor, admin) is admin


def test_single_adjustment_wins_over_computed():
    claim = _claim(supervisor_adjustment=_adjustment("0", 1_000))

    assert resolve_amount(Decimal("388"), claim) == Decimal("0")


def test_never_computed_claim_takes_computed_amount():
    claim = _claim(resolved_amount=Decimal("0"))

    assert resolve_amount(Decimal("388"), claim) == Decimal("388")


def test_zero_claim_without_work_days_stays_zero():
    claim = _claim(breakdown=Breakdown(leaves=3))

    assert resolve_amount(Decimal("0"), claim) == Decimal("0")


def test_stored_amount_is_kept_without_adjustments():
    claim = _claim(resolved_amount=Decimal("250"))

    assert resolve_amount(Decimal("388"), claim) == Decimal("250")


def test_paid_claim_keeps_stored_amount():
    claim = _claim(
        resolved_amount=Decimal("120"),
        status=ClaimStatus.PAID,
        admin_adjustment=_adjustment("999", 9_000),
    )

    assert resolve_amount(Decimal("388"), claim) == Decimal("120")
