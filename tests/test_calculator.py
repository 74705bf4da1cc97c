from decimal import Decimal

from allowance_server.modules.allowances import AllowanceRules, Breakdown, compute_allowance
from allowance_server.modules.allowances.calculator import round_money


def test_taxed_amount_is_rounded_half_up():
    # 1250 gross, 3% tax leaves 1212.5
    breakdown = Breakdown(wfo=10, wfh=5)

    assert compute_allowance(breakdown, AllowanceRules()) == Decimal("1213")


def test_untaxed_amount_is_gross():
    breakdown = Breakdown(wfo=10, wfh=5)
    rules = AllowanceRules(apply_tax=False)

    assert compute_allowance(breakdown, rules) == Decimal("1250")


def test_leave_days_never_add_to_the_amount():
    rules = AllowanceRules(apply_tax=False)

    assert compute_allowance(Breakdown(wfo=2, leaves=7), rules) == Decimal("200")
    assert compute_allowance(Breakdown(leaves=3), AllowanceRules()) == Decimal("0")


def test_full_tax_clamps_to_zero():
    rules = AllowanceRules(tax_percent=Decimal("100"))

    assert compute_allowance(Breakdown(wfo=3), rules) == Decimal("0")


def test_computation_is_deterministic():
    breakdown = Breakdown(wfo=7, wfh=11, leaves=2)
    rules = AllowanceRules(wfo_rate=Decimal("123.45"), wfh_rate=Decimal("67.89"), tax_percent=Decimal("7.5"))

    results = {compute_allowance(breakdown, rules) for _ in range(5)}

    assert len(results) == 1


def test_round_money_half_up():
    assert round_money(Decimal("0.5")) == Decimal("1")
    assert round_money(Decimal("2.49")) == Decimal("2")
