"""Allowance amount calculation from an attendance breakdown."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .models import ZERO, AllowanceRules, Breakdown

HUNDRED = Decimal("100")
WHOLE_UNIT = Decimal("1")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def compute_allowance(breakdown: Breakdown, rules: AllowanceRules) -> Decimal:
    """Return the net allowance for ``breakdown`` under ``rules``.

    Leave days are carried in the breakdown for display only and never add to
    the gross amount. With tax enabled the net amount is rounded half-up to a
    whole currency unit and never negative.
    """
    gross = breakdown.wfo * rules.wfo_rate + breakdown.wfh * rules.wfh_rate
    if not rules.apply_tax:
        return gross
    net = round_money(gross * (1 - rules.tax_percent / HUNDRED))
    return max(net, ZERO)
