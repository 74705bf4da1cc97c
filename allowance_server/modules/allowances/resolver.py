"""Precedence rules between computed amounts and manual adjustments."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .models import ZERO, Adjustment, AllowanceClaim


def pick_adjustment(
    supervisor: Optional[Adjustment],
    admin: Optional[Adjustment],
) -> Optional[Adjustment]:
    """Return the adjustment that wins, or ``None`` when neither slot is set.

    The later timestamp wins. Equal timestamps go to the admin adjustment.
    """
    if supervisor is None:
        return admin
    if admin is None:
        return supervisor
    if supervisor.timestamp_ms > admin.timestamp_ms:
        return supervisor
    return admin


def resolve_amount(computed_amount: Decimal, claim: AllowanceClaim) -> Decimal:
    """Return the authoritative amount of ``claim``.

    Paid claims keep their stored amount. Otherwise the winning adjustment is
    used. Without adjustments a claim that was never computed (stored amount
    zero despite work days) takes ``computed_amount``; any other stored amount
    is kept as is.
    """
    if claim.is_paid:
        return claim.resolved_amount

    winner = pick_adjustment(claim.supervisor_adjustment, claim.admin_adjustment)
    if winner is not None:
        return winner.amount

    if claim.resolved_amount == ZERO and claim.breakdown.has_work_days:
        return computed_amount
    return claim.resolved_amount
