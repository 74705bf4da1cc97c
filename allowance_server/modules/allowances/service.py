"""Claim use cases: lazy materialisation, adjustments, approval and payment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .calculator import compute_allowance
from .exceptions import ClaimNotFoundError, ImmutableClaimError, PayoutLockedError
from .models import END_OF_PROGRAM_PERIOD, ZERO, AdjustmentActor, AllowanceClaim, AllowanceRules, ClaimStatus
from .periods import now_ms, validate_period_key
from .repository import ClaimStore
from .resolver import resolve_amount
from .validators import Number, validate_adjustment_input

if TYPE_CHECKING:
    from allowance_server.modules.attendance.aggregator import AttendanceAggregator

logger = logging.getLogger(__name__)


def _tracks_computed(claim: AllowanceClaim) -> bool:
    # Auto-derived: no override and the stored amounts agree.
    return (
        claim.supervisor_adjustment is None
        and claim.admin_adjustment is None
        and claim.resolved_amount == claim.computed_amount
    )


def reconcile_claim(claim: AllowanceClaim, rules: AllowanceRules) -> AllowanceClaim:
    """Return a copy of ``claim`` with computed and resolved amounts re-derived.

    Paid claims are returned unchanged. A resolved amount that was derived
    automatically follows the recomputed amount; one set deliberately (for
    example zeroed by hand) is kept.
    """
    if claim.is_paid:
        return claim
    computed = compute_allowance(claim.breakdown, rules)
    basis = replace(claim, resolved_amount=ZERO) if _tracks_computed(claim) else claim
    return replace(claim, computed_amount=computed, resolved_amount=resolve_amount(computed, basis))


@dataclass(slots=True)
class ClaimService:
    store: ClaimStore
    aggregator: AttendanceAggregator

    @classmethod
    def with_session(cls, session: AsyncSession) -> "ClaimService":
        # Deferred imports: the SQL adapters import this package's models.
        from allowance_server.infrastructure.database.repositories.claim_repository import SqlClaimStore
        from allowance_server.modules.attendance.aggregator import AttendanceAggregator

        return cls(SqlClaimStore(session), AttendanceAggregator.with_session(session))

    async def get_claim(self, intern_id: str, period_key: str, rules: AllowanceRules) -> AllowanceClaim:
        claim = await self._load_or_create(intern_id, period_key)
        return await self._with_lock_state(reconcile_claim(claim, rules))

    async def list_claims(self, intern_id: str, rules: AllowanceRules) -> list[AllowanceClaim]:
        claims = await self.store.list_claims(intern_id)
        return [await self._with_lock_state(reconcile_claim(claim, rules)) for claim in claims]

    async def refresh_claim(self, intern_id: str, period_key: str, rules: AllowanceRules) -> AllowanceClaim:
        """Re-read attendance for the period and persist the new amounts."""
        claim = await self._load_or_create(intern_id, period_key)
        if claim.is_paid:
            raise ImmutableClaimError(f"Claim {claim.id} is already paid")

        breakdown = await self.aggregator.breakdown_for(intern_id, claim.period_key)
        current = reconcile_claim(replace(claim, breakdown=breakdown), rules)
        saved = await self.store.save_resolution(
            claim.id,
            computed_amount=current.computed_amount,
            resolved_amount=current.resolved_amount,
            updated_at_ms=now_ms(),
            breakdown=breakdown,
        )
        return await self._with_lock_state(saved)

    async def adjust(
        self,
        intern_id: str,
        period_key: str,
        *,
        actor: AdjustmentActor,
        amount: Number,
        note: str,
        actor_id: str,
        rules: AllowanceRules,
        timestamp_ms: Optional[int] = None,
    ) -> AllowanceClaim:
        clean_amount, clean_note = validate_adjustment_input(amount, note)
        claim = await self._load_or_create(intern_id, period_key)
        stamp = timestamp_ms if timestamp_ms is not None else now_ms()
        adjusted = await self.store.upsert_adjustment(
            claim.id,
            actor=actor,
            amount=clean_amount,
            note=clean_note,
            actor_id=actor_id,
            timestamp_ms=stamp,
        )
        current = reconcile_claim(adjusted, rules)
        saved = await self.store.save_resolution(
            claim.id,
            computed_amount=current.computed_amount,
            resolved_amount=current.resolved_amount,
            updated_at_ms=stamp,
        )
        logger.info(
            "%s %s adjusted claim %s to %s (resolved %s)",
            actor.value,
            actor_id,
            claim.id,
            adjusted.adjustment_for(actor).amount,
            saved.resolved_amount,
        )
        return await self._with_lock_state(saved)

    async def approve(self, intern_id: str, period_key: str, rules: AllowanceRules) -> AllowanceClaim:
        claim = await self._load_or_create(intern_id, period_key)
        if claim.is_paid:
            raise ImmutableClaimError(f"Claim {claim.id} is already paid")
        if claim.status is ClaimStatus.APPROVED:
            return await self._with_lock_state(reconcile_claim(claim, rules))
        await self._freeze_amounts(claim, rules)
        approved = await self.store.mark_approved(claim.id, now_ms())
        logger.info("Claim %s approved", claim.id)
        return await self._with_lock_state(approved)

    async def payout_lock_reason(self, intern_id: str, period_key: str) -> Optional[str]:
        """Return why a payout is blocked, or ``None`` when it may proceed.

        Pending time corrections block every payout of the intern until they
        are resolved. End-of-programme payouts also wait for the internship
        to be completed.
        """
        corrections = await self.aggregator.pending_corrections(intern_id)
        if corrections:
            return (
                f"Has {len(corrections)} pending time correction request(s). "
                "Payout locked until resolved."
            )
        if period_key == END_OF_PROGRAM_PERIOD:
            profile = await self.aggregator.get_profile(intern_id)
            if profile is None or not profile.is_completed:
                return "Locked until programme completion"
        return None

    async def mark_paid(
        self,
        intern_id: str,
        period_key: str,
        *,
        payment_date: date,
        rules: AllowanceRules,
        paid_at_ms: Optional[int] = None,
    ) -> AllowanceClaim:
        validate_period_key(period_key)
        claim = await self.store.get_claim(intern_id, period_key)
        if claim is None:
            raise ClaimNotFoundError(f"No claim for intern {intern_id} in period {period_key}")
        if claim.is_paid:
            raise ImmutableClaimError(f"Claim {claim.id} is already paid")
        reason = await self.payout_lock_reason(intern_id, period_key)
        if reason is not None:
            raise PayoutLockedError(f"Payout for claim {claim.id} is locked: {reason}")

        await self._freeze_amounts(claim, rules)
        paid = await self.store.mark_paid(
            claim.id,
            payment_date=payment_date,
            paid_at_ms=paid_at_ms if paid_at_ms is not None else now_ms(),
        )
        logger.info("Claim %s paid %s on %s", claim.id, paid.resolved_amount, payment_date.isoformat())
        return paid

    async def bulk_mark_paid(
        self,
        period_key: str,
        *,
        payment_date: date,
        rules: AllowanceRules,
        intern_ids: Iterable[str] | None = None,
        paid_at_ms: Optional[int] = None,
    ) -> list[AllowanceClaim]:
        """Pay every unpaid, unlocked claim of a period and return the paid claims."""
        validate_period_key(period_key)
        stamp = paid_at_ms if paid_at_ms is not None else now_ms()
        paid: list[AllowanceClaim] = []
        for claim in await self.store.list_period_claims(period_key, intern_ids):
            if claim.is_paid:
                continue
            reason = await self.payout_lock_reason(claim.intern_id, period_key)
            if reason is not None:
                logger.info("Skipping locked payout for claim %s: %s", claim.id, reason)
                continue
            await self._freeze_amounts(claim, rules)
            paid.append(await self.store.mark_paid(claim.id, payment_date=payment_date, paid_at_ms=stamp))
        logger.info("Bulk payment for %s paid %d claim(s)", period_key, len(paid))
        return paid

    async def _load_or_create(self, intern_id: str, period_key: str) -> AllowanceClaim:
        validate_period_key(period_key)
        claim = await self.store.get_claim(intern_id, period_key)
        if claim is not None:
            return claim
        breakdown = await self.aggregator.breakdown_for(intern_id, period_key)
        claim = await self.store.create_claim(intern_id, period_key, breakdown)
        logger.info("Materialised claim %s with %s", claim.id, breakdown)
        return claim

    async def _with_lock_state(self, claim: AllowanceClaim) -> AllowanceClaim:
        if claim.is_paid:
            return claim
        reason = await self.payout_lock_reason(claim.intern_id, claim.period_key)
        return replace(claim, is_payout_locked=reason is not None, lock_reason=reason)

    async def _freeze_amounts(self, claim: AllowanceClaim, rules: AllowanceRules) -> AllowanceClaim:
        current = reconcile_claim(claim, rules)
        if (current.computed_amount, current.resolved_amount) == (claim.computed_amount, claim.resolved_amount):
            return claim
        return await self.store.save_resolution(
            claim.id,
            computed_amount=current.computed_amount,
            resolved_amount=current.resolved_amount,
            updated_at_ms=now_ms(),
        )
