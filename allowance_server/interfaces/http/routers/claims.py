"""Allowance claim endpoints: viewing, adjustments, approval and payment."""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.core.security import (
    ensure_can_read,
    get_current_admin,
    get_current_principal,
    get_current_supervisor,
)
from allowance_server.infrastructure.database.errors import commit
from allowance_server.interfaces.http.deps import get_allowance_rules, get_claim_service, get_db_session
from allowance_server.interfaces.http.errors import to_http_error
from allowance_server.modules.allowances import AdjustmentActor, AllowanceError, AllowanceRules, ClaimService
from allowance_server.schemas import (
    AdjustmentRequest,
    BulkPaymentRequest,
    BulkPaymentResponse,
    ClaimListResponse,
    ClaimResponse,
    PaymentRequest,
    TokenData,
)

router = APIRouter()


@router.post("/bulk-pay", response_model=BulkPaymentResponse, summary="Pay every unpaid claim of a period")
async def bulk_pay(
    payload: BulkPaymentRequest,
    _: TokenData = Depends(get_current_admin),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> BulkPaymentResponse:
    try:
        paid = await service.bulk_mark_paid(
            payload.period_key,
            payment_date=payload.payment_date or date.today(),
            rules=rules,
            intern_ids=payload.intern_ids,
        )
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return BulkPaymentResponse(period_key=payload.period_key, paid_claim_ids=[claim.id for claim in paid])


@router.get("/{intern_id}", response_model=ClaimListResponse, summary="List an intern's claims")
async def list_claims(
    intern_id: str,
    principal: TokenData = Depends(get_current_principal),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
) -> ClaimListResponse:
    ensure_can_read(principal, intern_id)
    try:
        claims = await service.list_claims(intern_id, rules)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimListResponse(
        intern_id=intern_id,
        claims=[ClaimResponse.model_validate(claim) for claim in claims],
    )


@router.get("/{intern_id}/{period_key}", response_model=ClaimResponse, summary="Get a claim, creating it if absent")
async def get_claim(
    intern_id: str,
    period_key: str,
    principal: TokenData = Depends(get_current_principal),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    ensure_can_read(principal, intern_id)
    try:
        claim = await service.get_claim(intern_id, period_key, rules)
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimResponse.model_validate(claim)


@router.post(
    "/{intern_id}/{period_key}/refresh",
    response_model=ClaimResponse,
    summary="Recount attendance for a claim",
)
async def refresh_claim(
    intern_id: str,
    period_key: str,
    principal: TokenData = Depends(get_current_principal),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    ensure_can_read(principal, intern_id)
    try:
        claim = await service.refresh_claim(intern_id, period_key, rules)
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimResponse.model_validate(claim)


async def _adjust(
    actor: AdjustmentActor,
    intern_id: str,
    period_key: str,
    payload: AdjustmentRequest,
    principal: TokenData,
    service: ClaimService,
    rules: AllowanceRules,
    db: AsyncSession,
) -> ClaimResponse:
    try:
        claim = await service.adjust(
            intern_id,
            period_key,
            actor=actor,
            amount=payload.amount,
            note=payload.note,
            actor_id=principal.subject,
            rules=rules,
        )
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimResponse.model_validate(claim)


@router.put(
    "/{intern_id}/{period_key}/supervisor-adjustment",
    response_model=ClaimResponse,
    summary="Set the supervisor override",
)
async def put_supervisor_adjustment(
    intern_id: str,
    period_key: str,
    payload: AdjustmentRequest,
    principal: TokenData = Depends(get_current_supervisor),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    return await _adjust(AdjustmentActor.SUPERVISOR, intern_id, period_key, payload, principal, service, rules, db)


@router.put(
    "/{intern_id}/{period_key}/admin-adjustment",
    response_model=ClaimResponse,
    summary="Set the admin override",
)
async def put_admin_adjustment(
    intern_id: str,
    period_key: str,
    payload: AdjustmentRequest,
    principal: TokenData = Depends(get_current_admin),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    return await _adjust(AdjustmentActor.ADMIN, intern_id, period_key, payload, principal, service, rules, db)


@router.post("/{intern_id}/{period_key}/approve", response_model=ClaimResponse, summary="Approve a claim")
async def approve_claim(
    intern_id: str,
    period_key: str,
    _: TokenData = Depends(get_current_admin),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    try:
        claim = await service.approve(intern_id, period_key, rules)
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimResponse.model_validate(claim)


@router.post("/{intern_id}/{period_key}/pay", response_model=ClaimResponse, summary="Mark a claim as paid")
async def pay_claim(
    intern_id: str,
    period_key: str,
    payload: Optional[PaymentRequest] = None,
    _: TokenData = Depends(get_current_admin),
    service: ClaimService = Depends(get_claim_service),
    rules: AllowanceRules = Depends(get_allowance_rules),
    db: AsyncSession = Depends(get_db_session),
) -> ClaimResponse:
    payment_date = (payload.payment_date if payload else None) or date.today()
    try:
        claim = await service.mark_paid(intern_id, period_key, payment_date=payment_date, rules=rules)
        await commit(db)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return ClaimResponse.model_validate(claim)
