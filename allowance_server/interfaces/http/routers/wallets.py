"""Wallet sync trigger and wallet read endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from allowance_server.core.security import ensure_can_read, get_current_admin, get_current_principal, get_sync_operator
from allowance_server.interfaces.http.deps import get_allowance_rules, get_wallet_coordinator
from allowance_server.interfaces.http.errors import to_http_error
from allowance_server.modules.allowances import AllowanceError, AllowanceRules, WalletAggregate
from allowance_server.modules.wallets import WalletSyncCoordinator
from allowance_server.schemas import SyncLockResponse, SyncResponse, TokenData, WalletResponse

router = APIRouter()


@router.post("/{intern_id}/sync", response_model=SyncResponse, summary="Rebuild an intern's wallet")
async def sync_wallet(
    intern_id: str,
    _: TokenData = Depends(get_sync_operator),
    coordinator: WalletSyncCoordinator = Depends(get_wallet_coordinator),
    rules: AllowanceRules = Depends(get_allowance_rules),
) -> SyncResponse:
    try:
        outcome = await coordinator.sync(intern_id, rules)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return SyncResponse(
        intern_id=outcome.intern_id,
        already_running=outcome.already_running,
        status=outcome.status,
        error_message=outcome.error_message,
        wallet=WalletResponse.model_validate(outcome.wallet) if outcome.wallet is not None else None,
    )


@router.get("/{intern_id}", response_model=WalletResponse, summary="Get an intern's wallet")
async def get_wallet(
    intern_id: str,
    principal: TokenData = Depends(get_current_principal),
    coordinator: WalletSyncCoordinator = Depends(get_wallet_coordinator),
) -> WalletResponse:
    ensure_can_read(principal, intern_id)
    try:
        wallet = await coordinator.get_wallet(intern_id)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    # Never synced: an empty wallet, not an error.
    return WalletResponse.model_validate(wallet or WalletAggregate(intern_id=intern_id))


@router.get("/{intern_id}/lock", response_model=Optional[SyncLockResponse], summary="Get the wallet sync lock")
async def get_sync_lock(
    intern_id: str,
    principal: TokenData = Depends(get_current_principal),
    coordinator: WalletSyncCoordinator = Depends(get_wallet_coordinator),
) -> Optional[SyncLockResponse]:
    ensure_can_read(principal, intern_id)
    try:
        lock = await coordinator.get_lock(intern_id)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    return SyncLockResponse.model_validate(lock) if lock is not None else None


@router.post("/{intern_id}/lock/release", response_model=SyncLockResponse, summary="Release a stuck sync lock")
async def release_sync_lock(
    intern_id: str,
    admin: TokenData = Depends(get_current_admin),
    coordinator: WalletSyncCoordinator = Depends(get_wallet_coordinator),
) -> SyncLockResponse:
    try:
        lock = await coordinator.force_release(intern_id, admin.subject)
    except AllowanceError as exc:
        raise to_http_error(exc) from exc
    if lock is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No sync lock for this intern")
    return SyncLockResponse.model_validate(lock)
