"""Allowance related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.core.container import get_container
from allowance_server.infrastructure.database.repositories.settings_repository import SqlAllowanceSettingsRepository
from allowance_server.interfaces.http.errors import to_http_error
from allowance_server.modules.allowances.exceptions import AllowanceError
from allowance_server.modules.allowances.models import AllowanceRules
from allowance_server.modules.allowances.service import ClaimService
from allowance_server.modules.wallets.service import WalletSyncCoordinator

from .database import get_db_session


def get_settings_repository(db: AsyncSession = Depends(get_db_session)) -> SqlAllowanceSettingsRepository:
    return SqlAllowanceSettingsRepository(db, get_container().default_rules())


async def get_allowance_rules(
    repository: SqlAllowanceSettingsRepository = Depends(get_settings_repository),
) -> AllowanceRules:
    try:
        return await repository.get_rules()
    except AllowanceError as exc:
        raise to_http_error(exc) from exc


def get_claim_service(db: AsyncSession = Depends(get_db_session)) -> ClaimService:
    return ClaimService.with_session(db)


def get_wallet_coordinator() -> WalletSyncCoordinator:
    return get_container().wallet_sync_coordinator()


__all__ = [
    "get_allowance_rules",
    "get_claim_service",
    "get_settings_repository",
    "get_wallet_coordinator",
]
