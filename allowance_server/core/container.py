"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from allowance_server.core.config import Settings, get_settings
from allowance_server.infrastructure.database.repositories.claim_repository import make_store_scope
from allowance_server.infrastructure.database.repositories.settings_repository import rules_from_settings
from allowance_server.infrastructure.database.session import get_engine, get_session_factory
from allowance_server.modules.allowances.models import AllowanceRules
from allowance_server.modules.allowances.repository import StoreScope
from allowance_server.modules.wallets.service import WalletSyncCoordinator


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (database engine, etc.) are initialised."""
        get_engine()

    def default_rules(self) -> AllowanceRules:
        return rules_from_settings(self.settings.allowance)

    def store_scope(self) -> StoreScope:
        return make_store_scope(get_session_factory())

    def wallet_sync_coordinator(self) -> WalletSyncCoordinator:
        return WalletSyncCoordinator(
            store_scope=self.store_scope(),
            stale_after_seconds=self.settings.allowance.sync_lock_stale_after_seconds,
        )


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
