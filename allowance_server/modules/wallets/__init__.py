"""Wallet sync exports"""

from .service import SyncOutcome, WalletSyncCoordinator, fold_claims

__all__ = [
    "SyncOutcome",
    "WalletSyncCoordinator",
    "fold_claims",
]
