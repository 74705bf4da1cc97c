"""Reusable FastAPI dependencies."""

from .database import get_db_session
from .allowances import get_allowance_rules, get_claim_service, get_settings_repository, get_wallet_coordinator

__all__ = [
    "get_db_session",
    "get_allowance_rules",
    "get_claim_service",
    "get_settings_repository",
    "get_wallet_coordinator",
]
