"""SQLAlchemy-backed repository implementations."""

from .attendance_repository import SqlAttendanceRepository
from .claim_repository import SqlClaimStore, make_store_scope
from .settings_repository import SqlAllowanceSettingsRepository, rules_from_settings

__all__ = [
    "SqlAttendanceRepository",
    "SqlClaimStore",
    "SqlAllowanceSettingsRepository",
    "make_store_scope",
    "rules_from_settings",
]
