"""SQLAlchemy reader for the allowance settings record."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.core.config import AllowanceSettings
from allowance_server.db.models import AllowanceSettingsRecord
from allowance_server.infrastructure.database.errors import execute
from allowance_server.modules.allowances.models import AllowanceRules, PayoutFrequency

SETTINGS_RECORD_ID = "allowance"


def rules_from_settings(settings: AllowanceSettings) -> AllowanceRules:
    return AllowanceRules(
        payout_frequency=PayoutFrequency(settings.payout_frequency),
        wfo_rate=settings.wfo_rate,
        wfh_rate=settings.wfh_rate,
        apply_tax=settings.apply_tax,
        tax_percent=settings.tax_percent,
    )


class SqlAllowanceSettingsRepository:
    """Reads the rules record; falls back to configured defaults while none exists."""

    def __init__(self, session: AsyncSession, defaults: AllowanceRules) -> None:
        self.session = session
        self.defaults = defaults

    async def get_rules(self) -> AllowanceRules:
        stmt = select(AllowanceSettingsRecord).where(AllowanceSettingsRecord.id == SETTINGS_RECORD_ID)
        result = await execute(self.session, stmt)
        record = result.scalars().first()
        if record is None:
            return self.defaults
        return AllowanceRules(
            payout_frequency=(
                PayoutFrequency.END_OF_PROGRAM
                if record.payout_frequency == PayoutFrequency.END_OF_PROGRAM.value
                else PayoutFrequency.MONTHLY
            ),
            wfo_rate=Decimal(record.wfo_rate),
            wfh_rate=Decimal(record.wfh_rate),
            apply_tax=bool(record.apply_tax),
            tax_percent=Decimal(record.tax_percent),
        )
