"""
Initialise the allowance settings record.
Writes the configured default rules so admins have a record to edit.
"""
import asyncio

from sqlalchemy import select

from allowance_server.core.config import get_settings
from allowance_server.db.models import AllowanceSettingsRecord
from allowance_server.infrastructure.database.repositories.settings_repository import SETTINGS_RECORD_ID
from allowance_server.infrastructure.database.session import get_session, init_db


async def create_default_settings():
    """Insert the allowance settings record unless one already exists."""
    await init_db()
    defaults = get_settings().allowance

    async for db in get_session():
        stmt = select(AllowanceSettingsRecord).where(AllowanceSettingsRecord.id == SETTINGS_RECORD_ID)
        result = await db.execute(stmt)
        if result.scalar_one_or_none() is not None:
            print("Allowance settings already exist, nothing to do")
            return

        db.add(
            AllowanceSettingsRecord(
                id=SETTINGS_RECORD_ID,
                payout_frequency=defaults.payout_frequency,
                wfo_rate=defaults.wfo_rate,
                wfh_rate=defaults.wfh_rate,
                apply_tax=defaults.apply_tax,
                tax_percent=defaults.tax_percent,
            )
        )

        print("=" * 50)
        print("Allowance settings created")
        print("=" * 50)
        print(f"Payout frequency: {defaults.payout_frequency}")
        print(f"WFO rate: {defaults.wfo_rate}  WFH rate: {defaults.wfh_rate}")
        print(f"Tax: {defaults.tax_percent}%" if defaults.apply_tax else "Tax: not applied")
        print("=" * 50)


if __name__ == "__main__":
    asyncio.run(create_default_settings())
