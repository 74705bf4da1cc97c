"""Translation of driver-level database failures into domain errors."""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.modules.allowances.exceptions import StoreUnavailableError

STORE_ERRORS = (OperationalError, InterfaceError)


def unavailable(exc: Exception) -> StoreUnavailableError:
    return StoreUnavailableError(f"Store unavailable: {exc}")


async def execute(session: AsyncSession, stmt: Any):
    try:
        return await session.execute(stmt)
    except STORE_ERRORS as exc:
        raise unavailable(exc) from exc


async def commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except STORE_ERRORS as exc:
        raise unavailable(exc) from exc


__all__ = ["STORE_ERRORS", "commit", "execute", "unavailable"]
