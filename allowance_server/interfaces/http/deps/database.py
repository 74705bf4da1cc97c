"""Database session dependency."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from allowance_server.infrastructure.database.session import get_session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session per request; handlers commit explicitly."""
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


__all__ = ["get_db_session"]
