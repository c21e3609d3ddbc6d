"""Database engine and row store handling.

Uses service-specific config with fail-fast validation.
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from portal_shared.models import Base

from .config import get_settings
from .store import RowStore


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide async engine.

    Fails fast with a ValidationError if DATABASE_URL is not set.
    """
    settings = get_settings()
    return create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)


def get_row_store() -> RowStore:
    """Get a row store bound to the process-wide engine."""
    return RowStore(get_engine())


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table in its newest shape (no-op for existing tables)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
