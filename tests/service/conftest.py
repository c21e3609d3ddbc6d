"""SQLite-backed fixtures exercising the real row store and driver errors."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from portal_api.database import create_schema
from portal_api.engagement import EngineContext, SchemaCapabilities
from portal_api.store import RowStore
from portal_shared.notifications import StoreEventSink

LEGACY_STATUSES = (
    "REQUEST_RECEIVED",
    "CONFIRMED",
    "IN_PRODUCTION",
    "POST_PRODUCTION",
    "FINAL_REVIEW",
    "COMPLETED",
)
_STATUS_LIST = ", ".join(f"'{status}'" for status in LEGACY_STATUSES)

# Oldest deployed shape: no audit or budget columns, no deliverables or
# notification tables, and a status CHECK that predates CANCELLED.
LEGACY_SCHEMA = [
    """
    CREATE TABLE clients (
        id VARCHAR(36) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        email VARCHAR(255),
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    f"""
    CREATE TABLE projects (
        id VARCHAR(36) PRIMARY KEY,
        client_id VARCHAR(36) NOT NULL,
        title VARCHAR(255) NOT NULL,
        status VARCHAR(32) NOT NULL,
        event_date DATE,
        location VARCHAR(255),
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        CONSTRAINT projects_status_check CHECK (status IN ({_STATUS_LIST}))
    )
    """,
    """
    CREATE TABLE invoices (
        id VARCHAR(36) PRIMARY KEY,
        client_id VARCHAR(36) NOT NULL,
        project_id VARCHAR(36),
        amount NUMERIC(14, 2) NOT NULL,
        status VARCHAR(16) NOT NULL,
        due_date DATE,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def _engine(tmp_path, name: str) -> AsyncEngine:
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / name}")


@pytest.fixture
async def modern_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = _engine(tmp_path, "modern.db")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def legacy_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = _engine(tmp_path, "legacy.db")
    async with engine.begin() as conn:
        for statement in LEGACY_SCHEMA:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()


@pytest.fixture
def context_for(clock):
    """Build an engine context over a real row store."""

    def _make(engine: AsyncEngine, capabilities: SchemaCapabilities | None = None):
        store = RowStore(engine)
        return EngineContext(
            store=store,
            events=StoreEventSink(store),
            capabilities=capabilities or SchemaCapabilities(),
            clock=clock,
        )

    return _make
