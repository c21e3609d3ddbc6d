"""FastAPI dependencies for actor resolution and the engine context."""

from fastapi import Depends, Header, Request

from portal_shared.notifications import CompositeEventSink, LoggingEventSink, StoreEventSink

from .config import Settings, get_settings
from .database import get_row_store
from .engagement import Actor, EngineContext, SchemaCapabilities
from .store import RowStore


async def get_actor(
    x_user_id: str | None = Header(default=None, alias="X-User-ID"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
    x_client_id: str | None = Header(default=None, alias="X-Client-ID"),
) -> Actor | None:
    """Resolve the caller from headers set by the auth gateway.

    Returns None for anonymous requests; the engine answers those with 401.
    """
    if not x_user_id:
        return None
    return Actor.from_claims(x_user_id, x_user_role, x_client_id)


def get_capabilities(request: Request) -> SchemaCapabilities:
    """Capabilities resolved at startup (unknown if startup skipped detection)."""
    return getattr(request.app.state, "capabilities", None) or SchemaCapabilities()


async def get_engine_context(
    store: RowStore = Depends(get_row_store),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
    settings: Settings = Depends(get_settings),
) -> EngineContext:
    """Per-request engine context; events are persisted and logged."""
    return EngineContext(
        store=store,
        events=CompositeEventSink(StoreEventSink(store), LoggingEventSink()),
        capabilities=capabilities,
        recent_projects_limit=settings.dashboard_recent_projects,
        recent_invoices_limit=settings.dashboard_recent_invoices,
        recent_activity_limit=settings.dashboard_recent_activity,
    )
