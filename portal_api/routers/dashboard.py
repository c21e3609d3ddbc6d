"""Client dashboard router."""

from fastapi import APIRouter, Depends

from portal_shared.contracts.dto import ClientDashboardSummary

from ..dependencies import get_actor, get_engine_context
from ..engagement import Actor, EngineContext, get_client_dashboard_summary
from ..engagement.actor import require_actor
from ..engagement.permissions import ensure_can_view_client, ensure_client_account

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=ClientDashboardSummary)
async def my_dashboard(
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> ClientDashboardSummary:
    """Dashboard of the caller's own client."""
    client_id = ensure_client_account(require_actor(actor))
    return await get_client_dashboard_summary(ctx, client_id)


@router.get("/clients/{client_id}/dashboard", response_model=ClientDashboardSummary)
async def client_dashboard(
    client_id: str,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> ClientDashboardSummary:
    """Dashboard of any client (admin) or of the caller's client."""
    ensure_can_view_client(require_actor(actor), client_id)
    return await get_client_dashboard_summary(ctx, client_id)
