"""Client account router."""

from fastapi import APIRouter, Depends

from ..dependencies import get_actor, get_engine_context
from ..engagement import Actor, EngineContext, set_client_annual_budget
from ..schemas import AnnualBudgetResponse, AnnualBudgetUpdate

router = APIRouter(prefix="/clients", tags=["clients"])


@router.put("/budget", response_model=AnnualBudgetResponse)
async def update_annual_budget(
    request: AnnualBudgetUpdate,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> AnnualBudgetResponse:
    """Set the caller's annual budget."""
    client = await set_client_annual_budget(ctx, actor, request.client_id, request.annual_budget)
    return AnnualBudgetResponse(annual_budget=client["annual_budget"])
