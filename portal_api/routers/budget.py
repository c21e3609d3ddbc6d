"""Budget negotiation router."""

from fastapi import APIRouter, Depends

from ..dependencies import get_actor, get_engine_context
from ..engagement import Actor, EngineContext, project_view, set_budget_action
from ..schemas import BudgetActionRequest, BudgetActionResponse

router = APIRouter(prefix="/projects", tags=["budget"])


@router.put("/{project_id}/budget", response_model=BudgetActionResponse)
async def apply_budget_action(
    project_id: str,
    request: BudgetActionRequest,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> BudgetActionResponse:
    """Approve, reject or counter-propose a budget (admin), or accept a counter (client)."""
    project = await set_budget_action(
        ctx, project_id, actor, request.action, request.proposed_budget
    )
    return BudgetActionResponse(project=project_view(project))
