"""Project deliverables router."""

from fastapi import APIRouter, Depends, status

from portal_shared.contracts.dto import DeliverableDTO

from ..dependencies import get_actor, get_engine_context
from ..engagement import (
    Actor,
    EngineContext,
    create_deliverable,
    delete_deliverable,
    list_deliverables,
    update_deliverable,
)
from ..schemas import DeliverableCreate, DeliverableUpdate

router = APIRouter(prefix="/projects/{project_id}/deliverables", tags=["deliverables"])


@router.get("/", response_model=list[DeliverableDTO])
async def list_deliverables_endpoint(
    project_id: str,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> list[DeliverableDTO]:
    """List deliverables of a project, newest upload first."""
    rows = await list_deliverables(ctx, project_id, actor)
    return [DeliverableDTO.model_validate(row) for row in rows]


@router.post("/", response_model=DeliverableDTO, status_code=status.HTTP_201_CREATED)
async def create_deliverable_endpoint(
    project_id: str,
    deliverable_in: DeliverableCreate,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> DeliverableDTO:
    """Add a deliverable awaiting client approval."""
    row = await create_deliverable(
        ctx, project_id, actor, deliverable_in.model_dump(exclude_none=True)
    )
    return DeliverableDTO.model_validate(row)


@router.put("/{deliverable_id}", response_model=DeliverableDTO)
async def update_deliverable_endpoint(
    project_id: str,
    deliverable_id: str,
    deliverable_in: DeliverableUpdate,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> DeliverableDTO:
    """Review (client) or edit (admin) a deliverable."""
    row = await update_deliverable(
        ctx,
        deliverable_id,
        actor,
        deliverable_in.model_dump(exclude_unset=True),
        project_id=project_id,
    )
    return DeliverableDTO.model_validate(row)


@router.delete("/{deliverable_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deliverable_endpoint(
    project_id: str,
    deliverable_id: str,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> None:
    """Delete a deliverable (admin only)."""
    await delete_deliverable(ctx, deliverable_id, actor)
