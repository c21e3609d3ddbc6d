"""Projects router."""

from typing import Any

from fastapi import APIRouter, Depends, status

from portal_shared.contracts.dto import ProjectDTO

from ..dependencies import get_actor, get_engine_context
from ..engagement import (
    Actor,
    EngineContext,
    cancel_project,
    create_project,
    delete_project,
    get_project,
    project_view,
    update_project,
)
from ..schemas import ProjectCreate, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=ProjectDTO, status_code=status.HTTP_201_CREATED)
async def create_project_endpoint(
    project_in: ProjectCreate,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> ProjectDTO:
    """Create a project (client request or admin entry)."""
    project = await create_project(ctx, actor, project_in.model_dump(exclude_none=True))
    return project_view(project)


@router.get("/{project_id}", response_model=ProjectDTO)
async def get_project_endpoint(
    project_id: str,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> ProjectDTO:
    """Get project by ID."""
    return project_view(await get_project(ctx, project_id, actor))


@router.patch("/{project_id}", response_model=ProjectDTO)
async def update_project_endpoint(
    project_id: str,
    project_in: ProjectUpdate,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> ProjectDTO:
    """Update project fields allowed for the caller's role."""
    changes = project_in.model_dump(exclude_unset=True)
    project = await update_project(ctx, project_id, actor, changes)
    return project_view(project)


@router.delete("/{project_id}")
async def delete_project_endpoint(
    project_id: str,
    actor: Actor | None = Depends(get_actor),
    ctx: EngineContext = Depends(get_engine_context),
) -> dict[str, Any]:
    """Cancel (client) or delete (admin) a project."""
    if actor is not None and actor.is_client:
        project = await cancel_project(ctx, project_id, actor)
        return {
            "success": True,
            "cancelled": True,
            "project": project_view(project).model_dump(mode="json"),
        }

    await delete_project(ctx, project_id, actor)
    return {"success": True, "deleted": True}
