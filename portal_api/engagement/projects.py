"""Project intake, editing and the client's annual budget."""

from typing import Any

import structlog

from portal_shared.contracts import EngagementEvent
from portal_shared.contracts.dto import ProjectDTO
from portal_shared.models import BudgetStatus, NotificationType, ProjectStatus
from portal_shared.notifications import emit_best_effort

from ..store import MissingColumnError, Row, StoreError
from .actor import Actor, Role, require_actor
from .context import EngineContext
from .errors import Forbidden, InvalidInput, NotFound, PersistenceUnavailable
from .permissions import Entity, ensure_client_account, ensure_owner, ensure_writable
from .records import (
    CLIENTS,
    PROJECTS,
    format_amount,
    load_project,
    parse_amount,
    surfaced_store_errors,
)
from .status import display_status, normalize_status

logger = structlog.get_logger(__name__)


def project_view(row: Row) -> ProjectDTO:
    """Project row as returned to callers, with its derived display status."""
    return ProjectDTO.model_validate({**row, "display_status": display_status(row)})


async def get_project(ctx: EngineContext, project_id: str, actor: Actor | None) -> Row:
    actor = require_actor(actor)
    project = await load_project(ctx, project_id)
    if actor.is_client:
        ensure_owner(actor, project.get("client_id"), "view")
    return project


async def create_project(ctx: EngineContext, actor: Actor | None, fields: dict[str, Any]) -> Row:
    """Create a project.

    A client creates a *request*: status is forced to REQUEST_RECEIVED, the
    owning client is the caller's, and a requested budget starts negotiation in
    PENDING. An admin creates a project directly for any client with an
    explicit status.
    """
    actor = require_actor(actor)
    fields = dict(fields)

    if actor.role is Role.CLIENT:
        client_id = ensure_client_account(actor)
        if fields.get("client_id") not in (None, client_id):
            raise Forbidden("Forbidden: Clients cannot create projects for another client")
        fields.pop("client_id", None)
        fields.pop("status", None)
        ensure_writable(Entity.PROJECT_INTAKE, actor, fields)
        values = {**fields, "client_id": client_id, "status": ProjectStatus.REQUEST_RECEIVED.value}
    elif actor.role is Role.ADMIN:
        ensure_writable(Entity.PROJECT_INTAKE, actor, fields)
        for required in ("client_id", "status"):
            if not str(fields.get(required) or "").strip():
                raise InvalidInput(f"Missing required field: {required}")
        values = {**fields, "status": normalize_status(fields["status"]).value}
    else:
        raise Forbidden("Forbidden")

    title = str(values.get("title") or "").strip()
    if not title:
        raise InvalidInput("Missing required field: title")
    values["title"] = title

    budget_fields: dict[str, Any] = {}
    requested = values.pop("requested_budget", None)
    if requested is not None:
        budget_fields = {
            "requested_budget": parse_amount(requested, "requested budget"),
            "budget_status": BudgetStatus.PENDING.value,
        }

    values["created_at"] = ctx.clock()
    project = await _insert_project(ctx, values, budget_fields)

    logger.info(
        "project_created",
        project_id=project["id"],
        client_id=project.get("client_id"),
        status=project.get("status"),
        budget_status=project.get("budget_status"),
        actor_role=actor.role.value,
    )

    if project.get("budget_status") == BudgetStatus.PENDING.value:
        await emit_best_effort(
            ctx.events,
            EngagementEvent(
                notification_type=NotificationType.PROJECT_BUDGET_PENDING,
                project_id=project["id"],
                message=(
                    f'New project "{title}" submitted with a budget request of '
                    f"${format_amount(budget_fields['requested_budget'])}."
                ),
                actor_id=actor.user_id,
                occurred_at=values["created_at"],
            ),
        )
    return project


async def _insert_project(
    ctx: EngineContext, values: dict[str, Any], budget_fields: dict[str, Any]
) -> Row:
    """Insert with budget fields when the schema has them, else without."""
    if budget_fields and ctx.capabilities.has_budget_columns is not False:
        try:
            return await ctx.store.insert_row(PROJECTS, {**values, **budget_fields})
        except MissingColumnError as e:
            logger.warning("budget_columns_missing_retrying_without", error=str(e))
        except StoreError as e:
            raise PersistenceUnavailable(f"Failed to create project: {e}") from e

    with surfaced_store_errors("create project"):
        return await ctx.store.insert_row(PROJECTS, values)


async def update_project(
    ctx: EngineContext, project_id: str, actor: Actor | None, changes: dict[str, Any]
) -> Row:
    """Partial update of project fields, gated by the field-permission table.

    Clients may edit the details of their own projects but not the status, the
    owning client or the account managers. Budget fields are never writable
    here; they move through the budget negotiation.
    """
    actor = require_actor(actor)
    if actor.role not in (Role.ADMIN, Role.CLIENT):
        raise Forbidden("Forbidden")

    project = await load_project(ctx, project_id)
    changes = dict(changes)
    if actor.is_client:
        ensure_owner(actor, project.get("client_id"), "edit")
        if changes.get("client_id") == project.get("client_id"):
            changes.pop("client_id")

    ensure_writable(Entity.PROJECT, actor, changes)

    if "status" in changes:
        changes["status"] = normalize_status(changes["status"]).value
    if "title" in changes:
        changes["title"] = str(changes["title"] or "").strip()
        if not changes["title"]:
            raise InvalidInput("Title cannot be empty")
    if "client_id" in changes and not changes["client_id"]:
        raise InvalidInput("client_id cannot be empty")

    if not changes:
        return project

    with surfaced_store_errors("update project"):
        updated = await ctx.store.update_row(PROJECTS, project_id, changes)
    if updated is None:
        raise NotFound("Project not found")

    logger.info(
        "project_updated",
        project_id=project_id,
        fields=sorted(changes),
        status=updated.get("status"),
        actor_role=actor.role.value,
    )
    return updated


async def set_client_annual_budget(
    ctx: EngineContext, actor: Actor | None, client_id: str, annual_budget: Any
) -> Row:
    """Set the annual budget of the caller's own client record."""
    actor = require_actor(actor)
    if not actor.is_client:
        raise Forbidden("Forbidden: Only clients can set their annual budget")
    if ensure_client_account(actor) != client_id:
        raise Forbidden("Forbidden: You can only update your own budget")
    ensure_writable(Entity.CLIENT, actor, ["annual_budget"])

    if annual_budget is None:
        raise InvalidInput("Invalid budget value")
    amount = parse_amount(annual_budget, "budget value", allow_zero=True)

    try:
        updated = await ctx.store.update_row(CLIENTS, client_id, {"annual_budget": amount})
    except MissingColumnError as e:
        raise PersistenceUnavailable(
            "The annual_budget column doesn't exist in the database; "
            "run the client budget migration"
        ) from e
    except StoreError as e:
        raise PersistenceUnavailable(f"Failed to update budget: {e}") from e
    if updated is None:
        raise NotFound("Client not found")

    logger.info("client_annual_budget_set", client_id=client_id, annual_budget=str(amount))
    return updated
