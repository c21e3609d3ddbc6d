"""Deliverable approval workflow.

    AWAITING_APPROVAL ──▶ APPROVED
                      └─▶ CHANGES_REQUESTED

The owning client reviews a deliverable by moving it to APPROVED or
CHANGES_REQUESTED and may not touch any other field. Admins create, edit,
delete and reset deliverables freely.
"""

from typing import Any

import structlog

from portal_shared.contracts import EngagementEvent
from portal_shared.models import DeliverableStatus, NotificationType
from portal_shared.notifications import emit_best_effort

from ..store import MissingTableError, Row, StoreError
from .actor import Actor, Role, require_actor
from .context import EngineContext
from .errors import Forbidden, InvalidInput, NotFound, PersistenceUnavailable
from .permissions import Entity, ensure_owner, ensure_writable
from .records import DELIVERABLES, load_deliverable, load_project, surfaced_store_errors

logger = structlog.get_logger(__name__)

CLIENT_REVIEW_STATUSES = frozenset(
    {DeliverableStatus.APPROVED.value, DeliverableStatus.CHANGES_REQUESTED.value}
)

DEFAULT_DELIVERABLE_TYPE = "Design"


def _review_event(
    deliverable: Row, status: str, actor: Actor, ctx: EngineContext
) -> EngagementEvent:
    name = deliverable.get("name") or ""
    if status == DeliverableStatus.APPROVED.value:
        notification_type = NotificationType.APPROVED
        message = f'Deliverable "{name}" has been approved by the client.'
    else:
        notification_type = NotificationType.CHANGES_REQUESTED
        message = f'Client has requested changes for deliverable "{name}".'
    return EngagementEvent(
        notification_type=notification_type,
        project_id=deliverable["project_id"],
        deliverable_id=deliverable["id"],
        message=message,
        actor_id=actor.user_id,
        occurred_at=ctx.clock(),
    )


def _check_status_value(actor: Actor, status: Any) -> str:
    value = status.value if isinstance(status, DeliverableStatus) else str(status or "")
    if actor.is_client:
        if value not in CLIENT_REVIEW_STATUSES:
            raise Forbidden("Forbidden: Invalid status change")
        return value
    if value not in DeliverableStatus.__members__:
        raise InvalidInput(f"Invalid deliverable status: {status!r}")
    return value


async def update_deliverable(
    ctx: EngineContext,
    deliverable_id: str,
    actor: Actor | None,
    changes: dict[str, Any],
    *,
    project_id: str | None = None,
) -> Row:
    """Update a deliverable.

    Clients may only send ``status`` with a review outcome, and only for
    deliverables of their own projects. A successful client review emits a
    notification naming the deliverable.
    """
    actor = require_actor(actor)
    if actor.role not in (Role.ADMIN, Role.CLIENT):
        raise Forbidden("Forbidden")

    ensure_writable(Entity.DELIVERABLE, actor, changes)
    changes = dict(changes)
    if "status" in changes:
        changes["status"] = _check_status_value(actor, changes["status"])

    deliverable = await load_deliverable(ctx, deliverable_id, project_id)
    project = await load_project(ctx, deliverable["project_id"])
    if actor.is_client:
        ensure_owner(actor, project.get("client_id"), "review deliverables of")

    if not changes:
        return deliverable

    with surfaced_store_errors("update deliverable"):
        updated = await ctx.store.update_row(DELIVERABLES, deliverable_id, changes)
    if updated is None:
        raise NotFound("Deliverable not found")

    logger.info(
        "deliverable_updated",
        deliverable_id=deliverable_id,
        project_id=deliverable["project_id"],
        fields=sorted(changes),
        status=updated.get("status"),
        actor_role=actor.role.value,
    )

    if actor.is_client and "status" in changes:
        event = _review_event(deliverable, changes["status"], actor, ctx)
        await emit_best_effort(ctx.events, event)
    return updated


async def set_deliverable_status(
    ctx: EngineContext,
    deliverable_id: str,
    actor: Actor | None,
    status: str,
    *,
    project_id: str | None = None,
) -> Row:
    """Move a deliverable to ``status`` (client review or admin reset)."""
    return await update_deliverable(
        ctx, deliverable_id, actor, {"status": status}, project_id=project_id
    )


async def create_deliverable(
    ctx: EngineContext, project_id: str, actor: Actor | None, fields: dict[str, Any]
) -> Row:
    actor = require_actor(actor)
    if not actor.is_admin:
        raise Forbidden("Forbidden: Only admins can create deliverables")
    ensure_writable(Entity.DELIVERABLE_INTAKE, actor, fields)

    name = (fields.get("name") or "").strip()
    if not name:
        raise InvalidInput("Missing required field: name")

    await load_project(ctx, project_id)

    now = ctx.clock()
    values = {
        "project_id": project_id,
        "name": name,
        "type": fields.get("type") or DEFAULT_DELIVERABLE_TYPE,
        "external_link": fields.get("external_link") or None,
        "upload_date": fields.get("upload_date") or now.date(),
        "status": DeliverableStatus.AWAITING_APPROVAL.value,
        "created_at": now,
    }
    with surfaced_store_errors("create deliverable"):
        deliverable = await ctx.store.insert_row(DELIVERABLES, values)

    logger.info("deliverable_created", deliverable_id=deliverable["id"], project_id=project_id)
    return deliverable


async def list_deliverables(ctx: EngineContext, project_id: str, actor: Actor | None) -> list[Row]:
    """Deliverables of a project, newest upload first.

    Returns an empty list on deployments without the deliverables table.
    """
    actor = require_actor(actor)
    if actor.is_client:
        project = await load_project(ctx, project_id)
        ensure_owner(actor, project.get("client_id"), "view")

    try:
        return await ctx.store.select_rows(
            DELIVERABLES,
            where={"project_id": project_id},
            order_by="upload_date",
            descending=True,
        )
    except MissingTableError:
        logger.warning("deliverables_table_missing", project_id=project_id)
        return []
    except StoreError as e:
        raise PersistenceUnavailable(f"Failed to list deliverables: {e}") from e


async def delete_deliverable(ctx: EngineContext, deliverable_id: str, actor: Actor | None) -> None:
    actor = require_actor(actor)
    if not actor.is_admin:
        raise Forbidden("Forbidden: Only admins can delete deliverables")

    with surfaced_store_errors("delete deliverable"):
        deleted = await ctx.store.delete_row(DELIVERABLES, deliverable_id)
    if not deleted:
        raise NotFound("Deliverable not found")

    logger.info("deliverable_deleted", deliverable_id=deliverable_id)
