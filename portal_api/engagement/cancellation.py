"""Client cancellation and admin deletion of projects.

A client never deletes a project; it cancels it, which is a soft terminal
transition. How cancellation is recorded depends on the deployed schema, so it
degrades through three strategies, newest shape first:

1. ``status=CANCELLED`` plus ``cancelled_at``/``cancelled_by`` and a notes marker
2. ``status=CANCELLED`` plus the notes marker
3. the notes marker alone (schemas whose CHECK constraint rejects CANCELLED)

Strategies that the resolved ``SchemaCapabilities`` rule out are skipped. The
rest are tried in order; only schema-shape errors (missing column, CHECK
violation) move on to the next one. Each attempt is a single UPDATE, so a
failed attempt leaves nothing behind.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from portal_shared.contracts import EngagementEvent
from portal_shared.models import NotificationType, ProjectStatus
from portal_shared.notifications import emit_best_effort

from ..store import MissingColumnError, MissingTableError, Row, SchemaShapeError, StoreError
from .actor import Actor, require_actor
from .capabilities import SchemaCapabilities
from .context import EngineContext
from .errors import CancellationFailed, Forbidden, InvalidState, NotFound, PersistenceUnavailable
from .permissions import ensure_owner
from .records import DELIVERABLES, INVOICES, PROJECTS, load_project, surfaced_store_errors
from .status import append_cancellation_marker

logger = structlog.get_logger(__name__)

CANCELLED_BY_CLIENT_MESSAGE = "This project has been cancelled by the client."


@dataclass(frozen=True)
class CancellationStrategy:
    name: str
    sets_status: bool
    sets_audit: bool

    def applies_to(self, capabilities: SchemaCapabilities) -> bool:
        if self.sets_status and capabilities.accepts_cancelled_status is False:
            return False
        if self.sets_audit and capabilities.has_cancellation_audit is False:
            return False
        return True

    def changes(self, notes: str, actor: Actor, at: datetime) -> dict[str, Any]:
        values: dict[str, Any] = {"notes": notes}
        if self.sets_status:
            values["status"] = ProjectStatus.CANCELLED.value
        if self.sets_audit:
            values["cancelled_at"] = at
            values["cancelled_by"] = actor.user_id
        return values


CANCELLATION_STRATEGIES = (
    CancellationStrategy("status_with_audit", sets_status=True, sets_audit=True),
    CancellationStrategy("status_only", sets_status=True, sets_audit=False),
    CancellationStrategy("notes_marker", sets_status=False, sets_audit=False),
)


async def cancel_project(ctx: EngineContext, project_id: str, actor: Actor | None) -> Row:
    """Soft-cancel a project on behalf of the client that owns it.

    A project whose status is already CANCELLED is returned unchanged. On
    deployments that can only record the notes marker, every call appends
    another marker.

    Raises:
        Unauthorized: No actor
        Forbidden: Actor is not the owning client
        NotFound: Project does not exist
        CancellationFailed: The schema rejected every strategy
    """
    actor = require_actor(actor)
    if not actor.is_client:
        raise Forbidden("Forbidden: Only the owning client can cancel a project")

    project = await load_project(ctx, project_id)
    ensure_owner(actor, project.get("client_id"), "cancel")

    if project.get("status") == ProjectStatus.CANCELLED.value:
        logger.info("project_already_cancelled", project_id=project_id, actor_id=actor.user_id)
        return project

    at = ctx.clock()
    notes = append_cancellation_marker(project.get("notes"), at)
    updated = await _apply_first_supported(ctx, project_id, actor, notes, at)

    await emit_best_effort(
        ctx.events,
        EngagementEvent(
            notification_type=NotificationType.PROJECT_CANCELLED,
            project_id=project_id,
            message=CANCELLED_BY_CLIENT_MESSAGE,
            actor_id=actor.user_id,
            occurred_at=at,
        ),
    )
    return updated


async def _apply_first_supported(
    ctx: EngineContext, project_id: str, actor: Actor, notes: str, at: datetime
) -> Row:
    rejected: list[str] = []

    for strategy in CANCELLATION_STRATEGIES:
        if not strategy.applies_to(ctx.capabilities):
            logger.debug(
                "cancellation_strategy_skipped", project_id=project_id, strategy=strategy.name
            )
            continue

        try:
            changes = strategy.changes(notes, actor, at)
            updated = await ctx.store.update_row(PROJECTS, project_id, changes)
        except SchemaShapeError as e:
            logger.info(
                "cancellation_strategy_rejected",
                project_id=project_id,
                strategy=strategy.name,
                error_type=type(e).__name__,
                error=str(e),
            )
            rejected.append(f"{strategy.name}: {e}")
            continue
        except StoreError as e:
            raise PersistenceUnavailable(f"Failed to cancel project: {e}") from e

        if updated is None:
            raise NotFound("Project not found")

        logger.info(
            "project_cancelled",
            project_id=project_id,
            strategy=strategy.name,
            status=updated.get("status"),
            actor_id=actor.user_id,
        )
        return updated

    logger.error("project_cancellation_failed", project_id=project_id, rejected=rejected)
    raise CancellationFailed("Failed to cancel project: " + "; ".join(rejected))


async def delete_project(ctx: EngineContext, project_id: str, actor: Actor | None) -> None:
    """Hard-delete a project (admin only).

    Projects that already have invoices or deliverables are never physically
    deleted; they must be cancelled instead.

    Raises:
        Unauthorized: No actor
        Forbidden: Actor is not an admin
        NotFound: Project does not exist
        InvalidState: Project has invoices or deliverables
    """
    actor = require_actor(actor)
    if not actor.is_admin:
        raise Forbidden("Forbidden: Only admins can delete projects")

    await load_project(ctx, project_id)

    for table in (INVOICES, DELIVERABLES):
        if await _has_rows_for_project(ctx, table, project_id):
            raise InvalidState(
                "Project has invoices or deliverables and cannot be deleted; cancel it instead"
            )

    with surfaced_store_errors("delete project"):
        deleted = await ctx.store.delete_row(PROJECTS, project_id)
    if not deleted:
        raise NotFound("Project not found")

    logger.info("project_deleted", project_id=project_id, actor_id=actor.user_id)


async def _has_rows_for_project(ctx: EngineContext, table: str, project_id: str) -> bool:
    try:
        rows = await ctx.store.select_rows(
            table, columns=["id"], where={"project_id": project_id}, limit=1
        )
    except (MissingTableError, MissingColumnError):
        return False
    except StoreError as e:
        raise PersistenceUnavailable(f"Failed to delete project: {e}") from e
    return bool(rows)
