"""Budget negotiation state machine.

    PENDING ──APPROVE──────────▶ APPROVED          (status -> CONFIRMED)
       │  ──REJECT───────────▶ REJECTED          (status unchanged)
       └──COUNTER_PROPOSE───▶ COUNTER_PROPOSED
                                   │
                                   └──ACCEPT_COUNTER──▶ APPROVED  (status -> CONFIRMED)

APPROVE, REJECT and COUNTER_PROPOSE are admin actions; ACCEPT_COUNTER belongs
to the client that owns the project. Every other transition is rejected.

The budget fields and the project status are written in one UPDATE guarded by
the ``budget_status`` that was read, so two racing actions cannot both apply.
The notification that follows is best-effort.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

import structlog

from portal_shared.contracts import EngagementEvent
from portal_shared.models import BudgetStatus, NotificationType, ProjectStatus
from portal_shared.notifications import emit_best_effort

from ..store import Row
from .actor import Actor, Role, require_actor
from .context import EngineContext
from .errors import Forbidden, InvalidInput, InvalidState, NotFound
from .permissions import ensure_owner
from .records import (
    PROJECTS,
    format_amount,
    load_project,
    parse_amount,
    surfaced_store_errors,
)

logger = structlog.get_logger(__name__)


class BudgetAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    COUNTER_PROPOSE = "COUNTER_PROPOSE"
    ACCEPT_COUNTER = "ACCEPT_COUNTER"


# Budget states each action may start from
_ALLOWED_FROM: dict[BudgetAction, frozenset[str]] = {
    BudgetAction.APPROVE: frozenset({BudgetStatus.PENDING.value}),
    BudgetAction.REJECT: frozenset({BudgetStatus.PENDING.value}),
    BudgetAction.COUNTER_PROPOSE: frozenset({BudgetStatus.PENDING.value}),
    BudgetAction.ACCEPT_COUNTER: frozenset({BudgetStatus.COUNTER_PROPOSED.value}),
}

_ACTION_ROLE: dict[BudgetAction, Role] = {
    BudgetAction.APPROVE: Role.ADMIN,
    BudgetAction.REJECT: Role.ADMIN,
    BudgetAction.COUNTER_PROPOSE: Role.ADMIN,
    BudgetAction.ACCEPT_COUNTER: Role.CLIENT,
}


@dataclass(frozen=True)
class BudgetTransition:
    """Planned effect of a budget action: field changes plus its notification."""

    changes: dict[str, Any]
    notification_type: NotificationType
    message: str


def parse_budget_action(value: Any) -> BudgetAction:
    if isinstance(value, BudgetAction):
        return value
    try:
        return BudgetAction(str(value).strip().upper())
    except ValueError:
        raise InvalidInput("Invalid action") from None


def plan_budget_transition(
    project: Row, action: BudgetAction, proposed_budget: Decimal | None = None
) -> BudgetTransition:
    """Validate ``action`` against the project's budget state and plan its effect.

    Pure: reads the snapshot, writes nothing.

    Raises:
        InvalidState: The project has no budget request or the action is not
            allowed from the current budget status
        InvalidInput: COUNTER_PROPOSE without a proposed budget
    """
    current = project.get("budget_status")

    if action is BudgetAction.ACCEPT_COUNTER:
        if current != BudgetStatus.COUNTER_PROPOSED.value or project.get("proposed_budget") is None:
            raise InvalidState("No counter proposal to accept")
    elif current is None:
        raise InvalidState("Project has no budget request")
    elif current not in _ALLOWED_FROM[action]:
        raise InvalidState(f"Cannot {action.value} a budget that is {current}")

    requested = project.get("requested_budget")

    if action is BudgetAction.APPROVE:
        return BudgetTransition(
            changes={
                "budget_status": BudgetStatus.APPROVED.value,
                "status": ProjectStatus.CONFIRMED.value,
            },
            notification_type=NotificationType.BUDGET_APPROVED,
            message=(
                f"Your budget request of ${format_amount(requested)} has been approved. "
                "The project is now confirmed."
            ),
        )

    if action is BudgetAction.REJECT:
        return BudgetTransition(
            changes={"budget_status": BudgetStatus.REJECTED.value},
            notification_type=NotificationType.BUDGET_REJECTED,
            message=(
                f"Your budget request of ${format_amount(requested)} has been rejected. "
                "Please contact us to discuss."
            ),
        )

    if action is BudgetAction.COUNTER_PROPOSE:
        if proposed_budget is None:
            raise InvalidInput("Valid proposed budget required")
        return BudgetTransition(
            changes={
                "budget_status": BudgetStatus.COUNTER_PROPOSED.value,
                "proposed_budget": proposed_budget,
            },
            notification_type=NotificationType.BUDGET_COUNTER_PROPOSED,
            message=(
                f"We've sent you a counter proposal of ${format_amount(proposed_budget)} "
                "for this project. Please review and accept or contact us to discuss."
            ),
        )

    accepted = project["proposed_budget"]
    return BudgetTransition(
        changes={
            "budget_status": BudgetStatus.APPROVED.value,
            "requested_budget": accepted,
            "status": ProjectStatus.CONFIRMED.value,
        },
        notification_type=NotificationType.BUDGET_COUNTER_ACCEPTED,
        message=(
            "The counter proposal has been accepted. The project is now confirmed "
            f"with a budget of ${format_amount(accepted)}."
        ),
    )


async def set_budget_action(
    ctx: EngineContext,
    project_id: str,
    actor: Actor | None,
    action: BudgetAction | str,
    proposed_budget: Any = None,
) -> Row:
    """Apply a budget negotiation action and return the updated project.

    Raises:
        Unauthorized: No actor
        Forbidden: Wrong role for the action, or a client acting on a project
            it does not own
        InvalidInput: Unknown action or non-positive counter proposal
        NotFound: Project does not exist
        InvalidState: Action not allowed from the current budget status, or
            the budget status changed underneath the action
    """
    actor = require_actor(actor)
    action = parse_budget_action(action)

    if actor.role is not _ACTION_ROLE[action]:
        raise Forbidden(f"Forbidden: {action.value} is not available to this account")

    amount = None
    if action is BudgetAction.COUNTER_PROPOSE:
        if proposed_budget is None:
            raise InvalidInput("Valid proposed budget required")
        amount = parse_amount(proposed_budget, "proposed budget")

    project = await load_project(ctx, project_id)
    if actor.is_client:
        ensure_owner(actor, project.get("client_id"), "accept counter proposals on")

    transition = plan_budget_transition(project, action, amount)

    with surfaced_store_errors("update budget"):
        updated = await ctx.store.update_row(
            PROJECTS,
            project_id,
            transition.changes,
            expect={"budget_status": project.get("budget_status")},
        )
        if updated is None:
            if await ctx.store.get_row(PROJECTS, project_id) is None:
                raise NotFound("Project not found")
            raise InvalidState(
                "Budget status changed while the action was applied; reload and retry"
            )

    logger.info(
        "budget_action_applied",
        project_id=project_id,
        action=action.value,
        from_budget_status=project.get("budget_status"),
        budget_status=updated.get("budget_status"),
        status=updated.get("status"),
        actor_id=actor.user_id,
    )

    await emit_best_effort(
        ctx.events,
        EngagementEvent(
            notification_type=transition.notification_type,
            project_id=project_id,
            message=transition.message,
            actor_id=actor.user_id,
            occurred_at=ctx.clock(),
        ),
    )
    return updated
