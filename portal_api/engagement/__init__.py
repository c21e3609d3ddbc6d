"""Engagement lifecycle engine.

Project status, budget negotiation, client cancellation, deliverable review
and the client dashboard. Operations take an ``EngineContext`` and an
``Actor`` and raise ``EngagementError`` subclasses.
"""

from .actor import Actor, Role
from .budget import BudgetAction, plan_budget_transition, set_budget_action
from .cancellation import cancel_project, delete_project
from .capabilities import SchemaCapabilities, detect_capabilities, resolve_capabilities
from .context import EngineContext
from .dashboard import get_client_dashboard_summary, summarize_dashboard
from .deliverables import (
    create_deliverable,
    delete_deliverable,
    list_deliverables,
    set_deliverable_status,
    update_deliverable,
)
from .errors import (
    CancellationFailed,
    EngagementError,
    Forbidden,
    InvalidInput,
    InvalidState,
    NotFound,
    PersistenceUnavailable,
    Unauthorized,
)
from .projects import (
    create_project,
    get_project,
    project_view,
    set_client_annual_budget,
    update_project,
)
from .status import display_status, is_cancelled, normalize_status

__all__ = [
    "Actor",
    "BudgetAction",
    "CancellationFailed",
    "EngagementError",
    "EngineContext",
    "Forbidden",
    "InvalidInput",
    "InvalidState",
    "NotFound",
    "PersistenceUnavailable",
    "Role",
    "SchemaCapabilities",
    "Unauthorized",
    "cancel_project",
    "create_deliverable",
    "create_project",
    "delete_deliverable",
    "delete_project",
    "detect_capabilities",
    "display_status",
    "get_client_dashboard_summary",
    "get_project",
    "is_cancelled",
    "list_deliverables",
    "normalize_status",
    "plan_budget_transition",
    "project_view",
    "resolve_capabilities",
    "set_budget_action",
    "set_client_annual_budget",
    "set_deliverable_status",
    "summarize_dashboard",
    "update_deliverable",
    "update_project",
]
