"""Client dashboard summary contract.

Field names are snake_case in Python and camelCase on the wire
(``activeProjectsCount``, ``recentInvoices``, ...).
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .ids import RowId
from .money import Money
from .project import DisplayStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecentProject(_CamelModel):
    id: RowId
    title: str
    status: str
    display_status: DisplayStatus
    event_date: date | None = None


class RecentInvoice(_CamelModel):
    id: RowId
    invoice_number: str
    amount: Money
    status: str
    due_date: date | None = None


class ActivityEntry(_CamelModel):
    id: RowId
    message: str
    notification_type: str
    created_at: datetime | None = None


class ClientDashboardSummary(_CamelModel):
    """Read-only per-client summary; every field has its zero value."""

    active_projects_count: int = 0
    project_requests_count: int = 0
    completed_projects_count: int = 0
    # Mirrors active_projects_count until deliverable-level counting exists
    pending_deliverables_count: int = 0
    invoices_due_count: int = 0
    invoices_due_total: Money = Decimal("0")
    spent_so_far: Money = Decimal("0")
    annual_budget: Money | None = None
    remaining_budget: Money | None = None
    recent_projects: list[RecentProject] = Field(default_factory=list)
    recent_invoices: list[RecentInvoice] = Field(default_factory=list)
    recent_activity: list[ActivityEntry] = Field(default_factory=list)
