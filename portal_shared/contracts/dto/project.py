from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .ids import RowId
from .money import Money


class DisplayStatus(str, Enum):
    """User-facing project status."""

    REQUESTED = "Requested"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed/Delivered"
    CANCELLED = "Cancelled"


class ProjectDTO(BaseModel):
    """Project response.

    Built from raw store rows, so every column that older schemas may lack
    has a default.
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: RowId
    client_id: RowId
    title: str
    status: str
    display_status: DisplayStatus
    event_date: date | None = None
    event_time: str | None = None
    location: str | None = None
    service_type: str | None = None
    notes: str | None = None
    creative_name: str | None = None
    creative_phone: str | None = None
    slack_channel: str | None = None
    account_manager_names: list[str] | None = None
    account_manager_emails: list[str] | None = None
    account_manager_phones: list[str] | None = None
    requested_budget: Money | None = None
    budget_status: str | None = None
    proposed_budget: Money | None = None
    cancelled_at: datetime | None = None
    cancelled_by: RowId | None = None
    created_at: datetime | None = None
