"""Project request schemas.

Partial updates are applied with ``model_dump(exclude_unset=True)`` so that a
field sent as ``null`` clears the column while an omitted field is left alone.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class ProjectFields(BaseModel):
    """Editable project details."""

    title: str | None = None
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


class ProjectCreate(ProjectFields):
    """Schema for creating a project (client request or admin entry)."""

    title: str
    client_id: str | None = None
    status: str | None = None
    requested_budget: Decimal | None = None


class ProjectUpdate(ProjectFields):
    """Schema for updating a project."""

    client_id: str | None = None
    status: str | None = None
