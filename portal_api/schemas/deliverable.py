"""Deliverable request schemas."""

from datetime import date

from pydantic import BaseModel


class DeliverableCreate(BaseModel):
    """Schema for creating a deliverable."""

    name: str
    type: str | None = None
    external_link: str | None = None
    upload_date: date | None = None


class DeliverableUpdate(BaseModel):
    """Schema for updating a deliverable.

    Clients may only send ``status``; everything else is admin-only.
    """

    name: str | None = None
    type: str | None = None
    external_link: str | None = None
    upload_date: date | None = None
    status: str | None = None
