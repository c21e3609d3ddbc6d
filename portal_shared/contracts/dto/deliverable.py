from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from .ids import RowId


class DeliverableDTO(BaseModel):
    """Deliverable response."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: RowId
    project_id: RowId
    name: str
    type: str | None = None
    external_link: str | None = None
    upload_date: date | None = None
    status: str
    created_at: datetime | None = None
