"""Deliverable model."""

from datetime import date
from enum import Enum

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UpdatedAtMixin, enum_check, new_id


class DeliverableStatus(str, Enum):
    """Client approval state of a deliverable."""

    AWAITING_APPROVAL = "AWAITING_APPROVAL"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


class Deliverable(UpdatedAtMixin, Base):
    """Deliverable model - client-facing output attached to a project."""

    __tablename__ = "project_deliverables"
    __table_args__ = (
        CheckConstraint(
            enum_check("status", [s.value for s in DeliverableStatus]),
            name="project_deliverables_status_check",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(64), default="Design")
    external_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    upload_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), default=DeliverableStatus.AWAITING_APPROVAL.value
    )
