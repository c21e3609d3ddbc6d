"""Notification log models (append-only)."""

from enum import Enum

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id


class NotificationType(str, Enum):
    """Kinds of entries written to the notification logs."""

    PROJECT_BUDGET_PENDING = "PROJECT_BUDGET_PENDING"
    BUDGET_APPROVED = "BUDGET_APPROVED"
    BUDGET_REJECTED = "BUDGET_REJECTED"
    BUDGET_COUNTER_PROPOSED = "BUDGET_COUNTER_PROPOSED"
    BUDGET_COUNTER_ACCEPTED = "BUDGET_COUNTER_ACCEPTED"
    PROJECT_CANCELLED = "PROJECT_CANCELLED"

    # Deliverable review
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


class ProjectNotification(Base):
    """Project activity entry shown on the client dashboard."""

    __tablename__ = "project_notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    notification_type: Mapped[str] = mapped_column(String(64))
    message: Mapped[str] = mapped_column(Text)


class DeliverableNotification(Base):
    """Deliverable review entry for admins and account managers."""

    __tablename__ = "deliverable_notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    deliverable_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("project_deliverables.id", ondelete="CASCADE"), index=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    notification_type: Mapped[str] = mapped_column(String(64))
    message: Mapped[str] = mapped_column(Text)
