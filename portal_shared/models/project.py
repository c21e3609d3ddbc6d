"""Project model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UpdatedAtMixin, enum_check, new_id


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    # Intake
    REQUEST_RECEIVED = "REQUEST_RECEIVED"

    # Active production
    CONFIRMED = "CONFIRMED"
    IN_PRODUCTION = "IN_PRODUCTION"
    POST_PRODUCTION = "POST_PRODUCTION"
    FINAL_REVIEW = "FINAL_REVIEW"

    # Terminal
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BudgetStatus(str, Enum):
    """Negotiation state of a client's requested budget."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    COUNTER_PROPOSED = "COUNTER_PROPOSED"
    REJECTED = "REJECTED"


class Project(UpdatedAtMixin, Base):
    """Project model - one client engagement."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            enum_check("status", [s.value for s in ProjectStatus]),
            name="projects_status_check",
        ),
        CheckConstraint(
            enum_check("budget_status", [s.value for s in BudgetStatus]),
            name="projects_budget_status_check",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(32), default=ProjectStatus.REQUEST_RECEIVED.value)

    event_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    event_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    creative_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    creative_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    slack_channel: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Aligned lists: index i of each list describes the same account manager
    account_manager_names: Mapped[list | None] = mapped_column(JSON, nullable=True)
    account_manager_emails: Mapped[list | None] = mapped_column(JSON, nullable=True)
    account_manager_phones: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Budget negotiation
    requested_budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    budget_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    proposed_budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    # Cancellation audit (absent on older deployments)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
