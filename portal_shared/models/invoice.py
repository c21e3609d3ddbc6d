"""Invoice model."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UpdatedAtMixin, new_id


class InvoiceStatus(str, Enum):
    """Invoice payment status."""

    UNPAID = "UNPAID"
    PAID = "PAID"
    PAST_DUE = "PAST_DUE"
    OVERDUE = "OVERDUE"  # Legacy spelling of PAST_DUE


class Invoice(UpdatedAtMixin, Base):
    """Invoice model - read by the dashboard, never mutated by the engine."""

    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Human-facing invoice number, e.g. "INV-2026-004"
    invoice_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), index=True
    )
    project_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(String(32), default=InvoiceStatus.UNPAID.value)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
