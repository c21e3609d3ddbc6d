"""Client model."""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UpdatedAtMixin, new_id


class Client(UpdatedAtMixin, Base):
    """Client model - the agency customer owning projects and invoices."""

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Set by the owning client; only read by the dashboard
    annual_budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
