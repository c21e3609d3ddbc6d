"""Record loading and store-error translation shared by the engine modules."""

from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Any

from ..store import ConstraintViolationError, Row, StoreError
from .context import EngineContext
from .errors import InvalidInput, NotFound, PersistenceUnavailable

PROJECTS = "projects"
DELIVERABLES = "project_deliverables"
CLIENTS = "clients"
INVOICES = "invoices"
PROJECT_NOTIFICATIONS = "project_notifications"


@contextmanager
def surfaced_store_errors(operation: str) -> Iterator[None]:
    """Surface store failures of a write path as engine errors."""
    try:
        yield
    except ConstraintViolationError as e:
        raise InvalidInput(f"Failed to {operation}: value rejected by the database") from e
    except StoreError as e:
        raise PersistenceUnavailable(f"Failed to {operation}: {e}") from e


async def load_project(ctx: EngineContext, project_id: str) -> Row:
    with surfaced_store_errors("load project"):
        project = await ctx.store.get_row(PROJECTS, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


async def load_deliverable(
    ctx: EngineContext, deliverable_id: str, project_id: str | None = None
) -> Row:
    with surfaced_store_errors("load deliverable"):
        deliverable = await ctx.store.get_row(DELIVERABLES, deliverable_id)
    if deliverable is None or (project_id is not None and deliverable["project_id"] != project_id):
        raise NotFound("Deliverable not found")
    return deliverable


def parse_amount(value: Any, field: str, *, allow_zero: bool = False) -> Decimal:
    """Parse a money amount; positive (or non-negative) and finite."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid {field}: {value!r}") from None
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidInput(f"Invalid {field}: {value!r}")
    return amount


def format_amount(amount: Decimal | None) -> str:
    """Render an amount like the client UI does: 10000 -> 10,000; 99.5 -> 99.50."""
    amount = amount if amount is not None else Decimal(0)
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"
