"""Client dashboard aggregation.

Read-only. The four sub-fetches (projects, invoices, annual budget, recent
activity) touch disjoint data, run concurrently and each fail soft: a table or
column the deployment has not migrated yet yields that section's zero value
and a log line, never an error for the caller. The summary itself is computed
by ``summarize_dashboard`` in a single pass over the fetched rows.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

import structlog

from portal_shared.contracts.dto import (
    ActivityEntry,
    ClientDashboardSummary,
    RecentInvoice,
    RecentProject,
)
from portal_shared.models import InvoiceStatus, ProjectStatus

from ..store import MissingColumnError, Row
from .context import EngineContext
from .records import CLIENTS, INVOICES, PROJECT_NOTIFICATIONS, PROJECTS
from .status import ACTIVE_STATUSES, display_status, is_cancelled

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DUE_INVOICE_STATUSES = frozenset(
    {InvoiceStatus.UNPAID.value, InvoiceStatus.PAST_DUE.value, InvoiceStatus.OVERDUE.value}
)

_INVOICE_COLUMNS = ["id", "amount", "status", "due_date", "created_at"]
# Added by later migrations
_OPTIONAL_INVOICE_COLUMNS = ["invoice_id", "issue_date"]


def _as_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def _iso(value: Any) -> str:
    # Fixed-width ISO-8601 strings sort chronologically as plain strings
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value or "")


def _invoice_number(invoice: Row) -> str:
    return invoice.get("invoice_id") or f"INV-{str(invoice['id'])[:8]}"


def summarize_dashboard(
    projects: Iterable[Row],
    invoices: Iterable[Row],
    annual_budget: Decimal | None,
    notifications: Iterable[Row],
    *,
    recent_projects_limit: int = 5,
    recent_invoices_limit: int = 3,
    recent_activity_limit: int = 5,
) -> ClientDashboardSummary:
    """Derive the summary from raw rows.

    Args:
        projects: Client projects, newest first
        invoices: Client invoices, any order
        annual_budget: The client's annual budget, if set
        notifications: Project notifications, newest first
    """
    summary = ClientDashboardSummary()

    recent_projects: list[RecentProject] = []
    for project in projects:
        if len(recent_projects) < recent_projects_limit:
            recent_projects.append(
                RecentProject(
                    id=project["id"],
                    title=project.get("title") or "",
                    status=project.get("status") or "",
                    display_status=display_status(project),
                    event_date=project.get("event_date"),
                )
            )
        if is_cancelled(project):
            continue
        status = project.get("status")
        if status in ACTIVE_STATUSES:
            summary.active_projects_count += 1
        elif status == ProjectStatus.REQUEST_RECEIVED.value:
            summary.project_requests_count += 1
        elif status == ProjectStatus.COMPLETED.value:
            summary.completed_projects_count += 1

    # TODO: count AWAITING_APPROVAL deliverables once the dashboard reads project_deliverables
    summary.pending_deliverables_count = summary.active_projects_count
    summary.recent_projects = recent_projects

    invoices = list(invoices)
    for invoice in invoices:
        amount = _as_decimal(invoice.get("amount"))
        if invoice.get("status") in DUE_INVOICE_STATUSES:
            summary.invoices_due_count += 1
            summary.invoices_due_total += amount
        elif invoice.get("status") == InvoiceStatus.PAID.value:
            summary.spent_so_far += amount

    newest_first = sorted(
        invoices,
        key=lambda inv: _iso(inv.get("issue_date") or inv.get("created_at")),
        reverse=True,
    )
    summary.recent_invoices = [
        RecentInvoice(
            id=invoice["id"],
            invoice_number=_invoice_number(invoice),
            amount=_as_decimal(invoice.get("amount")),
            status=invoice.get("status") or "",
            due_date=invoice.get("due_date"),
        )
        for invoice in newest_first[:recent_invoices_limit]
    ]

    if annual_budget is not None:
        summary.annual_budget = annual_budget
        summary.remaining_budget = annual_budget - summary.spent_so_far

    summary.recent_activity = [
        ActivityEntry(
            id=n["id"],
            message=n.get("message") or "",
            notification_type=n.get("notification_type") or "",
            created_at=n.get("created_at"),
        )
        for n in list(notifications)[:recent_activity_limit]
    ]
    return summary


async def _fail_soft(section: str, fetch: Awaitable[T], default: T, client_id: str) -> T:
    try:
        return await fetch
    except Exception as e:
        logger.warning(
            "dashboard_section_unavailable",
            section=section,
            client_id=client_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return default


async def _fetch_projects(ctx: EngineContext, client_id: str) -> list[Row]:
    return await ctx.store.select_rows(
        PROJECTS, where={"client_id": client_id}, order_by="created_at", descending=True
    )


async def _fetch_invoices(ctx: EngineContext, client_id: str) -> list[Row]:
    try:
        return await ctx.store.select_rows(
            INVOICES,
            columns=[*_INVOICE_COLUMNS, *_OPTIONAL_INVOICE_COLUMNS],
            where={"client_id": client_id},
        )
    except MissingColumnError:
        # Older invoice tables: numbers fall back to INV-<id>, ordering to created_at
        return await ctx.store.select_rows(
            INVOICES, columns=_INVOICE_COLUMNS, where={"client_id": client_id}
        )


async def _fetch_annual_budget(ctx: EngineContext, client_id: str) -> Decimal | None:
    client = await ctx.store.get_row(CLIENTS, client_id)
    if client is None or client.get("annual_budget") is None:
        return None
    return _as_decimal(client["annual_budget"])


async def _fetch_recent_activity(ctx: EngineContext, client_id: str) -> list[Row]:
    project_rows = await ctx.store.select_rows(
        PROJECTS, columns=["id"], where={"client_id": client_id}
    )
    project_ids = [row["id"] for row in project_rows]
    if not project_ids:
        return []
    return await ctx.store.select_rows(
        PROJECT_NOTIFICATIONS,
        columns=["id", "message", "notification_type", "created_at"],
        where_in={"project_id": project_ids},
        order_by="created_at",
        descending=True,
        limit=ctx.recent_activity_limit,
    )


async def get_client_dashboard_summary(
    ctx: EngineContext, client_id: str
) -> ClientDashboardSummary:
    """Build the dashboard summary of one client. Never raises for missing data."""
    projects, invoices, annual_budget, notifications = await asyncio.gather(
        _fail_soft("projects", _fetch_projects(ctx, client_id), [], client_id),
        _fail_soft("invoices", _fetch_invoices(ctx, client_id), [], client_id),
        _fail_soft("annual_budget", _fetch_annual_budget(ctx, client_id), None, client_id),
        _fail_soft("recent_activity", _fetch_recent_activity(ctx, client_id), [], client_id),
    )

    summary = summarize_dashboard(
        projects,
        invoices,
        annual_budget,
        notifications,
        recent_projects_limit=ctx.recent_projects_limit,
        recent_invoices_limit=ctx.recent_invoices_limit,
        recent_activity_limit=ctx.recent_activity_limit,
    )
    logger.debug(
        "dashboard_summarized",
        client_id=client_id,
        projects=len(projects),
        invoices=len(invoices),
        activity=len(summary.recent_activity),
    )
    return summary
