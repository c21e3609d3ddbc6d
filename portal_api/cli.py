"""Operator CLI for the portal database.

    portal-admin capabilities        # which schema shape is deployed
    portal-admin dashboard CLIENT_ID # a client's dashboard summary
    portal-admin init-db             # create missing tables (newest shape)
"""

import asyncio
import json as json_lib

from rich.console import Console
from rich.table import Table
import typer

from portal_shared.logging_config import setup_logging
from portal_shared.notifications import LoggingEventSink

from .config import get_settings
from .database import create_schema, get_engine
from .engagement import EngineContext, get_client_dashboard_summary, resolve_capabilities
from .store import RowStore

app = typer.Typer(
    name="portal-admin",
    help="Admin CLI for the agency portal",
    add_completion=False,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    """Configure logging for every command."""
    settings = get_settings()
    setup_logging(
        service_name="cli",
        log_format=settings.log_format,
        log_level="DEBUG" if verbose else "WARNING",
    )


async def _capabilities():
    settings = get_settings()
    engine = get_engine()
    try:
        return await resolve_capabilities(
            engine,
            detect=settings.schema_detect_on_startup,
            has_cancellation_audit=settings.schema_has_cancellation_audit,
            accepts_cancelled_status=settings.schema_accepts_cancelled_status,
            has_budget_columns=settings.schema_has_budget_columns,
        )
    finally:
        await engine.dispose()


async def _dashboard(client_id: str):
    settings = get_settings()
    engine = get_engine()
    store = RowStore(engine)
    ctx = EngineContext(
        store=store,
        events=LoggingEventSink(),
        recent_projects_limit=settings.dashboard_recent_projects,
        recent_invoices_limit=settings.dashboard_recent_invoices,
        recent_activity_limit=settings.dashboard_recent_activity,
    )
    try:
        return await get_client_dashboard_summary(ctx, client_id)
    finally:
        await engine.dispose()


async def _init_db() -> None:
    engine = get_engine()
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def _flag(value: bool | None) -> str:
    if value is None:
        return "[yellow]unknown[/yellow]"
    return "[green]yes[/green]" if value else "[red]no[/red]"


@app.command()
def capabilities(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """Show the schema capabilities the API would resolve at startup."""
    caps = asyncio.run(_capabilities())

    if json_output:
        typer.echo(
            json_lib.dumps(
                {
                    "has_cancellation_audit": caps.has_cancellation_audit,
                    "accepts_cancelled_status": caps.accepts_cancelled_status,
                    "has_budget_columns": caps.has_budget_columns,
                },
                indent=2,
            )
        )
        return

    table = Table(title="Schema capabilities")
    table.add_column("Capability", style="cyan")
    table.add_column("Available")
    table.add_row("Cancellation audit columns", _flag(caps.has_cancellation_audit))
    table.add_row("CANCELLED status accepted", _flag(caps.accepts_cancelled_status))
    table.add_row("Budget columns", _flag(caps.has_budget_columns))
    console.print(table)


@app.command()
def dashboard(
    client_id: str,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the dashboard summary of a client."""
    summary = asyncio.run(_dashboard(client_id))

    if json_output:
        typer.echo(summary.model_dump_json(by_alias=True, indent=2))
        return

    console.print(f"[bold]Dashboard: client {client_id}[/bold]")
    console.print(
        f"Active: {summary.active_projects_count}  "
        f"Requests: {summary.project_requests_count}  "
        f"Completed: {summary.completed_projects_count}"
    )
    console.print(
        f"Invoices due: {summary.invoices_due_count} (${summary.invoices_due_total:,.2f})  "
        f"Spent: ${summary.spent_so_far:,.2f}"
    )
    if summary.annual_budget is not None:
        console.print(
            f"Annual budget: ${summary.annual_budget:,.2f}  "
            f"Remaining: ${summary.remaining_budget:,.2f}"
        )

    if summary.recent_projects:
        table = Table(title="Recent projects")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title", style="magenta")
        table.add_column("Status", style="green")
        for p in summary.recent_projects:
            table.add_row(p.id, p.title, p.display_status.value)
        console.print(table)


@app.command("init-db")
def init_db():
    """Create any missing tables in their newest shape."""
    asyncio.run(_init_db())
    console.print("[bold green]Schema created[/bold green]")


if __name__ == "__main__":
    app()
