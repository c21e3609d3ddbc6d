"""Schema capabilities of the deployed database.

Deployments are migrated incrementally, so the ``projects`` table may lack the
cancellation audit columns, may reject ``CANCELLED`` in its status CHECK
constraint, or may predate the budget columns. Capabilities are resolved once
at startup and let the engine branch declaratively. Each flag is tri-state:
``None`` means unknown, in which case the engine probes with a fallback.
"""

from dataclasses import dataclass, replace

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine
import structlog

from portal_shared.models import ProjectStatus

logger = structlog.get_logger(__name__)

AUDIT_COLUMNS = frozenset({"cancelled_at", "cancelled_by"})
BUDGET_COLUMNS = frozenset({"requested_budget", "budget_status", "proposed_budget"})


@dataclass(frozen=True)
class SchemaCapabilities:
    has_cancellation_audit: bool | None = None
    accepts_cancelled_status: bool | None = None
    has_budget_columns: bool | None = None

    def with_overrides(self, **overrides: bool | None) -> "SchemaCapabilities":
        """Apply the non-None overrides on top of detected values."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _inspect_capabilities(sync_conn: Connection) -> SchemaCapabilities:
    inspector = inspect(sync_conn)
    if not inspector.has_table("projects"):
        return SchemaCapabilities()

    columns = {c["name"] for c in inspector.get_columns("projects")}

    try:
        checks = inspector.get_check_constraints("projects")
    except NotImplementedError:
        accepts_cancelled = None
    else:
        # The status constraint is the one listing the project status vocabulary
        status_checks = [
            c.get("sqltext") or ""
            for c in checks
            if ProjectStatus.REQUEST_RECEIVED.value in (c.get("sqltext") or "")
        ]
        # No recognizable status constraint leaves the capability unknown
        accepts_cancelled = (
            all(ProjectStatus.CANCELLED.value in text for text in status_checks)
            if status_checks
            else None
        )

    return SchemaCapabilities(
        has_cancellation_audit=AUDIT_COLUMNS <= columns,
        accepts_cancelled_status=accepts_cancelled,
        has_budget_columns=BUDGET_COLUMNS <= columns,
    )


async def detect_capabilities(engine: AsyncEngine) -> SchemaCapabilities:
    """Inspect the ``projects`` table of the connected database."""
    async with engine.connect() as conn:
        capabilities = await conn.run_sync(_inspect_capabilities)
    logger.info(
        "schema_capabilities_detected",
        has_cancellation_audit=capabilities.has_cancellation_audit,
        accepts_cancelled_status=capabilities.accepts_cancelled_status,
        has_budget_columns=capabilities.has_budget_columns,
    )
    return capabilities


async def resolve_capabilities(
    engine: AsyncEngine,
    *,
    detect: bool = True,
    has_cancellation_audit: bool | None = None,
    accepts_cancelled_status: bool | None = None,
    has_budget_columns: bool | None = None,
) -> SchemaCapabilities:
    """Detect capabilities (unless disabled) and apply configured overrides.

    Detection failures degrade to unknown capabilities rather than blocking
    startup; the engine then falls back to probing.
    """
    capabilities = SchemaCapabilities()
    if detect:
        try:
            capabilities = await detect_capabilities(engine)
        except Exception as e:
            logger.warning(
                "schema_capabilities_detection_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    return capabilities.with_overrides(
        has_cancellation_audit=has_cancellation_audit,
        accepts_cancelled_status=accepts_cancelled_status,
        has_budget_columns=has_budget_columns,
    )
