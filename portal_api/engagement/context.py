from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from portal_shared.notifications import EventSink

from ..store import RowStore
from .capabilities import SchemaCapabilities


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class EngineContext:
    """Collaborators every engine operation runs against."""

    store: RowStore
    events: EventSink
    capabilities: SchemaCapabilities = field(default_factory=SchemaCapabilities)
    clock: Callable[[], datetime] = utc_now

    # Dashboard list sizes
    recent_projects_limit: int = 5
    recent_invoices_limit: int = 3
    recent_activity_limit: int = 5
