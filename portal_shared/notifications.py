"""Notification sinks for engagement events.

Lifecycle transitions hand an ``EngagementEvent`` to a sink. Delivery is
best-effort: ``emit_best_effort`` logs failures and never raises, so a broken
notification table cannot undo or fail the transition that produced the event.
"""

from typing import Any, Protocol

import structlog

from portal_shared.contracts.events import EngagementEvent

logger = structlog.get_logger(__name__)

PROJECT_NOTIFICATIONS_TABLE = "project_notifications"
DELIVERABLE_NOTIFICATIONS_TABLE = "deliverable_notifications"


class EventSink(Protocol):
    async def emit(self, event: EngagementEvent) -> None: ...


class RowWriter(Protocol):
    async def insert_row(self, table: str, values: dict[str, Any]) -> dict[str, Any]: ...


class StoreEventSink:
    """Appends events to the notification log tables."""

    def __init__(self, store: RowWriter):
        self._store = store

    async def emit(self, event: EngagementEvent) -> None:
        values: dict[str, Any] = {
            "project_id": event.project_id,
            "notification_type": event.notification_type.value,
            "message": event.message,
            "created_at": event.occurred_at,
        }
        if event.deliverable_id:
            values["deliverable_id"] = event.deliverable_id
            table = DELIVERABLE_NOTIFICATIONS_TABLE
        else:
            table = PROJECT_NOTIFICATIONS_TABLE

        await self._store.insert_row(table, values)


class LoggingEventSink:
    """Writes events to the structured log only (dev and dry runs)."""

    async def emit(self, event: EngagementEvent) -> None:
        logger.info(
            "engagement_event",
            notification_type=event.notification_type.value,
            project_id=event.project_id,
            deliverable_id=event.deliverable_id,
            message=event.message,
        )


class CompositeEventSink:
    """Fans one event out to several sinks; a failing sink does not stop the rest."""

    def __init__(self, *sinks: EventSink):
        self._sinks = sinks

    async def emit(self, event: EngagementEvent) -> None:
        for sink in self._sinks:
            await emit_best_effort(sink, event)


async def emit_best_effort(sink: EventSink, event: EngagementEvent) -> bool:
    """Emit an event, swallowing and logging any failure.

    Returns:
        True if the sink accepted the event, False otherwise
    """
    try:
        await sink.emit(event)
    except Exception as e:
        logger.warning(
            "notification_emit_failed",
            sink=type(sink).__name__,
            notification_type=event.notification_type.value,
            project_id=event.project_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return False

    logger.debug(
        "notification_emitted",
        sink=type(sink).__name__,
        notification_type=event.notification_type.value,
        project_id=event.project_id,
    )
    return True
