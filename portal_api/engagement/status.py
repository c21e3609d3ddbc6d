"""Project status model and display-status derivation.

Statuses are not constrained by a transition table: an admin may move a
project from any status to any other. Clients never write ``status``
directly; only cancellation and budget acceptance move it for them.

``CANCELLED`` is an overlay: deployments whose schema rejects the value mark
cancellation in ``notes`` instead, so anything shown to a user must go
through ``display_status`` rather than read the raw column.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from portal_shared.contracts.dto import DisplayStatus
from portal_shared.models import ProjectStatus

from .errors import InvalidInput

CANCELLED_MARKER = "[CANCELLED"

ACTIVE_STATUSES = frozenset(
    {
        ProjectStatus.CONFIRMED.value,
        ProjectStatus.IN_PRODUCTION.value,
        ProjectStatus.POST_PRODUCTION.value,
        ProjectStatus.FINAL_REVIEW.value,
    }
)

# Labels the admin forms submit
_STATUS_LABELS = {
    "request received": ProjectStatus.REQUEST_RECEIVED,
    "confirmed": ProjectStatus.CONFIRMED,
    "in production": ProjectStatus.IN_PRODUCTION,
    "post-production": ProjectStatus.POST_PRODUCTION,
    "post production": ProjectStatus.POST_PRODUCTION,
    "final review": ProjectStatus.FINAL_REVIEW,
    "completed": ProjectStatus.COMPLETED,
    "cancelled": ProjectStatus.CANCELLED,
}


def normalize_status(value: Any) -> ProjectStatus:
    """Accept an enum value or a form label; reject anything else."""
    if isinstance(value, ProjectStatus):
        return value
    text = str(value or "").strip()
    if text.upper() in ProjectStatus.__members__:
        return ProjectStatus[text.upper()]
    if text.lower() in _STATUS_LABELS:
        return _STATUS_LABELS[text.lower()]
    raise InvalidInput(f"Invalid project status: {value!r}")


def is_cancelled(project: Mapping[str, Any]) -> bool:
    notes = project.get("notes") or ""
    return project.get("status") == ProjectStatus.CANCELLED.value or CANCELLED_MARKER in notes


def display_status(project: Mapping[str, Any]) -> DisplayStatus:
    if is_cancelled(project):
        return DisplayStatus.CANCELLED
    status = project.get("status")
    if status == ProjectStatus.COMPLETED.value:
        return DisplayStatus.COMPLETED
    if status in ACTIVE_STATUSES:
        return DisplayStatus.IN_PROGRESS
    return DisplayStatus.REQUESTED


def cancellation_marker(at: datetime) -> str:
    # UTC with millisecond precision, e.g. 2026-10-18T09:30:00.000Z
    timestamp = at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"\n\n[CANCELLED by client on {timestamp}]"


def append_cancellation_marker(notes: str | None, at: datetime) -> str:
    marker = cancellation_marker(at)
    return f"{notes}{marker}" if notes else marker.strip()
