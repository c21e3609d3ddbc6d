from datetime import UTC, datetime

from pydantic import BaseModel, Field

from portal_shared.models import NotificationType


class EngagementEvent(BaseModel):
    """Domain event emitted by a lifecycle transition.

    Sinks decide whether and where to persist it; the transition that produced
    it never depends on the outcome.
    """

    notification_type: NotificationType
    project_id: str
    message: str
    deliverable_id: str | None = None
    actor_id: str | None = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
