"""Database models package."""

from .base import Base, new_id
from .client import Client
from .deliverable import Deliverable, DeliverableStatus
from .invoice import Invoice, InvoiceStatus
from .notification import DeliverableNotification, NotificationType, ProjectNotification
from .project import BudgetStatus, Project, ProjectStatus

__all__ = [
    "Base",
    "BudgetStatus",
    "Client",
    "Deliverable",
    "DeliverableNotification",
    "DeliverableStatus",
    "Invoice",
    "InvoiceStatus",
    "NotificationType",
    "Project",
    "ProjectNotification",
    "ProjectStatus",
    "new_id",
]
