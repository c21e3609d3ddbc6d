from .dashboard import ActivityEntry, ClientDashboardSummary, RecentInvoice, RecentProject
from .deliverable import DeliverableDTO
from .project import DisplayStatus, ProjectDTO

__all__ = [
    "ActivityEntry",
    "ClientDashboardSummary",
    "DeliverableDTO",
    "DisplayStatus",
    "ProjectDTO",
    "RecentInvoice",
    "RecentProject",
]
