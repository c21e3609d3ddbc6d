"""Request and response schemas."""

from .budget import (
    AnnualBudgetResponse,
    AnnualBudgetUpdate,
    BudgetActionRequest,
    BudgetActionResponse,
)
from .deliverable import DeliverableCreate, DeliverableUpdate
from .project import ProjectCreate, ProjectUpdate

__all__ = [
    "AnnualBudgetResponse",
    "AnnualBudgetUpdate",
    "BudgetActionRequest",
    "BudgetActionResponse",
    "DeliverableCreate",
    "DeliverableUpdate",
    "ProjectCreate",
    "ProjectUpdate",
]
