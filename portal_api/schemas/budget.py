"""Budget negotiation schemas."""

from decimal import Decimal

from pydantic import BaseModel

from portal_shared.contracts.dto import ProjectDTO
from portal_shared.contracts.dto.money import Money


class BudgetActionRequest(BaseModel):
    """Schema for a budget negotiation action."""

    action: str
    proposed_budget: Decimal | None = None


class BudgetActionResponse(BaseModel):
    success: bool = True
    project: ProjectDTO


class AnnualBudgetUpdate(BaseModel):
    """Schema for a client setting its annual budget."""

    client_id: str
    annual_budget: Decimal | None = None


class AnnualBudgetResponse(BaseModel):
    success: bool = True
    annual_budget: Money
