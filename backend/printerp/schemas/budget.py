"""
Pydantic schemas for budget and department endpoints.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import Field

from printerp.schemas.common import CamelModel, Pagination
from printerp.schemas.report import BudgetVsActualRow


class BudgetItemInput(CamelModel):
    account_id: str
    description: Optional[str] = None
    amount: Decimal


class BudgetCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    year: int = Field(..., ge=1900, le=9999)
    description: Optional[str] = None
    department_id: Optional[str] = None
    period_id: Optional[str] = None
    items: list[BudgetItemInput] = []


class BudgetUpdate(CamelModel):
    """Update a budget. When ``items`` is given it replaces all items."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    year: Optional[int] = Field(None, ge=1900, le=9999)
    description: Optional[str] = None
    department_id: Optional[str] = None
    period_id: Optional[str] = None
    items: Optional[list[BudgetItemInput]] = None


class BudgetItemResponse(CamelModel):
    id: str
    account_id: str
    account_code: Optional[str] = None
    account_name: Optional[str] = None
    description: Optional[str] = None
    amount: Decimal


class BudgetResponse(CamelModel):
    id: str
    name: str
    year: int
    description: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    period_id: Optional[str] = None
    period_name: Optional[str] = None
    total_amount: Decimal
    items: list[BudgetItemResponse] = []
    created: datetime
    updated: datetime


class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class DepartmentResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None


class BudgetFilters(CamelModel):
    years: list[int]
    departments: list[DepartmentResponse]


class BudgetListResponse(CamelModel):
    budgets: list[BudgetResponse]
    budget_vs_actual: dict[str, list[BudgetVsActualRow]]
    pagination: Pagination
    filters: BudgetFilters


class DepartmentListResponse(CamelModel):
    departments: list[DepartmentResponse]
