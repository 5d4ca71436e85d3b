"""
Budget and department endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.budget import Budget, Department
from printerp.schemas.budget import (
    BudgetCreate, BudgetUpdate, BudgetResponse, BudgetItemResponse, BudgetListResponse,
    BudgetFilters, DepartmentCreate, DepartmentResponse, DepartmentListResponse
)
from printerp.schemas.common import SuccessResponse
from printerp.services import budgets as budget_service
from printerp.services import reports as report_service
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size
from printerp.api.v1.finance.reports import variance_row_to_response

router = APIRouter()


def department_to_response(department: Department) -> DepartmentResponse:
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        description=department.description,
    )


def budget_to_response(budget: Budget) -> BudgetResponse:
    """Convert a loaded Budget model to BudgetResponse schema."""
    return BudgetResponse(
        id=budget.id,
        name=budget.name,
        year=budget.year,
        description=budget.description,
        department_id=budget.department_id,
        department_name=budget.department.name if budget.department else None,
        period_id=budget.period_id,
        period_name=budget.period.name if budget.period else None,
        total_amount=budget.total_amount,
        items=[
            BudgetItemResponse(
                id=item.id,
                account_id=item.account_id,
                account_code=item.account.code if item.account else None,
                account_name=item.account.name if item.account else None,
                description=item.description,
                amount=item.amount,
            )
            for item in budget.items
        ],
        created=budget.created,
        updated=budget.updated,
    )


@router.get("/budgets", response_model=BudgetListResponse)
async def list_budgets(
    year: Optional[int] = None,
    department_id: Optional[str] = Query(None, alias="departmentId"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    List budgets.
    Includes budget-vs-actual rows for every year present in the page.
    """
    page_size = clamp_page_size(page_size)
    budgets, total = await budget_service.list_budgets(
        db, year=year, department_id=department_id, page=page, page_size=page_size
    )

    budget_vs_actual = {}
    for budget_year in sorted({b.year for b in budgets}):
        report = await report_service.compute_budget_vs_actual(budget_year, db, department_id=department_id)
        budget_vs_actual[str(budget_year)] = [variance_row_to_response(row) for row in report.rows]

    years = await budget_service.list_budget_years(db)
    departments = await budget_service.list_departments(db)

    return BudgetListResponse(
        budgets=[budget_to_response(b) for b in budgets],
        budget_vs_actual=budget_vs_actual,
        pagination=build_pagination(total, page, page_size),
        filters=BudgetFilters(
            years=years,
            departments=[department_to_response(d) for d in departments],
        ),
    )


@router.post("/budgets", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_data: BudgetCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    budget = await budget_service.create_budget(budget_data, db)
    return budget_to_response(budget)


@router.get("/budgets/{budget_id}", response_model=BudgetResponse)
async def get_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    budget = await budget_service.get_budget(budget_id, db)
    return budget_to_response(budget)


@router.put("/budgets/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: str,
    budget_data: BudgetUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Update a budget. Supplied items replace all existing items."""
    budget = await budget_service.update_budget(budget_id, budget_data, db)
    return budget_to_response(budget)


@router.delete("/budgets/{budget_id}", response_model=SuccessResponse)
async def delete_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await budget_service.delete_budget(budget_id, db)
    return SuccessResponse(success=True)


@router.get("/departments", response_model=DepartmentListResponse)
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    departments = await budget_service.list_departments(db)
    return DepartmentListResponse(departments=[department_to_response(d) for d in departments])


@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    department_data: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    department = await budget_service.create_department(department_data, db)
    return department_to_response(department)
