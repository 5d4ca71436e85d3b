"""
Budget and department service.
"""
import logging
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from printerp.core.errors import (
    AccountNotFound,
    BudgetConflict,
    BudgetNotFound,
    DepartmentNotFound,
    ValidationError,
)
from printerp.models.account import Account
from printerp.models.budget import Budget, BudgetItem, Department
from printerp.schemas.budget import BudgetCreate, BudgetItemInput, BudgetUpdate, DepartmentCreate
from printerp.services.periods import get_period

logger = logging.getLogger(__name__)


def _budget_query():
    return select(Budget).options(
        selectinload(Budget.items).selectinload(BudgetItem.account),
        selectinload(Budget.department),
        selectinload(Budget.period),
    )


async def get_budget(budget_id: str, db: AsyncSession) -> Budget:
    result = await db.execute(
        _budget_query()
        .where(Budget.id == budget_id)
        .execution_options(populate_existing=True)
    )
    budget = result.scalar_one_or_none()
    if budget is None:
        raise BudgetNotFound(f"Budget {budget_id} not found")
    return budget


async def get_department(department_id: str, db: AsyncSession) -> Department:
    department = await db.get(Department, department_id)
    if department is None:
        raise DepartmentNotFound(f"Department {department_id} not found")
    return department


async def _check_items(items: Sequence[BudgetItemInput], db: AsyncSession) -> None:
    if not items:
        raise ValidationError("A budget needs at least one item")

    for index, item in enumerate(items, start=1):
        if item.amount < 0:
            raise ValidationError(f"Item {index}: amount must not be negative")

    account_ids = {item.account_id for item in items}
    result = await db.execute(select(Account.id).where(Account.id.in_(account_ids)))
    missing = account_ids - set(result.scalars().all())
    if missing:
        raise AccountNotFound(f"Account {sorted(missing)[0]} not found")


async def _check_unique(
    department_id: Optional[str],
    period_id: Optional[str],
    db: AsyncSession,
    exclude_id: Optional[str] = None,
) -> None:
    """At most one budget per (department, period) when both are set."""
    if department_id is None or period_id is None:
        return

    query = select(Budget.id).where(
        Budget.department_id == department_id,
        Budget.period_id == period_id,
    )
    if exclude_id is not None:
        query = query.where(Budget.id != exclude_id)
    result = await db.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise BudgetConflict("A budget already exists for this department and period")


def _build_items(items: Sequence[BudgetItemInput]) -> list[BudgetItem]:
    return [
        BudgetItem(account_id=item.account_id, description=item.description, amount=item.amount)
        for item in items
    ]


def _total(items: Sequence[BudgetItemInput]) -> Decimal:
    return sum((item.amount for item in items), Decimal("0"))


async def create_budget(data: BudgetCreate, db: AsyncSession) -> Budget:
    if data.department_id is not None:
        await get_department(data.department_id, db)
    if data.period_id is not None:
        await get_period(data.period_id, db)
    await _check_items(data.items, db)
    await _check_unique(data.department_id, data.period_id, db)

    budget = Budget(
        name=data.name,
        year=data.year,
        description=data.description,
        department_id=data.department_id,
        period_id=data.period_id,
        total_amount=_total(data.items),
        items=_build_items(data.items),
    )
    db.add(budget)
    await db.flush()

    logger.info(f"Budget {budget.name} ({budget.year}) created with {len(data.items)} items")
    return await get_budget(budget.id, db)


async def update_budget(budget_id: str, data: BudgetUpdate, db: AsyncSession) -> Budget:
    """Update budget fields; supplied items replace the existing ones."""
    budget = await get_budget(budget_id, db)

    fields = data.model_fields_set
    department_id = data.department_id if "department_id" in fields else budget.department_id
    period_id = data.period_id if "period_id" in fields else budget.period_id

    if department_id is not None and department_id != budget.department_id:
        await get_department(department_id, db)
    if period_id is not None and period_id != budget.period_id:
        await get_period(period_id, db)
    if data.items is not None:
        await _check_items(data.items, db)
    await _check_unique(department_id, period_id, db, exclude_id=budget.id)

    if data.name is not None:
        budget.name = data.name
    if data.year is not None:
        budget.year = data.year
    if data.description is not None:
        budget.description = data.description
    budget.department_id = department_id
    budget.period_id = period_id

    if data.items is not None:
        budget.items.clear()
        await db.flush()
        budget.items.extend(_build_items(data.items))
        budget.total_amount = _total(data.items)

    await db.flush()
    return await get_budget(budget.id, db)


async def delete_budget(budget_id: str, db: AsyncSession) -> None:
    budget = await get_budget(budget_id, db)
    name = budget.name
    await db.delete(budget)
    await db.flush()
    logger.info(f"Budget {name} deleted")


async def list_budgets(
    db: AsyncSession,
    year: Optional[int] = None,
    department_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
) -> tuple[list[Budget], int]:
    filters = []
    if year is not None:
        filters.append(Budget.year == year)
    if department_id is not None:
        filters.append(Budget.department_id == department_id)

    count_result = await db.execute(select(func.count()).select_from(Budget).where(*filters))
    total = count_result.scalar() or 0

    result = await db.execute(
        _budget_query()
        .where(*filters)
        .order_by(Budget.year.desc(), Budget.name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().unique().all()), total


async def list_budget_years(db: AsyncSession) -> list[int]:
    result = await db.execute(select(Budget.year).distinct().order_by(Budget.year.desc()))
    return list(result.scalars().all())


async def list_departments(db: AsyncSession) -> list[Department]:
    result = await db.execute(select(Department).order_by(Department.name.asc()))
    return list(result.scalars().all())


async def create_department(data: DepartmentCreate, db: AsyncSession) -> Department:
    existing = await db.execute(select(Department).where(Department.name == data.name))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Department {data.name} already exists")

    department = Department(name=data.name, description=data.description)
    db.add(department)
    await db.flush()
    return department
