"""
Financial period registry.

Periods are non-overlapping date ranges. A CLOSED period rejects every
mutation of the journal entries it owns; there is no way back to OPEN.
"""
import logging
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.errors import (
    PeriodNotFound,
    PeriodClosed,
    PeriodAlreadyClosed,
    PeriodOverlap,
    PeriodInUse,
    ValidationError,
)
from printerp.models.base import utcnow
from printerp.models.budget import Budget
from printerp.models.financial_period import FinancialPeriod, PeriodStatus, PeriodType
from printerp.models.journal_entry import JournalEntry
from printerp.schemas.period import PeriodCreate, PeriodUpdate

logger = logging.getLogger(__name__)


async def get_period(period_id: str, db: AsyncSession) -> FinancialPeriod:
    period = await db.get(FinancialPeriod, period_id)
    if period is None:
        raise PeriodNotFound(f"Financial period {period_id} not found")
    return period


async def list_periods(
    db: AsyncSession,
    status: Optional[PeriodStatus] = None,
    year: Optional[int] = None,
) -> list[FinancialPeriod]:
    query = select(FinancialPeriod)
    if status is not None:
        query = query.where(FinancialPeriod.status == status)
    if year is not None:
        query = query.where(FinancialPeriod.year == year)
    query = query.order_by(FinancialPeriod.start_date.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def find_period_containing(day: date, db: AsyncSession) -> FinancialPeriod:
    result = await db.execute(
        select(FinancialPeriod).where(
            FinancialPeriod.start_date <= day,
            FinancialPeriod.end_date >= day,
        )
    )
    period = result.scalars().first()
    if period is None:
        raise PeriodNotFound(f"No financial period contains {day.isoformat()}")
    return period


async def find_open_period_containing(day: date, db: AsyncSession) -> FinancialPeriod:
    period = await find_period_containing(day, db)
    if period.is_closed:
        raise PeriodClosed(f"Financial period {period.name} is closed")
    return period


async def is_open(period_id: str, db: AsyncSession) -> bool:
    period = await get_period(period_id, db)
    return not period.is_closed


def ensure_open(period: FinancialPeriod) -> None:
    if period.is_closed:
        raise PeriodClosed(f"Financial period {period.name} is closed")


async def find_overlapping(
    start_date: date,
    end_date: date,
    db: AsyncSession,
    exclude_id: Optional[str] = None,
) -> Optional[FinancialPeriod]:
    query = select(FinancialPeriod).where(
        FinancialPeriod.start_date <= end_date,
        FinancialPeriod.end_date >= start_date,
    )
    if exclude_id is not None:
        query = query.where(FinancialPeriod.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalars().first()


async def _check_range(
    start_date: date,
    end_date: date,
    db: AsyncSession,
    exclude_id: Optional[str] = None,
) -> None:
    if start_date > end_date:
        raise ValidationError("Start date must be on or before end date")

    clash = await find_overlapping(start_date, end_date, db, exclude_id=exclude_id)
    if clash is not None:
        raise PeriodOverlap(
            f"Period overlaps with {clash.name}",
            details={"periodId": clash.id, "periodName": clash.name},
        )


async def _check_entries_within(
    period: FinancialPeriod,
    start_date: date,
    end_date: date,
    db: AsyncSession,
) -> None:
    """Entries owned by ``period`` must stay dated inside its new range."""
    result = await db.execute(
        select(func.count()).select_from(JournalEntry).where(
            JournalEntry.period_id == period.id,
            or_(JournalEntry.entry_date < start_date, JournalEntry.entry_date > end_date),
        )
    )
    outside = result.scalar() or 0
    if outside > 0:
        raise PeriodInUse(
            f"Financial period {period.name} has {outside} journal entries outside "
            f"{start_date.isoformat()} to {end_date.isoformat()}",
            details={"entryCount": outside},
        )


async def create_period(data: PeriodCreate, db: AsyncSession) -> FinancialPeriod:
    await _check_range(data.start_date, data.end_date, db)

    period = FinancialPeriod(
        name=data.name,
        start_date=data.start_date,
        end_date=data.end_date,
        period_type=data.period_type,
        year=data.year if data.year is not None else data.start_date.year,
        quarter=data.quarter,
        month=data.month,
        status=PeriodStatus.OPEN,
    )
    db.add(period)
    await db.flush()

    logger.info(f"Financial period {period.name} created")
    return period


async def generate_monthly_periods(year: int, db: AsyncSession) -> list[FinancialPeriod]:
    """
    Create the twelve calendar months of ``year``.

    Months overlapping an existing period are skipped, so the call can be
    repeated safely.
    """
    created = []
    current = date(year, 1, 1)

    while current.year == year:
        next_month = current + relativedelta(months=1)
        last_day = next_month - relativedelta(days=1)

        if await find_overlapping(current, last_day, db) is None:
            period = FinancialPeriod(
                name=current.strftime("%B %Y"),
                start_date=current,
                end_date=last_day,
                period_type=PeriodType.MONTHLY,
                year=year,
                quarter=(current.month - 1) // 3 + 1,
                month=current.month,
                status=PeriodStatus.OPEN,
            )
            db.add(period)
            await db.flush()
            created.append(period)

        current = next_month

    logger.info(f"Generated {len(created)} monthly periods for {year}")
    return created


async def close_period(period_id: str, db: AsyncSession, user_id: Optional[str] = None) -> FinancialPeriod:
    period = await get_period(period_id, db)
    if period.is_closed:
        raise PeriodAlreadyClosed(f"Financial period {period.name} is already closed")

    period.status = PeriodStatus.CLOSED
    period.closed_at = utcnow()
    period.closed_by_id = user_id
    await db.flush()

    logger.info(f"Financial period {period.name} closed by {user_id}")
    return period


async def update_period(
    period_id: str,
    data: PeriodUpdate,
    db: AsyncSession,
    user_id: Optional[str] = None
) -> FinancialPeriod:
    period = await get_period(period_id, db)

    if data.status == PeriodStatus.OPEN and period.is_closed:
        raise ValidationError("A closed period cannot be reopened")
    ensure_open(period)

    start_date = data.start_date or period.start_date
    end_date = data.end_date or period.end_date
    if start_date != period.start_date or end_date != period.end_date:
        await _check_range(start_date, end_date, db, exclude_id=period.id)
        await _check_entries_within(period, start_date, end_date, db)
        period.start_date = start_date
        period.end_date = end_date

    if data.name is not None:
        period.name = data.name
    if data.period_type is not None:
        period.period_type = data.period_type

    await db.flush()

    if data.status == PeriodStatus.CLOSED:
        return await close_period(period.id, db, user_id=user_id)
    return period


async def delete_period(period_id: str, db: AsyncSession) -> None:
    period = await get_period(period_id, db)

    entries = await db.execute(
        select(func.count()).select_from(JournalEntry).where(JournalEntry.period_id == period.id)
    )
    budgets = await db.execute(
        select(func.count()).select_from(Budget).where(Budget.period_id == period.id)
    )
    if (entries.scalar() or 0) > 0 or (budgets.scalar() or 0) > 0:
        raise PeriodInUse(f"Financial period {period.name} is referenced by entries or budgets")

    await db.delete(period)
    await db.flush()
    logger.info(f"Financial period {period.name} deleted")
