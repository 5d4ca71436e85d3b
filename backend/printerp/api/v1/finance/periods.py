"""
Financial period endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.financial_period import FinancialPeriod, PeriodStatus
from printerp.schemas.common import SuccessResponse
from printerp.schemas.period import (
    PeriodCreate, PeriodUpdate, PeriodGenerateRequest, PeriodResponse, PeriodListResponse
)
from printerp.services import periods as period_service

router = APIRouter()


def period_to_response(period: FinancialPeriod) -> PeriodResponse:
    return PeriodResponse(
        id=period.id,
        name=period.name,
        start_date=period.start_date,
        end_date=period.end_date,
        period_type=period.period_type,
        year=period.year,
        quarter=period.quarter,
        month=period.month,
        status=period.status,
        is_closed=period.is_closed,
        closed_at=period.closed_at,
        closed_by_id=period.closed_by_id,
        created=period.created,
        updated=period.updated,
    )


@router.get("/periods", response_model=PeriodListResponse)
async def list_periods(
    status_filter: Optional[PeriodStatus] = Query(None, alias="status"),
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """List periods, newest first."""
    periods = await period_service.list_periods(db, status=status_filter, year=year)
    return PeriodListResponse(periods=[period_to_response(p) for p in periods])


@router.post("/periods", response_model=PeriodResponse, status_code=status.HTTP_201_CREATED)
async def create_period(
    period_data: PeriodCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    period = await period_service.create_period(period_data, db)
    return period_to_response(period)


@router.post("/periods/generate", response_model=PeriodListResponse, status_code=status.HTTP_201_CREATED)
async def generate_periods(
    request: PeriodGenerateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Create the monthly periods of a year that do not exist yet."""
    periods = await period_service.generate_monthly_periods(request.year, db)
    return PeriodListResponse(periods=[period_to_response(p) for p in periods])


@router.get("/periods/{period_id}", response_model=PeriodResponse)
async def get_period(
    period_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    period = await period_service.get_period(period_id, db)
    return period_to_response(period)


@router.patch("/periods/{period_id}", response_model=PeriodResponse)
async def update_period(
    period_id: str,
    period_data: PeriodUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    period = await period_service.update_period(period_id, period_data, db, user_id=current_user.id)
    return period_to_response(period)


@router.post("/periods/{period_id}/close", response_model=PeriodResponse)
async def close_period(
    period_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Close a period. Entries in a closed period can no longer change."""
    period = await period_service.close_period(period_id, db, user_id=current_user.id)
    return period_to_response(period)


@router.delete("/periods/{period_id}", response_model=SuccessResponse)
async def delete_period(
    period_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await period_service.delete_period(period_id, db)
    return SuccessResponse(success=True)
