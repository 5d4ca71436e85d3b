"""
Pydantic schemas for financial period endpoints.
"""
from typing import Optional
from datetime import date, datetime
from pydantic import Field

from printerp.models.financial_period import PeriodStatus, PeriodType
from printerp.schemas.common import CamelModel


class PeriodCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_date: date
    end_date: date
    period_type: PeriodType = PeriodType.CUSTOM
    year: Optional[int] = None
    quarter: Optional[int] = Field(None, ge=1, le=4)
    month: Optional[int] = Field(None, ge=1, le=12)


class PeriodUpdate(CamelModel):
    """Update an open period. Status may only move to CLOSED."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period_type: Optional[PeriodType] = None
    status: Optional[PeriodStatus] = None


class PeriodGenerateRequest(CamelModel):
    year: int = Field(..., ge=1900, le=9999)


class PeriodResponse(CamelModel):
    id: str
    name: str
    start_date: date
    end_date: date
    period_type: PeriodType
    year: int
    quarter: Optional[int] = None
    month: Optional[int] = None
    status: PeriodStatus
    is_closed: bool
    closed_at: Optional[datetime] = None
    closed_by_id: Optional[str] = None
    created: datetime
    updated: datetime


class PeriodListResponse(CamelModel):
    periods: list[PeriodResponse]
