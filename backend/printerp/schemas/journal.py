"""
Pydantic schemas for Journal Entry endpoints.
"""
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from printerp.models.journal_entry import JournalEntryStatus
from printerp.schemas.common import CamelModel, Pagination


class JournalItemInput(CamelModel):
    """A line in a create/update request."""
    account_id: str
    description: Optional[str] = None
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")


class JournalEntryCreate(CamelModel):
    """Create a journal entry with items. Must balance."""
    entry_date: Optional[date] = Field(None, alias="date")
    period_id: str
    description: str = ""
    reference: Optional[str] = Field(None, max_length=100)
    status: Optional[JournalEntryStatus] = None
    items: list[JournalItemInput] = []


class JournalEntryUpdate(CamelModel):
    """Update a journal entry. ``id`` may be given here instead of the path."""
    id: Optional[str] = None
    entry_date: Optional[date] = Field(None, alias="date")
    period_id: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = Field(None, max_length=100)
    status: Optional[JournalEntryStatus] = None
    items: Optional[list[JournalItemInput]] = None


class JournalItemResponse(CamelModel):
    id: str
    line_number: int
    account_id: str
    account_code: Optional[str] = None
    account_name: Optional[str] = None
    description: Optional[str] = None
    debit: Decimal
    credit: Decimal


class JournalEntryResponse(CamelModel):
    """Journal entry response with items."""
    id: str
    entry_number: str
    entry_date: date = Field(..., alias="date")
    description: str
    reference: Optional[str] = None
    status: JournalEntryStatus
    period_id: str
    period_name: Optional[str] = None
    source_type: str
    source_id: Optional[str] = None
    reversal_of_id: Optional[str] = None
    posted_at: Optional[datetime] = None
    posted_by_id: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    created_by_id: Optional[str] = None
    total_debits: Decimal
    total_credits: Decimal
    items: list[JournalItemResponse] = []
    created: datetime
    updated: datetime


class JournalEntryCancelResponse(CamelModel):
    entry: JournalEntryResponse
    reversal: Optional[JournalEntryResponse] = None


class PeriodOption(CamelModel):
    id: str
    name: str


class JournalEntryFilters(CamelModel):
    periods: list[PeriodOption]
    statuses: list[str]


class JournalEntryListResponse(CamelModel):
    """Paginated list of journal entries."""
    entries: list[JournalEntryResponse]
    pagination: Pagination
    filters: JournalEntryFilters
