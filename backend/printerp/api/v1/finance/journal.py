"""
Journal Entry endpoints for the PrintERP finance module.
"""
from datetime import date
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.core.errors import ValidationError
from printerp.db.base import get_db
from printerp.models.journal_entry import JournalEntry, JournalEntryStatus
from printerp.models.journal_entry_item import JournalEntryItem
from printerp.schemas.common import SuccessResponse
from printerp.schemas.journal import (
    JournalEntryCreate, JournalEntryUpdate, JournalEntryResponse, JournalItemResponse,
    JournalEntryListResponse, JournalEntryFilters, JournalEntryCancelResponse, PeriodOption
)
from printerp.services import periods as period_service
from printerp.services import posting
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size

router = APIRouter()


def journal_item_to_response(item: JournalEntryItem) -> JournalItemResponse:
    """Convert JournalEntryItem model to JournalItemResponse schema."""
    return JournalItemResponse(
        id=item.id,
        line_number=item.line_number,
        account_id=item.account_id,
        account_code=item.account.code if item.account else None,
        account_name=item.account.name if item.account else None,
        description=item.description,
        debit=item.debit,
        credit=item.credit,
    )


def journal_entry_to_response(entry: JournalEntry) -> JournalEntryResponse:
    """Convert a fully loaded JournalEntry model to JournalEntryResponse schema."""
    items = [journal_item_to_response(item) for item in entry.items]
    total_debits = sum((item.debit or Decimal(0) for item in entry.items), Decimal(0))
    total_credits = sum((item.credit or Decimal(0) for item in entry.items), Decimal(0))

    return JournalEntryResponse(
        id=entry.id,
        entry_number=entry.entry_number,
        entry_date=entry.entry_date,
        description=entry.description,
        reference=entry.reference,
        status=entry.status,
        period_id=entry.period_id,
        period_name=entry.period.name if entry.period else None,
        source_type=entry.source_type,
        source_id=entry.source_id,
        reversal_of_id=entry.reversal_of_id,
        posted_at=entry.posted_at,
        posted_by_id=entry.posted_by_id,
        cancelled_at=entry.cancelled_at,
        cancelled_by_id=entry.cancelled_by_id,
        created_by_id=entry.created_by_id,
        total_debits=total_debits,
        total_credits=total_credits,
        items=items,
        created=entry.created,
        updated=entry.updated,
    )


@router.get("/journal-entries", response_model=JournalEntryListResponse)
async def list_journal_entries(
    search: Optional[str] = None,
    period_id: Optional[str] = Query(None, alias="period"),
    status_filter: Optional[JournalEntryStatus] = Query(None, alias="status"),
    account_id: Optional[str] = Query(None, alias="accountId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    sort_by: str = Query("date", alias="sortBy"),
    sort_direction: str = Query("desc", alias="sortDirection"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    List journal entries with their items.
    Also returns the period and status options for filtering.
    """
    page_size = clamp_page_size(page_size)
    entries, total = await posting.list_entries(
        db,
        search=search,
        period_id=period_id,
        status=status_filter,
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_direction=sort_direction.lower(),
        page=page,
        page_size=page_size,
    )
    periods = await period_service.list_periods(db)

    return JournalEntryListResponse(
        entries=[journal_entry_to_response(e) for e in entries],
        pagination=build_pagination(total, page, page_size),
        filters=JournalEntryFilters(
            periods=[PeriodOption(id=p.id, name=p.name) for p in periods],
            statuses=[s.value for s in JournalEntryStatus],
        ),
    )


@router.post("/journal-entries", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
    entry_data: JournalEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Create a new journal entry with items.
    Entry must be balanced (debits = credits) and its period open.
    """
    entry = await posting.create_entry(entry_data, db, user_id=current_user.id)
    return journal_entry_to_response(entry)


def _resolve_entry_id(path_id: Optional[str], query_id: Optional[str], body_id: Optional[str] = None) -> str:
    entry_id = path_id or query_id or body_id
    if not entry_id:
        raise ValidationError("Journal entry id is required")
    return entry_id


@router.put("/journal-entries", response_model=JournalEntryResponse)
async def update_journal_entry_by_query(
    entry_data: JournalEntryUpdate,
    entry_id: Optional[str] = Query(None, alias="id"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Update a journal entry identified by ``?id=`` or by ``id`` in the body."""
    resolved_id = _resolve_entry_id(None, entry_id, entry_data.id)
    entry = await posting.update_entry(resolved_id, entry_data, db, user_id=current_user.id)
    return journal_entry_to_response(entry)


@router.delete("/journal-entries", response_model=SuccessResponse)
async def delete_journal_entry_by_query(
    entry_id: Optional[str] = Query(None, alias="id"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    await posting.delete_entry(_resolve_entry_id(None, entry_id), db)
    return SuccessResponse(success=True)


@router.get("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
async def get_journal_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get a journal entry by ID with all items."""
    entry = await posting.get_entry(entry_id, db)
    return journal_entry_to_response(entry)


@router.put("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
async def update_journal_entry(
    entry_id: str,
    entry_data: JournalEntryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Update a journal entry.
    Drafts may change freely; a posted entry only accepts status CANCELLED.
    """
    entry = await posting.update_entry(entry_id, entry_data, db, user_id=current_user.id)
    return journal_entry_to_response(entry)


@router.delete("/journal-entries/{entry_id}", response_model=SuccessResponse)
async def delete_journal_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete a journal entry. Posted entries cannot be deleted."""
    await posting.delete_entry(entry_id, db)
    return SuccessResponse(success=True)


@router.post("/journal-entries/{entry_id}/post", response_model=JournalEntryResponse)
async def post_journal_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Post a draft journal entry.
    Applies every item to its account balance exactly once.
    """
    entry = await posting.post_entry(entry_id, db, user_id=current_user.id)
    return journal_entry_to_response(entry)


@router.post("/journal-entries/{entry_id}/cancel", response_model=JournalEntryCancelResponse)
async def cancel_journal_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Cancel a journal entry.
    Cancelling a posted entry creates a posted reversing entry.
    """
    entry, reversal = await posting.cancel_entry(entry_id, db, user_id=current_user.id)
    return JournalEntryCancelResponse(
        entry=journal_entry_to_response(entry),
        reversal=journal_entry_to_response(reversal) if reversal else None,
    )
