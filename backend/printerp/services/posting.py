"""
Journal entry store and posting engine.

Provides business logic for:
- Creating, updating and deleting journal entries with their items
- Posting (DRAFT -> POSTED), which applies every item to its account once
- Cancelling, which reverses a posting with a generated reversing entry

All validation runs before the first write, and every operation runs inside
the caller's session transaction, so a failure leaves no partial entry and no
partial balance change behind.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from printerp.core.config import settings
from printerp.core.errors import (
    AccountNotFound,
    EntryCancelled,
    EntryNotFound,
    PostedEntryImmutable,
    UnbalancedEntry,
    ValidationError,
)
from printerp.models.account import Account
from printerp.models.base import utcnow
from printerp.models.financial_period import FinancialPeriod
from printerp.models.journal_entry import JournalEntry, JournalEntryStatus, JournalEntrySource
from printerp.models.journal_entry_item import JournalEntryItem
from printerp.schemas.journal import JournalEntryCreate, JournalEntryUpdate, JournalItemInput
from printerp.services.accounts import apply_delta
from printerp.services.periods import ensure_open, get_period
from printerp.services.sequence import next_number

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "date": JournalEntry.entry_date,
    "entryNumber": JournalEntry.entry_number,
    "status": JournalEntry.status,
    "createdAt": JournalEntry.created,
}


def _entry_query():
    return select(JournalEntry).options(
        selectinload(JournalEntry.items).selectinload(JournalEntryItem.account),
        selectinload(JournalEntry.period),
    )


async def get_entry(entry_id: str, db: AsyncSession) -> JournalEntry:
    """Load an entry with its items, their accounts and its period."""
    result = await db.execute(
        _entry_query()
        .where(JournalEntry.id == entry_id)
        .execution_options(populate_existing=True)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise EntryNotFound(f"Journal entry {entry_id} not found")
    return entry


def _as_inputs(items: Iterable[JournalEntryItem]) -> list[JournalItemInput]:
    return [
        JournalItemInput(
            account_id=item.account_id,
            description=item.description,
            debit=item.debit,
            credit=item.credit,
        )
        for item in items
    ]


def check_balance(items: Sequence[JournalItemInput]) -> tuple[Decimal, Decimal]:
    """
    Validate item shape and the debit/credit identity.

    Returns the totals. Raises ValidationError for malformed items and
    UnbalancedEntry when the totals differ by more than the tolerance.
    """
    if len(items) < 2:
        raise ValidationError("A journal entry needs at least two items")

    total_debits = Decimal("0")
    total_credits = Decimal("0")
    for index, item in enumerate(items, start=1):
        debit = item.debit or Decimal("0")
        credit = item.credit or Decimal("0")
        if debit < 0 or credit < 0:
            raise ValidationError(f"Item {index}: debit and credit must not be negative")
        if debit == 0 and credit == 0:
            raise ValidationError(f"Item {index}: either debit or credit must be non-zero")
        total_debits += debit
        total_credits += credit

    if abs(total_debits - total_credits) > settings.BALANCE_TOLERANCE:
        raise UnbalancedEntry(total_debits, total_credits)

    return total_debits, total_credits


async def _check_accounts(items: Sequence[JournalItemInput], db: AsyncSession) -> None:
    account_ids = {item.account_id for item in items}
    result = await db.execute(select(Account).where(Account.id.in_(account_ids)))
    accounts = {account.id: account for account in result.scalars().all()}

    for item in items:
        account = accounts.get(item.account_id)
        if account is None:
            raise AccountNotFound(f"Account {item.account_id} not found")
        if not account.is_active:
            raise ValidationError(f"Account {account.code} is inactive")


async def validate_items(items: Sequence[JournalItemInput], db: AsyncSession) -> tuple[Decimal, Decimal]:
    totals = check_balance(items)
    await _check_accounts(items, db)
    return totals


def _check_date_in_period(entry_date: date, period: FinancialPeriod) -> None:
    if not period.contains(entry_date):
        raise ValidationError(
            f"Entry date {entry_date.isoformat()} is outside period {period.name} "
            f"({period.start_date.isoformat()} to {period.end_date.isoformat()})"
        )


def _build_items(items: Sequence[JournalItemInput]) -> list[JournalEntryItem]:
    return [
        JournalEntryItem(
            line_number=index,
            account_id=item.account_id,
            description=item.description,
            debit=item.debit or Decimal("0"),
            credit=item.credit or Decimal("0"),
        )
        for index, item in enumerate(items, start=1)
    ]


async def _apply_items(items: Iterable[JournalItemInput], db: AsyncSession) -> None:
    for item in items:
        await apply_delta(item.account_id, item.debit or Decimal("0"), item.credit or Decimal("0"), db)


def _mark_posted(entry: JournalEntry, user_id: Optional[str]) -> None:
    entry.status = JournalEntryStatus.POSTED
    entry.posted_at = utcnow()
    entry.posted_by_id = user_id


async def create_entry(
    data: JournalEntryCreate,
    db: AsyncSession,
    user_id: Optional[str] = None,
    source_type: JournalEntrySource = JournalEntrySource.MANUAL,
    source_id: Optional[str] = None,
) -> JournalEntry:
    """
    Create a journal entry, posting it immediately when ``status`` is POSTED.

    Raises:
        ValidationError, PeriodNotFound, PeriodClosed, UnbalancedEntry,
        AccountNotFound
    """
    if data.entry_date is None:
        raise ValidationError("Entry date is required")

    status = data.status or JournalEntryStatus.DRAFT
    if status == JournalEntryStatus.CANCELLED:
        raise ValidationError("New entries must be DRAFT or POSTED")

    period = await get_period(data.period_id, db)
    ensure_open(period)
    _check_date_in_period(data.entry_date, period)
    await validate_items(data.items, db)

    entry_number = await next_number(settings.ENTRY_NUMBER_PREFIX, data.entry_date, db)
    entry = JournalEntry(
        entry_number=entry_number,
        entry_date=data.entry_date,
        description=data.description or "",
        reference=data.reference,
        status=JournalEntryStatus.DRAFT,
        period_id=period.id,
        source_type=source_type.value,
        source_id=source_id,
        created_by_id=user_id,
        items=_build_items(data.items),
    )
    db.add(entry)
    await db.flush()

    if status == JournalEntryStatus.POSTED:
        await _apply_items(data.items, db)
        _mark_posted(entry, user_id)
        await db.flush()

    logger.info(f"Journal entry {entry.entry_number} created as {status.value}")
    return await get_entry(entry.id, db)


async def update_entry(
    entry_id: str,
    data: JournalEntryUpdate,
    db: AsyncSession,
    user_id: Optional[str] = None,
) -> JournalEntry:
    """
    Update a draft entry, or cancel a posted one.

    A POSTED entry only accepts ``status=CANCELLED`` with no other changes.
    Supplied items replace the existing ones after the same validation as
    on create.
    """
    entry = await get_entry(entry_id, db)

    if entry.status == JournalEntryStatus.CANCELLED:
        raise EntryCancelled(f"Journal entry {entry.entry_number} is cancelled")

    has_changes = any(
        value is not None
        for value in (data.entry_date, data.period_id, data.description, data.reference, data.items)
    )

    if entry.status == JournalEntryStatus.POSTED:
        if data.status != JournalEntryStatus.CANCELLED or has_changes:
            raise PostedEntryImmutable(f"Journal entry {entry.entry_number} is posted and cannot be modified")
        cancelled, _ = await cancel_entry(entry.id, db, user_id=user_id)
        return cancelled

    ensure_open(entry.period)

    if data.status == JournalEntryStatus.CANCELLED:
        cancelled, _ = await cancel_entry(entry.id, db, user_id=user_id)
        return cancelled

    period = entry.period
    if data.period_id is not None and data.period_id != entry.period_id:
        period = await get_period(data.period_id, db)
        ensure_open(period)

    entry_date = data.entry_date or entry.entry_date
    _check_date_in_period(entry_date, period)

    posting = data.status == JournalEntryStatus.POSTED
    items = data.items
    if items is not None:
        await validate_items(items, db)
    elif posting:
        items = _as_inputs(entry.items)
        await validate_items(items, db)

    entry.entry_date = entry_date
    entry.period_id = period.id
    if data.description is not None:
        entry.description = data.description
    if data.reference is not None:
        entry.reference = data.reference

    if data.items is not None:
        entry.items.clear()
        await db.flush()
        entry.items.extend(_build_items(data.items))
        await db.flush()

    if posting:
        await _apply_items(items, db)
        _mark_posted(entry, user_id)

    await db.flush()
    logger.info(f"Journal entry {entry.entry_number} updated{' and posted' if posting else ''}")
    return await get_entry(entry.id, db)


async def post_entry(entry_id: str, db: AsyncSession, user_id: Optional[str] = None) -> JournalEntry:
    """Post a draft entry. Anything but a DRAFT is rejected, so deltas never apply twice."""
    entry = await get_entry(entry_id, db)

    if entry.status != JournalEntryStatus.DRAFT:
        raise PostedEntryImmutable(
            f"Journal entry {entry.entry_number} is {entry.status.value} and cannot be posted"
        )

    ensure_open(entry.period)
    _check_date_in_period(entry.entry_date, entry.period)
    items = _as_inputs(entry.items)
    await validate_items(items, db)

    await _apply_items(items, db)
    _mark_posted(entry, user_id)
    await db.flush()

    logger.info(f"Journal entry {entry.entry_number} posted by {user_id}")
    return await get_entry(entry.id, db)


async def cancel_entry(
    entry_id: str,
    db: AsyncSession,
    user_id: Optional[str] = None,
) -> tuple[JournalEntry, Optional[JournalEntry]]:
    """
    Cancel an entry.

    A DRAFT is simply marked CANCELLED. A POSTED entry is marked CANCELLED
    and a POSTED reversing entry with every item's sides swapped is created
    in the same period, restoring the account balances.

    Returns:
        (cancelled entry, reversing entry or None)
    """
    entry = await get_entry(entry_id, db)

    if entry.status == JournalEntryStatus.CANCELLED:
        raise EntryCancelled(f"Journal entry {entry.entry_number} is already cancelled")
    ensure_open(entry.period)

    reversal = None
    if entry.status == JournalEntryStatus.POSTED:
        reversed_items = [
            JournalItemInput(
                account_id=item.account_id,
                description=item.description,
                debit=item.credit,
                credit=item.debit,
            )
            for item in entry.items
        ]
        entry_number = await next_number(settings.ENTRY_NUMBER_PREFIX, entry.entry_date, db)
        reversal = JournalEntry(
            entry_number=entry_number,
            entry_date=entry.entry_date,
            description=f"Reversal of {entry.entry_number}",
            reference=entry.entry_number,
            status=JournalEntryStatus.DRAFT,
            period_id=entry.period_id,
            source_type=JournalEntrySource.REVERSAL.value,
            source_id=entry.id,
            reversal_of_id=entry.id,
            created_by_id=user_id,
            items=_build_items(reversed_items),
        )
        db.add(reversal)
        await db.flush()

        await _apply_items(reversed_items, db)
        _mark_posted(reversal, user_id)

    entry.status = JournalEntryStatus.CANCELLED
    entry.cancelled_at = utcnow()
    entry.cancelled_by_id = user_id
    await db.flush()

    if reversal is not None:
        logger.info(f"Journal entry {entry.entry_number} cancelled and reversed by {reversal.entry_number}")
        return await get_entry(entry.id, db), await get_entry(reversal.id, db)

    logger.info(f"Journal entry {entry.entry_number} cancelled")
    return await get_entry(entry.id, db), None


async def delete_entry(entry_id: str, db: AsyncSession) -> None:
    """Delete a draft (or never-posted cancelled) entry and its items."""
    entry = await get_entry(entry_id, db)

    if entry.status == JournalEntryStatus.POSTED or entry.posted_at is not None:
        raise PostedEntryImmutable(f"Journal entry {entry.entry_number} has been posted and cannot be deleted")
    ensure_open(entry.period)

    entry_number = entry.entry_number
    await db.delete(entry)
    await db.flush()
    logger.info(f"Journal entry {entry_number} deleted")


async def list_entries(
    db: AsyncSession,
    search: Optional[str] = None,
    period_id: Optional[str] = None,
    status: Optional[JournalEntryStatus] = None,
    account_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: str = "date",
    sort_direction: str = "desc",
    page: int = 1,
    page_size: int = 25,
) -> tuple[list[JournalEntry], int]:
    """List entries with items loaded. Returns (entries, total matching count)."""
    if sort_by not in SORT_COLUMNS:
        raise ValidationError(
            f"Invalid sortBy '{sort_by}'",
            details={"allowed": sorted(SORT_COLUMNS)},
        )
    if sort_direction not in ("asc", "desc"):
        raise ValidationError("sortDirection must be 'asc' or 'desc'")

    filters = []
    if search:
        pattern = f"%{search.lower()}%"
        filters.append(or_(
            func.lower(JournalEntry.entry_number).like(pattern),
            func.lower(JournalEntry.description).like(pattern),
            func.lower(func.coalesce(JournalEntry.reference, "")).like(pattern),
        ))
    if period_id:
        filters.append(JournalEntry.period_id == period_id)
    if status is not None:
        filters.append(JournalEntry.status == status)
    if account_id:
        filters.append(JournalEntry.id.in_(
            select(JournalEntryItem.journal_entry_id).where(JournalEntryItem.account_id == account_id)
        ))
    if start_date:
        filters.append(JournalEntry.entry_date >= start_date)
    if end_date:
        filters.append(JournalEntry.entry_date <= end_date)

    count_result = await db.execute(
        select(func.count()).select_from(JournalEntry).where(*filters)
    )
    total = count_result.scalar() or 0

    column = SORT_COLUMNS[sort_by]
    order = column.asc() if sort_direction == "asc" else column.desc()
    query = (
        _entry_query()
        .where(*filters)
        .order_by(order, JournalEntry.entry_number.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    result = await db.execute(query)
    return list(result.scalars().unique().all()), total
