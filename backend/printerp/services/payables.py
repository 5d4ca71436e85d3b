"""
Accounts payable: vendors, bills and bill payments.

A bill posts its accrual when it is created: each item is debited to its
account and the total is credited to the payable account. Editing an unpaid
bill reverses that entry and posts a new one; cancelling the bill only
reverses it. Payments are cash EXPENSE transactions against the payable
account, so they reach the ledger through the cash service.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from printerp.core.config import settings
from printerp.core.errors import (
    AccountNotFound,
    BillNotEditable,
    BillNotFound,
    ValidationError,
    VendorNotFound,
)
from printerp.models.account import Account, AccountType
from printerp.models.base import ZERO, utcnow
from printerp.models.financial_period import FinancialPeriod
from printerp.models.financial_transaction import FinancialTransaction, TransactionType
from printerp.models.journal_entry import JournalEntry, JournalEntrySource, JournalEntryStatus
from printerp.models.payable import Bill, BillItem, BillPayment, BillStatus, Vendor, VendorStatus
from printerp.schemas.journal import JournalEntryCreate, JournalItemInput
from printerp.schemas.payable import (
    BillCreate,
    BillItemInput,
    BillPaymentCreate,
    BillUpdate,
    VendorCreate,
    VendorUpdate,
)
from printerp.schemas.transaction import TransactionCreate
from printerp.services.accounts import get_account, get_account_by_code
from printerp.services.cash import list_cash_accounts, record_transaction, resolve_counter_account
from printerp.services.periods import ensure_open, find_open_period_containing
from printerp.services.posting import cancel_entry, create_entry, get_entry, validate_items
from printerp.services.reports import money
from printerp.services.sequence import next_number

logger = logging.getLogger(__name__)

PAYABLE_CATEGORY = "ACCOUNTS_PAYABLE"
OVERDUE = "OVERDUE"
OPEN_STATUSES = (BillStatus.UNPAID, BillStatus.PARTIAL)
NEW_VENDOR_DAYS = 30
CENT = Decimal("0.01")


# Vendors

async def get_vendor(vendor_id: str, db: AsyncSession) -> Vendor:
    vendor = await db.get(Vendor, vendor_id)
    if vendor is None:
        raise VendorNotFound(f"Vendor {vendor_id} not found")
    return vendor


async def list_vendors(db: AsyncSession, include_inactive: bool = False) -> list[Vendor]:
    query = select(Vendor)
    if not include_inactive:
        query = query.where(Vendor.status == VendorStatus.ACTIVE)
    result = await db.execute(query.order_by(Vendor.name.asc()))
    return list(result.scalars().all())


async def _check_vendor_name(name: str, db: AsyncSession, exclude_id: Optional[str] = None) -> None:
    query = select(Vendor.id).where(func.lower(Vendor.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Vendor.id != exclude_id)
    result = await db.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise ValidationError(f"Vendor {name} already exists")


async def create_vendor(data: VendorCreate, db: AsyncSession) -> Vendor:
    await _check_vendor_name(data.name, db)

    vendor = Vendor(
        name=data.name,
        contact_name=data.contact_name,
        email=data.email,
        phone=data.phone,
        address=data.address,
        tax_id=data.tax_id,
        notes=data.notes,
        status=VendorStatus.ACTIVE,
    )
    db.add(vendor)
    await db.flush()

    logger.info(f"Vendor {vendor.name} created")
    return vendor


async def update_vendor(vendor_id: str, data: VendorUpdate, db: AsyncSession) -> Vendor:
    vendor = await get_vendor(vendor_id, db)

    if data.name is not None and data.name != vendor.name:
        await _check_vendor_name(data.name, db, exclude_id=vendor.id)

    for field in data.model_fields_set:
        value = getattr(data, field)
        if value is not None:
            setattr(vendor, field, value)

    await db.flush()
    return vendor


# Bills

def display_status(bill: Bill, today: Optional[date] = None) -> str:
    """Stored status, or OVERDUE for an open bill past its due date."""
    if bill.is_open and bill.due_date < (today or date.today()):
        return OVERDUE
    return bill.status.value


def _bill_query():
    return select(Bill).options(
        selectinload(Bill.items).selectinload(BillItem.account),
        selectinload(Bill.payments),
        selectinload(Bill.vendor),
    )


async def get_bill(bill_id: str, db: AsyncSession, for_update: bool = False) -> Bill:
    """Load a bill with its vendor, items and payments."""
    query = _bill_query().where(Bill.id == bill_id).execution_options(populate_existing=True)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    bill = result.scalar_one_or_none()
    if bill is None:
        raise BillNotFound(f"Bill {bill_id} not found")
    return bill


async def resolve_payable_account(db: AsyncSession) -> Account:
    """The configured payable account, else the lowest-coded active liability."""
    account = await get_account_by_code(settings.DEFAULT_PAYABLE_ACCOUNT_CODE, db)
    if account is not None and account.is_active and account.account_type == AccountType.LIABILITY:
        return account

    result = await db.execute(
        select(Account)
        .where(Account.account_type == AccountType.LIABILITY, Account.is_active == True)
        .order_by(Account.code.asc())
        .limit(1)
    )
    account = result.scalars().first()
    if account is None:
        raise AccountNotFound("No active LIABILITY account to post bills against")
    return account


def _line_amount(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)


async def _prepare_items(items: Sequence[BillItemInput], db: AsyncSession) -> list[BillItem]:
    if not items:
        raise ValidationError("A bill needs at least one item")

    default_account = None
    prepared = []
    for index, item in enumerate(items, start=1):
        if item.quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be greater than zero")
        if item.unit_price < 0:
            raise ValidationError(f"Item {index}: unit price must not be negative")
        if item.tax_rate < 0:
            raise ValidationError(f"Item {index}: tax rate must not be negative")

        account_id = item.account_id
        if account_id is None:
            if default_account is None:
                default_account = await resolve_counter_account(TransactionType.EXPENSE, db)
            account_id = default_account.id

        prepared.append(BillItem(
            line_number=index,
            account_id=account_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=_line_amount(item.quantity, item.unit_price),
            tax_rate=item.tax_rate,
        ))

    if _total(prepared) <= 0:
        raise ValidationError("Bill total must be greater than zero")
    return prepared


def _total(items: Iterable[BillItem]) -> Decimal:
    return sum((item.amount for item in items), ZERO)


def _accrual_lines(items: Sequence[BillItem], payable: Account) -> list[JournalItemInput]:
    lines = [
        JournalItemInput(account_id=item.account_id, description=item.description, debit=item.amount)
        for item in items
        if item.amount > 0
    ]
    lines.append(JournalItemInput(account_id=payable.id, description="Accounts payable", credit=_total(items)))
    return lines


def _check_dates(issue_date: date, due_date: date) -> None:
    if due_date < issue_date:
        raise ValidationError("Due date must be on or after the issue date")


def _check_vendor_active(vendor: Vendor) -> None:
    if not vendor.is_active:
        raise ValidationError(f"Vendor {vendor.name} is inactive")


async def _post_accrual(
    bill: Bill,
    vendor: Vendor,
    lines: list[JournalItemInput],
    period: FinancialPeriod,
    db: AsyncSession,
    user_id: Optional[str],
) -> JournalEntry:
    entry = await create_entry(
        JournalEntryCreate(
            entry_date=bill.issue_date,
            period_id=period.id,
            description=f"Bill {bill.bill_number} from {vendor.name}",
            reference=bill.bill_number,
            status=JournalEntryStatus.POSTED,
            items=lines,
        ),
        db,
        user_id=user_id,
        source_type=JournalEntrySource.BILL,
        source_id=bill.id,
    )
    bill.journal_entry_id = entry.id
    return entry


async def _accrual_to_reverse(bill: Bill, db: AsyncSession) -> Optional[JournalEntry]:
    """The bill's posted accrual entry, checked to be reversible, or None."""
    if bill.journal_entry_id is None:
        return None
    entry = await get_entry(bill.journal_entry_id, db)
    if entry.status != JournalEntryStatus.POSTED:
        return None
    ensure_open(entry.period)
    return entry


def _ensure_editable(bill: Bill, action: str) -> None:
    if bill.status == BillStatus.CANCELLED:
        raise BillNotEditable(f"Bill {bill.bill_number} is cancelled")
    if bill.status != BillStatus.UNPAID or (bill.paid_amount or ZERO) > 0:
        raise BillNotEditable(f"Paid or partially paid bills cannot be {action}")


async def create_bill(data: BillCreate, db: AsyncSession, user_id: Optional[str] = None) -> Bill:
    """
    Create a bill and post its accrual entry.

    The issue date must fall in an open period.

    Raises:
        VendorNotFound, ValidationError, AccountNotFound, PeriodNotFound,
        PeriodClosed
    """
    vendor = await get_vendor(data.vendor_id, db)
    _check_vendor_active(vendor)
    _check_dates(data.issue_date, data.due_date)

    items = await _prepare_items(data.items, db)
    lines = _accrual_lines(items, await resolve_payable_account(db))
    await validate_items(lines, db)
    period = await find_open_period_containing(data.issue_date, db)

    bill_number = await next_number(settings.BILL_NUMBER_PREFIX, data.issue_date, db)
    bill = Bill(
        bill_number=bill_number,
        vendor_id=vendor.id,
        issue_date=data.issue_date,
        due_date=data.due_date,
        status=BillStatus.UNPAID,
        description=data.description,
        reference=data.reference,
        notes=data.notes,
        total_amount=_total(items),
        paid_amount=ZERO,
        created_by_id=user_id,
        items=items,
    )
    db.add(bill)
    await db.flush()

    await _post_accrual(bill, vendor, lines, period, db, user_id)
    await db.flush()

    logger.info(f"Bill {bill.bill_number} created for {vendor.name} ({bill.total_amount})")
    return await get_bill(bill.id, db)


async def update_bill(
    bill_id: str,
    data: BillUpdate,
    db: AsyncSession,
    user_id: Optional[str] = None,
) -> Bill:
    """
    Update an unpaid bill.

    Changing the items, the issue date or the vendor reverses the accrual
    entry and posts a new one.
    """
    bill = await get_bill(bill_id, db, for_update=True)
    _ensure_editable(bill, "edited")

    vendor = bill.vendor
    if data.vendor_id is not None and data.vendor_id != bill.vendor_id:
        vendor = await get_vendor(data.vendor_id, db)
        _check_vendor_active(vendor)

    issue_date = data.issue_date or bill.issue_date
    due_date = data.due_date or bill.due_date
    _check_dates(issue_date, due_date)

    items = await _prepare_items(data.items, db) if data.items is not None else None
    reaccrue = items is not None or issue_date != bill.issue_date or vendor.id != bill.vendor_id

    if reaccrue:
        lines = _accrual_lines(items if items is not None else bill.items, await resolve_payable_account(db))
        await validate_items(lines, db)
        period = await find_open_period_containing(issue_date, db)
        previous = await _accrual_to_reverse(bill, db)
        if previous is not None:
            await cancel_entry(previous.id, db, user_id=user_id)

    bill.vendor_id = vendor.id
    bill.vendor = vendor
    bill.issue_date = issue_date
    bill.due_date = due_date
    if data.description is not None:
        bill.description = data.description
    if data.reference is not None:
        bill.reference = data.reference
    if data.notes is not None:
        bill.notes = data.notes

    if items is not None:
        bill.items.clear()
        await db.flush()
        bill.items.extend(items)
        bill.total_amount = _total(items)
    await db.flush()

    if reaccrue:
        await _post_accrual(bill, vendor, lines, period, db, user_id)
        await db.flush()

    logger.info(f"Bill {bill.bill_number} updated{' and re-accrued' if reaccrue else ''}")
    return await get_bill(bill.id, db)


async def cancel_bill(bill_id: str, db: AsyncSession, user_id: Optional[str] = None) -> Bill:
    """Cancel an unpaid bill, reversing its accrual entry."""
    bill = await get_bill(bill_id, db, for_update=True)
    _ensure_editable(bill, "cancelled")

    accrual = await _accrual_to_reverse(bill, db)
    if accrual is not None:
        await cancel_entry(accrual.id, db, user_id=user_id)

    bill.status = BillStatus.CANCELLED
    await db.flush()

    logger.info(f"Bill {bill.bill_number} cancelled")
    return await get_bill(bill.id, db)


async def list_bills(
    db: AsyncSession,
    search: Optional[str] = None,
    vendor_id: Optional[str] = None,
    status: Optional[str] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Bill], int]:
    """
    List bills, newest issue date first.

    ``status`` is a stored status or OVERDUE (open bills past their due
    date). Returns (bills, total matching count).
    """
    today = today or date.today()

    filters = []
    if search:
        pattern = f"%{search.lower()}%"
        filters.append(or_(
            func.lower(Bill.bill_number).like(pattern),
            func.lower(func.coalesce(Bill.description, "")).like(pattern),
            func.lower(func.coalesce(Bill.reference, "")).like(pattern),
            Bill.vendor_id.in_(select(Vendor.id).where(func.lower(Vendor.name).like(pattern))),
        ))
    if vendor_id:
        filters.append(Bill.vendor_id == vendor_id)
    if status == OVERDUE:
        filters.extend([Bill.status.in_(OPEN_STATUSES), Bill.due_date < today])
    elif status:
        try:
            filters.append(Bill.status == BillStatus(status))
        except ValueError:
            raise ValidationError(
                f"Invalid status '{status}'",
                details={"allowed": [s.value for s in BillStatus] + [OVERDUE]},
            )
    if from_date:
        filters.append(Bill.issue_date >= from_date)
    if to_date:
        filters.append(Bill.issue_date <= to_date)

    count_result = await db.execute(select(func.count()).select_from(Bill).where(*filters))
    total = count_result.scalar() or 0

    result = await db.execute(
        _bill_query()
        .where(*filters)
        .order_by(Bill.issue_date.desc(), Bill.bill_number.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().unique().all()), total


@dataclass
class PayablesSummary:
    total_payable: Decimal
    overdue: Decimal
    due_soon: Decimal
    overdue_count: int
    due_soon_count: int
    vendor_count: int
    new_vendor_count: int


async def _outstanding(db: AsyncSession, *conditions) -> tuple[int, Decimal]:
    result = await db.execute(
        select(func.count(), func.sum(Bill.total_amount - Bill.paid_amount))
        .where(Bill.status.in_(OPEN_STATUSES), *conditions)
    )
    count, amount = result.one()
    return count or 0, money(amount)


async def payables_summary(db: AsyncSession, today: Optional[date] = None) -> PayablesSummary:
    """Outstanding, overdue and due-soon amounts over all open bills, plus vendor counts."""
    today = today or date.today()
    due_soon_end = today + timedelta(days=settings.BILL_DUE_SOON_DAYS)

    _, total_payable = await _outstanding(db)
    overdue_count, overdue = await _outstanding(db, Bill.due_date < today)
    due_soon_count, due_soon = await _outstanding(db, Bill.due_date >= today, Bill.due_date <= due_soon_end)

    vendor_count = await db.execute(
        select(func.count()).select_from(Vendor).where(Vendor.status == VendorStatus.ACTIVE)
    )
    new_vendor_count = await db.execute(
        select(func.count()).select_from(Vendor).where(
            Vendor.status == VendorStatus.ACTIVE,
            Vendor.created >= utcnow() - timedelta(days=NEW_VENDOR_DAYS),
        )
    )

    return PayablesSummary(
        total_payable=total_payable,
        overdue=overdue,
        due_soon=due_soon,
        overdue_count=overdue_count,
        due_soon_count=due_soon_count,
        vendor_count=vendor_count.scalar() or 0,
        new_vendor_count=new_vendor_count.scalar() or 0,
    )


# Payments

async def _payment_account(account_id: Optional[str], db: AsyncSession) -> Account:
    if account_id is not None:
        return await get_account(account_id, db)

    accounts = await list_cash_accounts(db)
    if not accounts:
        raise ValidationError("No cash or bank account to pay from")
    return accounts[0]


async def record_bill_payment(
    bill_id: str,
    data: BillPaymentCreate,
    db: AsyncSession,
    user_id: Optional[str] = None,
) -> tuple[BillPayment, FinancialTransaction]:
    """
    Pay a bill, fully or in part.

    The payment is recorded as a cash EXPENSE transaction (category
    ACCOUNTS_PAYABLE) that debits the payable account and credits the cash
    account. As with any cash transaction, its journal entry is best-effort
    and the transaction stays PENDING when it cannot be posted.

    Raises:
        BillNotFound, BillNotEditable, ValidationError, AccountNotFound
    """
    if data.amount is None or data.amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    bill = await get_bill(bill_id, db, for_update=True)
    if bill.status == BillStatus.CANCELLED:
        raise BillNotEditable(f"Bill {bill.bill_number} is cancelled")
    if bill.status == BillStatus.PAID:
        raise BillNotEditable(f"Bill {bill.bill_number} is already paid")

    remaining = bill.remaining_amount
    if data.amount > remaining:
        raise ValidationError(
            f"Payment amount must be between 0 and {remaining}",
            details={"remainingAmount": str(remaining)},
        )

    cash_account = await _payment_account(data.account_id, db)
    payable = await resolve_payable_account(db)

    transaction = await record_transaction(
        TransactionCreate(
            transaction_type=TransactionType.EXPENSE,
            amount=data.amount,
            description=f"Payment for bill #{bill.bill_number}",
            category=PAYABLE_CATEGORY,
            transaction_date=data.payment_date,
            payment_method=data.payment_method,
            reference_number=data.payment_reference or bill.bill_number,
            account_id=cash_account.id,
            counter_account_id=payable.id,
            notes=data.notes,
        ),
        db,
        user_id=user_id,
    )

    payment = BillPayment(
        bill_id=bill.id,
        amount=data.amount,
        payment_date=data.payment_date,
        payment_method=data.payment_method,
        payment_reference=data.payment_reference,
        notes=data.notes,
        transaction_id=transaction.id,
        created_by_id=user_id,
    )
    db.add(payment)

    bill.paid_amount = (bill.paid_amount or ZERO) + data.amount
    bill.status = BillStatus.PAID if bill.remaining_amount <= 0 else BillStatus.PARTIAL
    await db.flush()

    logger.info(
        f"Payment of {data.amount} recorded for bill {bill.bill_number} "
        f"({bill.status.value}, transaction {transaction.transaction_number})"
    )
    return payment, transaction
