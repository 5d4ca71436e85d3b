"""
Cash management service.

A cash transaction never writes an account balance itself. INCOME and
EXPENSE transactions produce one balanced POSTED journal entry through the
posting engine; PAYOUT transactions are recorded only.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.config import settings
from printerp.core.errors import AccountNotFound, LedgerError, ValidationError
from printerp.models.account import Account, AccountType
from printerp.models.financial_transaction import (
    FinancialTransaction,
    TransactionStatus,
    TransactionType,
)
from printerp.models.journal_entry import JournalEntrySource, JournalEntryStatus
from printerp.schemas.journal import JournalEntryCreate, JournalItemInput
from printerp.schemas.transaction import TransactionCreate
from printerp.services.accounts import get_account, get_account_by_code
from printerp.services.periods import find_open_period_containing
from printerp.services.posting import create_entry
from printerp.services.sequence import next_number

logger = logging.getLogger(__name__)

CASH_SUBTYPES = ("cash", "bank")
INFLOW_TYPES = (TransactionType.INCOME,)
OUTFLOW_TYPES = (TransactionType.EXPENSE, TransactionType.PAYOUT)


async def resolve_counter_account(
    transaction_type: TransactionType,
    db: AsyncSession,
    counter_account_id: Optional[str] = None,
) -> Account:
    """
    Pick the revenue (INCOME) or expense (EXPENSE) side of a cash entry.

    Order: explicit id, the configured default code, then the lowest-coded
    active account of the matching type.
    """
    if counter_account_id is not None:
        return await get_account(counter_account_id, db)

    if transaction_type == TransactionType.INCOME:
        account_type = AccountType.REVENUE
        default_code = settings.DEFAULT_REVENUE_ACCOUNT_CODE
    else:
        account_type = AccountType.EXPENSE
        default_code = settings.DEFAULT_EXPENSE_ACCOUNT_CODE

    account = await get_account_by_code(default_code, db)
    if account is not None and account.is_active and account.account_type == account_type:
        return account

    result = await db.execute(
        select(Account)
        .where(Account.account_type == account_type, Account.is_active == True)
        .order_by(Account.code.asc())
        .limit(1)
    )
    account = result.scalars().first()
    if account is None:
        raise AccountNotFound(f"No active {account_type.value} account to post against")
    return account


async def _post_journal_entry(
    transaction: FinancialTransaction,
    cash_account: Account,
    db: AsyncSession,
    user_id: Optional[str],
) -> None:
    counter = await resolve_counter_account(
        transaction.transaction_type, db, transaction.counter_account_id
    )
    period = await find_open_period_containing(transaction.transaction_date, db)

    amount = transaction.amount
    if transaction.transaction_type == TransactionType.INCOME:
        debit_account, credit_account = cash_account, counter
    else:
        debit_account, credit_account = counter, cash_account

    entry = await create_entry(
        JournalEntryCreate(
            entry_date=transaction.transaction_date,
            period_id=period.id,
            description=transaction.description,
            reference=transaction.transaction_number,
            status=JournalEntryStatus.POSTED,
            items=[
                JournalItemInput(account_id=debit_account.id, description=transaction.description, debit=amount),
                JournalItemInput(account_id=credit_account.id, description=transaction.description, credit=amount),
            ],
        ),
        db,
        user_id=user_id,
        source_type=JournalEntrySource.CASH_TRANSACTION,
        source_id=transaction.id,
    )
    transaction.counter_account_id = counter.id
    transaction.journal_entry_id = entry.id


async def record_transaction(
    data: TransactionCreate,
    db: AsyncSession,
    user_id: Optional[str] = None,
) -> FinancialTransaction:
    """
    Record a cash transaction.

    The journal entry for INCOME/EXPENSE is best-effort: when it cannot be
    posted (no open period, no counter account, ...) the savepoint is rolled
    back, a warning is logged and the transaction is kept as PENDING.
    """
    if data.amount is None or data.amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    cash_account = await get_account(data.account_id, db)
    if not cash_account.is_active:
        raise ValidationError(f"Account {cash_account.code} is inactive")
    if data.counter_account_id is not None:
        await get_account(data.counter_account_id, db)

    transaction_number = await next_number(
        settings.TRANSACTION_NUMBER_PREFIX, data.transaction_date, db
    )
    transaction = FinancialTransaction(
        transaction_number=transaction_number,
        transaction_type=data.transaction_type,
        amount=data.amount,
        description=data.description,
        category=data.category,
        transaction_date=data.transaction_date,
        status=TransactionStatus.COMPLETED,
        payment_method=data.payment_method,
        reference_number=data.reference_number,
        account_id=cash_account.id,
        counter_account_id=data.counter_account_id,
        notes=data.notes,
        created_by_id=user_id,
    )
    db.add(transaction)
    await db.flush()

    if transaction.transaction_type != TransactionType.PAYOUT:
        try:
            async with db.begin_nested():
                await _post_journal_entry(transaction, cash_account, db, user_id)
        except (LedgerError, SQLAlchemyError) as e:
            logger.warning(
                f"Journal entry for cash transaction {transaction.transaction_number} "
                f"was not posted: {e}"
            )
            transaction.status = TransactionStatus.PENDING
            transaction.journal_entry_id = None
            transaction.counter_account_id = data.counter_account_id

    await db.flush()
    await db.refresh(transaction)
    logger.info(
        f"Cash transaction {transaction.transaction_number} recorded "
        f"({transaction.transaction_type.value} {transaction.amount}, {transaction.status.value})"
    )
    return transaction


async def list_transactions(
    db: AsyncSession,
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    page_size: int = 25,
) -> tuple[list[FinancialTransaction], int]:
    filters = []
    if transaction_type is not None:
        filters.append(FinancialTransaction.transaction_type == transaction_type)
    if start_date is not None:
        filters.append(FinancialTransaction.transaction_date >= start_date)
    if end_date is not None:
        filters.append(FinancialTransaction.transaction_date <= end_date)

    count_result = await db.execute(
        select(func.count()).select_from(FinancialTransaction).where(*filters)
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        select(FinancialTransaction)
        .where(*filters)
        .order_by(FinancialTransaction.transaction_date.desc(), FinancialTransaction.created.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


def summary_range(
    range_name: str,
    today: date,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> tuple[date, date]:
    """Resolve a named reporting window ending today into (start, end)."""
    if range_name == "week":
        return today - timedelta(days=7), today
    if range_name == "month":
        return today - relativedelta(months=1), today
    if range_name == "quarter":
        return today - relativedelta(months=3), today
    if range_name == "year":
        return today - relativedelta(years=1), today
    if range_name == "custom":
        end = to_date or today
        start = from_date or end - relativedelta(months=1)
        if start > end:
            raise ValidationError("'from' must be on or before 'to'")
        return start, end
    raise ValidationError(
        f"Invalid range '{range_name}'",
        details={"allowed": ["week", "month", "quarter", "year", "custom"]},
    )


@dataclass
class CashFlowDay:
    day: date
    inflow: Decimal
    outflow: Decimal

    @property
    def net_flow(self) -> Decimal:
        return self.inflow - self.outflow


@dataclass
class CashSummary:
    start_date: date
    end_date: date
    cash_accounts: list[Account]
    total_cash_balance: Decimal
    period_inflows: Decimal
    period_outflows: Decimal
    inflow_count: int
    outflow_count: int
    recent_transactions: list[FinancialTransaction]
    cash_flow_by_day: list[CashFlowDay]

    @property
    def net_cash_flow(self) -> Decimal:
        return self.period_inflows - self.period_outflows


async def list_cash_accounts(db: AsyncSession) -> list[Account]:
    result = await db.execute(
        select(Account)
        .where(
            Account.account_type == AccountType.ASSET,
            Account.is_active == True,
            func.lower(Account.subtype).in_(CASH_SUBTYPES),
        )
        .order_by(Account.code.asc())
    )
    return list(result.scalars().all())


async def cash_summary(
    db: AsyncSession,
    range_name: str = "month",
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    today: Optional[date] = None,
    recent_limit: int = 10,
) -> CashSummary:
    """Balances of cash accounts and cash movement within a window."""
    start_date, end_date = summary_range(range_name, today or date.today(), from_date, to_date)

    accounts = await list_cash_accounts(db)
    total_balance = sum((account.balance or Decimal("0") for account in accounts), Decimal("0"))

    result = await db.execute(
        select(FinancialTransaction)
        .where(
            FinancialTransaction.transaction_date >= start_date,
            FinancialTransaction.transaction_date <= end_date,
        )
        .order_by(FinancialTransaction.transaction_date.desc(), FinancialTransaction.created.desc())
    )
    transactions = list(result.scalars().all())

    inflows = [t for t in transactions if t.transaction_type in INFLOW_TYPES]
    outflows = [t for t in transactions if t.transaction_type in OUTFLOW_TYPES]

    days = []
    for offset in range(6, -1, -1):
        day = end_date - timedelta(days=offset)
        days.append(CashFlowDay(
            day=day,
            inflow=sum((t.amount for t in inflows if t.transaction_date == day), Decimal("0")),
            outflow=sum((t.amount for t in outflows if t.transaction_date == day), Decimal("0")),
        ))

    return CashSummary(
        start_date=start_date,
        end_date=end_date,
        cash_accounts=accounts,
        total_cash_balance=total_balance,
        period_inflows=sum((t.amount for t in inflows), Decimal("0")),
        period_outflows=sum((t.amount for t in outflows), Decimal("0")),
        inflow_count=len(inflows),
        outflow_count=len(outflows),
        recent_transactions=transactions[:recent_limit],
        cash_flow_by_day=days,
    )
