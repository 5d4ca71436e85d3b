"""
Financial reports computed from posted history.

Posted history is every entry that has been posted at some point: POSTED
entries, cancelled postings and their reversing entries. A cancelled
posting and its reversal net to zero, so reports always agree with the
running account balances.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from printerp.core.errors import ValidationError
from printerp.models.account import Account, AccountType, ACCOUNT_TYPE_ORDER, signed_amount
from printerp.models.budget import Budget, BudgetItem
from printerp.models.journal_entry import JournalEntry
from printerp.models.journal_entry_item import JournalEntryItem
from printerp.services.periods import get_period

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Normalize a database aggregate to a 2-place Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(part: Decimal, whole: Decimal) -> int:
    if whole == 0:
        return 0
    return int((part / whole * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def posted_totals(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    period_id: Optional[str] = None,
    account_ids: Optional[set[str]] = None,
) -> dict[str, tuple[Decimal, Decimal]]:
    """
    Sum posted debits and credits per account.

    Returns:
        {account_id: (total debit, total credit)}
    """
    query = (
        select(
            JournalEntryItem.account_id,
            func.sum(JournalEntryItem.debit),
            func.sum(JournalEntryItem.credit),
        )
        .join(JournalEntry, JournalEntry.id == JournalEntryItem.journal_entry_id)
        .where(JournalEntry.posted_at.is_not(None))
        .group_by(JournalEntryItem.account_id)
    )
    if start_date is not None:
        query = query.where(JournalEntry.entry_date >= start_date)
    if end_date is not None:
        query = query.where(JournalEntry.entry_date <= end_date)
    if period_id is not None:
        query = query.where(JournalEntry.period_id == period_id)
    if account_ids is not None:
        query = query.where(JournalEntryItem.account_id.in_(account_ids))

    result = await db.execute(query)
    return {
        account_id: (money(debit), money(credit))
        for account_id, debit, credit in result.all()
    }


async def _all_accounts(db: AsyncSession) -> list[Account]:
    result = await db.execute(select(Account))
    accounts = list(result.scalars().all())
    accounts.sort(key=lambda a: (ACCOUNT_TYPE_ORDER[a.account_type], a.code))
    return accounts


# Trial balance

@dataclass
class TrialBalanceLine:
    account_id: str
    code: str
    name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass
class TrialBalance:
    accounts: list[TrialBalanceLine]
    total_debit: Decimal
    total_credit: Decimal
    as_of_date: date
    period_id: Optional[str] = None
    period_name: Optional[str] = None


async def compute_trial_balance(
    db: AsyncSession,
    as_of_date: Optional[date] = None,
    period_id: Optional[str] = None,
) -> TrialBalance:
    """
    Trial balance as of a date (cumulative) or for a single period.

    Each account's net movement lands in the debit or the credit column, so
    the column totals agree whenever every posted entry balances.
    """
    period = None
    if period_id is not None:
        period = await get_period(period_id, db)
        totals = await posted_totals(db, period_id=period.id)
        as_of_date = period.end_date
    elif as_of_date is not None:
        totals = await posted_totals(db, end_date=as_of_date)
    else:
        raise ValidationError("Either asOfDate or periodId is required")

    lines = []
    total_debit = ZERO
    total_credit = ZERO
    for account in await _all_accounts(db):
        debit_sum, credit_sum = totals.get(account.id, (ZERO, ZERO))
        has_activity = account.id in totals
        if not account.is_active and not has_activity:
            continue

        net = debit_sum - credit_sum
        debit = net if net > 0 else ZERO
        credit = -net if net < 0 else ZERO
        total_debit += debit
        total_credit += credit

        lines.append(TrialBalanceLine(
            account_id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            debit=debit,
            credit=credit,
            balance=signed_amount(account.account_type, debit_sum, credit_sum),
        ))

    return TrialBalance(
        accounts=lines,
        total_debit=total_debit,
        total_credit=total_credit,
        as_of_date=as_of_date,
        period_id=period.id if period else None,
        period_name=period.name if period else None,
    )


# Income statement

@dataclass
class IncomeStatementLine:
    account_id: str
    code: str
    name: str
    amount: Decimal


@dataclass
class IncomeStatementSection:
    start_date: date
    end_date: date
    revenue: list[IncomeStatementLine]
    expenses: list[IncomeStatementLine]
    total_revenue: Decimal
    total_expenses: Decimal

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses


@dataclass
class IncomeStatement:
    current: IncomeStatementSection
    previous: Optional[IncomeStatementSection] = None
    period_id: Optional[str] = None
    period_name: Optional[str] = None


async def _income_section(start_date: date, end_date: date, db: AsyncSession) -> IncomeStatementSection:
    totals = await posted_totals(db, start_date=start_date, end_date=end_date)

    revenue, expenses = [], []
    for account in await _all_accounts(db):
        if account.account_type not in (AccountType.REVENUE, AccountType.EXPENSE):
            continue
        debit_sum, credit_sum = totals.get(account.id, (ZERO, ZERO))
        amount = signed_amount(account.account_type, debit_sum, credit_sum)
        if not account.is_active and amount == 0:
            continue

        line = IncomeStatementLine(account.id, account.code, account.name, amount)
        if account.account_type == AccountType.REVENUE:
            revenue.append(line)
        else:
            expenses.append(line)

    return IncomeStatementSection(
        start_date=start_date,
        end_date=end_date,
        revenue=revenue,
        expenses=expenses,
        total_revenue=sum((line.amount for line in revenue), ZERO),
        total_expenses=sum((line.amount for line in expenses), ZERO),
    )


async def compute_income_statement(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    period_id: Optional[str] = None,
    compare_to_previous: bool = False,
) -> IncomeStatement:
    """
    Revenue and expenses for a date range or a period.

    With ``compare_to_previous`` the window of equal length ending the day
    before ``start_date`` is computed as well.
    """
    period = None
    if period_id is not None:
        period = await get_period(period_id, db)
        start_date, end_date = period.start_date, period.end_date
    elif start_date is None or end_date is None:
        raise ValidationError("Either startDate and endDate, or periodId, is required")

    if start_date > end_date:
        raise ValidationError("startDate must be on or before endDate")

    statement = IncomeStatement(
        current=await _income_section(start_date, end_date, db),
        period_id=period.id if period else None,
        period_name=period.name if period else None,
    )

    if compare_to_previous:
        length = end_date - start_date
        previous_end = start_date - timedelta(days=1)
        statement.previous = await _income_section(previous_end - length, previous_end, db)

    return statement


# Budget vs actual

@dataclass
class BudgetVarianceLine:
    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    budget_amount: Decimal
    actual_amount: Decimal

    @property
    def variance(self) -> Decimal:
        return self.budget_amount - self.actual_amount

    @property
    def variance_percentage(self) -> int:
        return percentage(self.variance, self.budget_amount)


@dataclass
class BudgetVsActual:
    year: int
    department_id: Optional[str]
    rows: list[BudgetVarianceLine]

    @property
    def budget_amount(self) -> Decimal:
        return sum((row.budget_amount for row in self.rows), ZERO)

    @property
    def actual_amount(self) -> Decimal:
        return sum((row.actual_amount for row in self.rows), ZERO)

    @property
    def variance(self) -> Decimal:
        return self.budget_amount - self.actual_amount

    @property
    def variance_percentage(self) -> int:
        return percentage(self.variance, self.budget_amount)


async def compute_budget_vs_actual(
    year: int,
    db: AsyncSession,
    department_id: Optional[str] = None,
) -> BudgetVsActual:
    """
    Compare budgeted amounts with posted actuals for a calendar year.

    Budget items are grouped by account over all budgets of the year
    (optionally one department). Actuals are signed per account type.
    Accounts without a budget item are not reported.
    """
    query = (
        select(Budget)
        .options(selectinload(Budget.items).selectinload(BudgetItem.account))
        .where(Budget.year == year)
    )
    if department_id is not None:
        query = query.where(Budget.department_id == department_id)
    result = await db.execute(query)
    budgets = result.scalars().unique().all()

    budgeted: dict[str, Decimal] = {}
    accounts: dict[str, Account] = {}
    for budget in budgets:
        for item in budget.items:
            budgeted[item.account_id] = budgeted.get(item.account_id, ZERO) + money(item.amount)
            accounts[item.account_id] = item.account

    rows = []
    if budgeted:
        totals = await posted_totals(
            db,
            start_date=date(year, 1, 1),
            end_date=date(year, 12, 31),
            account_ids=set(budgeted),
        )
        for account_id, budget_amount in budgeted.items():
            account = accounts[account_id]
            debit_sum, credit_sum = totals.get(account_id, (ZERO, ZERO))
            rows.append(BudgetVarianceLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                budget_amount=budget_amount,
                actual_amount=signed_amount(account.account_type, debit_sum, credit_sum),
            ))
        rows.sort(key=lambda row: row.account_code)

    return BudgetVsActual(year=year, department_id=department_id, rows=rows)
