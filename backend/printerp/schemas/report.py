"""
Pydantic schemas for finance reports.
"""
from typing import Optional
from datetime import date
from decimal import Decimal
from pydantic import Field

from printerp.models.account import AccountType
from printerp.schemas.common import CamelModel


class TrialBalanceRow(CamelModel):
    account_id: str
    code: str
    name: str
    account_type: AccountType = Field(..., alias="type")
    debit: Decimal
    credit: Decimal
    balance: Decimal


class TrialBalanceTotals(CamelModel):
    debit: Decimal
    credit: Decimal


class TrialBalanceResponse(CamelModel):
    accounts: list[TrialBalanceRow]
    totals: TrialBalanceTotals
    as_of_date: date
    period_id: Optional[str] = None
    period_name: Optional[str] = None


class IncomeStatementLine(CamelModel):
    account_id: str
    code: str
    name: str
    amount: Decimal


class IncomeStatementSection(CamelModel):
    start_date: date
    end_date: date
    revenue: list[IncomeStatementLine]
    expenses: list[IncomeStatementLine]
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


class IncomeStatementResponse(CamelModel):
    current: IncomeStatementSection
    previous: Optional[IncomeStatementSection] = None
    period_id: Optional[str] = None
    period_name: Optional[str] = None


class BudgetVsActualRow(CamelModel):
    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    budget_amount: Decimal
    actual_amount: Decimal
    variance: Decimal
    variance_percentage: int


class BudgetVsActualTotals(CamelModel):
    budget_amount: Decimal
    actual_amount: Decimal
    variance: Decimal
    variance_percentage: int


class BudgetVsActualResponse(CamelModel):
    year: int
    department_id: Optional[str] = None
    rows: list[BudgetVsActualRow]
    totals: BudgetVsActualTotals
