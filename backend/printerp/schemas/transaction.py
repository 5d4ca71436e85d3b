"""
Pydantic schemas for cash management endpoints.
"""
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from printerp.models.financial_transaction import TransactionType, TransactionStatus
from printerp.schemas.common import CamelModel, Pagination
from printerp.schemas.account import AccountResponse


class TransactionCreate(CamelModel):
    transaction_type: TransactionType = Field(..., alias="type")
    amount: Decimal
    description: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    transaction_date: date = Field(..., alias="date")
    payment_method: Optional[str] = Field(None, max_length=50)
    reference_number: Optional[str] = Field(None, max_length=100)
    account_id: str
    counter_account_id: Optional[str] = None
    notes: Optional[str] = None


class TransactionResponse(CamelModel):
    id: str
    transaction_number: str
    transaction_type: TransactionType = Field(..., alias="type")
    amount: Decimal
    description: str
    category: Optional[str] = None
    transaction_date: date = Field(..., alias="date")
    status: TransactionStatus
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    account_id: str
    counter_account_id: Optional[str] = None
    journal_entry_id: Optional[str] = None
    notes: Optional[str] = None
    created_by_id: Optional[str] = None
    created: datetime


class TransactionCreateResponse(CamelModel):
    success: bool = True
    transaction: TransactionResponse


class TransactionListResponse(CamelModel):
    transactions: list[TransactionResponse]
    pagination: Pagination


class CashFlowDay(CamelModel):
    day: date = Field(..., alias="date")
    inflow: Decimal
    outflow: Decimal
    net_flow: Decimal


class CashSummary(CamelModel):
    total_cash_balance: Decimal
    period_inflows: Decimal
    period_outflows: Decimal
    net_cash_flow: Decimal
    inflow_count: int
    outflow_count: int


class CashSummaryResponse(CamelModel):
    start_date: date
    end_date: date
    summary: CashSummary
    cash_accounts: list[AccountResponse]
    recent_transactions: list[TransactionResponse]
    cash_flow_by_day: list[CashFlowDay]
