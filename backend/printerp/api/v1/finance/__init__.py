"""
Finance module - General ledger and cash management.

This module handles:
- Chart of Accounts
- Financial periods
- Journal Entries (double-entry bookkeeping)
- Reports (trial balance, income statement, budget vs actual)
- Budgets and departments
- Cash transactions and receivable payments
- Vendors, bills and bill payments (payables)
"""
from fastapi import APIRouter

from printerp.api.v1.finance.accounts import router as accounts_router
from printerp.api.v1.finance.periods import router as periods_router
from printerp.api.v1.finance.journal import router as journal_router
from printerp.api.v1.finance.reports import router as reports_router
from printerp.api.v1.finance.budgets import router as budgets_router
from printerp.api.v1.finance.cash import router as cash_router
from printerp.api.v1.finance.receivables import router as receivables_router
from printerp.api.v1.finance.payables import router as payables_router

# Create the finance router for v1 API endpoints
finance_router = APIRouter(prefix="/finance", tags=["finance"])

# Routes will be: /api/v1/finance/accounts, /api/v1/finance/journal-entries, ...
finance_router.include_router(accounts_router)
finance_router.include_router(periods_router)
finance_router.include_router(journal_router)
finance_router.include_router(reports_router)
finance_router.include_router(budgets_router)
finance_router.include_router(cash_router)
finance_router.include_router(receivables_router)
finance_router.include_router(payables_router)

__all__ = [
    "finance_router",
]
