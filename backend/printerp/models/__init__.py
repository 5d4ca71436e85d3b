"""
SQLAlchemy models for PrintERP finance.
"""
from printerp.models.base import BaseModel, TimestampMixin, CreatedByMixin, Money, ZERO, generate_id, utcnow
from printerp.models.account import Account, AccountType, ACCOUNT_TYPE_ORDER, signed_amount
from printerp.models.financial_period import FinancialPeriod, PeriodStatus, PeriodType
from printerp.models.journal_entry import JournalEntry, JournalEntryStatus, JournalEntrySource
from printerp.models.journal_entry_item import JournalEntryItem
from printerp.models.entry_sequence import EntrySequence
from printerp.models.budget import Budget, BudgetItem, Department
from printerp.models.financial_transaction import FinancialTransaction, TransactionType, TransactionStatus
from printerp.models.order import Order
from printerp.models.payable import Vendor, VendorStatus, Bill, BillStatus, BillItem, BillPayment

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "CreatedByMixin",
    "Money",
    "ZERO",
    "generate_id",
    "utcnow",
    "Account",
    "AccountType",
    "ACCOUNT_TYPE_ORDER",
    "signed_amount",
    "FinancialPeriod",
    "PeriodStatus",
    "PeriodType",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalEntrySource",
    "JournalEntryItem",
    "EntrySequence",
    "Budget",
    "BudgetItem",
    "Department",
    "FinancialTransaction",
    "TransactionType",
    "TransactionStatus",
    "Order",
    "Vendor",
    "VendorStatus",
    "Bill",
    "BillStatus",
    "BillItem",
    "BillPayment",
]
