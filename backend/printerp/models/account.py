"""
Chart of Accounts model for double-entry bookkeeping.
"""
from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, Money

if TYPE_CHECKING:
    from printerp.models.journal_entry_item import JournalEntryItem


class AccountType(str, Enum):
    """Standard account types for double-entry bookkeeping."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


# Presentation order used by the trial balance
ACCOUNT_TYPE_ORDER = {
    AccountType.ASSET: 0,
    AccountType.LIABILITY: 1,
    AccountType.EQUITY: 2,
    AccountType.REVENUE: 3,
    AccountType.EXPENSE: 4,
}

DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def signed_amount(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Net effect of a debit/credit pair on an account of the given type."""
    if account_type in DEBIT_NORMAL_TYPES:
        return debit - credit
    return credit - debit


class Account(BaseModel):
    """
    Chart of Accounts model.

    ``balance`` is a running total maintained by the posting engine; it is
    never written from request payloads.
    """
    __tablename__ = "accounts"

    # Account code (e.g., "1000", "1100", "4000")
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    account_type: Mapped[AccountType] = mapped_column(
        SQLEnum(
            AccountType,
            name="accounttype",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        index=True
    )

    # Free-text classification, e.g. "Cash", "Bank", "Accounts Receivable"
    subtype: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0")
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    journal_items: Mapped[list["JournalEntryItem"]] = relationship(
        "JournalEntryItem",
        back_populates="account"
    )

    def __repr__(self) -> str:
        return f"<Account {self.code} - {self.name}>"

    @property
    def is_debit_positive(self) -> bool:
        """Returns True if this account type increases with debits."""
        return self.account_type in DEBIT_NORMAL_TYPES

    def signed_amount(self, debit: Decimal, credit: Decimal) -> Decimal:
        return signed_amount(self.account_type, debit, credit)
