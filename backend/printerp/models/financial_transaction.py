"""
Cash transaction model.
"""
from typing import Optional, TYPE_CHECKING
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Date, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, CreatedByMixin, Money

if TYPE_CHECKING:
    from printerp.models.account import Account
    from printerp.models.journal_entry import JournalEntry


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    PAYOUT = "PAYOUT"


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"


class FinancialTransaction(BaseModel, CreatedByMixin):
    """
    A cash movement recorded against a cash or bank account.

    Account balances are never written from here; INCOME and EXPENSE rows
    link to the journal entry that carried their effect. A PENDING row has
    no journal entry yet.
    """
    __tablename__ = "financial_transactions"

    transaction_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(
            TransactionType,
            name="transactiontype",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(
            TransactionStatus,
            name="transactionstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=TransactionStatus.COMPLETED
    )

    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    account_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    counter_account_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True
    )
    journal_entry_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("journal_entries.id", ondelete="SET NULL"),
        nullable=True
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    account: Mapped["Account"] = relationship("Account", foreign_keys=[account_id])
    counter_account: Mapped[Optional["Account"]] = relationship("Account", foreign_keys=[counter_account_id])
    journal_entry: Mapped[Optional["JournalEntry"]] = relationship("JournalEntry")

    def __repr__(self) -> str:
        return f"<FinancialTransaction {self.transaction_number} {self.transaction_type.value} {self.amount}>"
