"""
Journal Entry model for double-entry bookkeeping.
"""
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, ForeignKey, Date, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, CreatedByMixin

if TYPE_CHECKING:
    from printerp.models.financial_period import FinancialPeriod
    from printerp.models.journal_entry_item import JournalEntryItem


class JournalEntryStatus(str, Enum):
    """Status of a journal entry."""
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    CANCELLED = "CANCELLED"


class JournalEntrySource(str, Enum):
    MANUAL = "manual"
    CASH_TRANSACTION = "cash_transaction"
    BILL = "bill"
    REVERSAL = "reversal"


class JournalEntry(BaseModel, CreatedByMixin):
    """
    Journal Entry model.

    Represents a journal entry (accounting transaction) with multiple items.
    Each journal entry must balance (total debits = total credits).
    """
    __tablename__ = "journal_entries"

    # Allocated from the entry_sequences counter, e.g. JE-20240115-001
    entry_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[JournalEntryStatus] = mapped_column(
        SQLEnum(
            JournalEntryStatus,
            name="journalentrystatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
        index=True
    )

    period_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("financial_periods.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Origin of the entry
    source_type: Mapped[str] = mapped_column(String(50), nullable=False, default=JournalEntrySource.MANUAL.value)
    source_id: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)

    # Set on the generated reversing entry of a cancelled posting
    reversal_of_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("journal_entries.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    # Posting/cancellation tracking
    posted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    posted_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Relationships
    period: Mapped["FinancialPeriod"] = relationship(
        "FinancialPeriod",
        foreign_keys=[period_id],
        back_populates="journal_entries"
    )
    items: Mapped[list["JournalEntryItem"]] = relationship(
        "JournalEntryItem",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryItem.line_number"
    )
    reversal_of: Mapped[Optional["JournalEntry"]] = relationship(
        "JournalEntry",
        remote_side="JournalEntry.id",
        foreign_keys=[reversal_of_id]
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number or self.id} ({self.status.value})>"

    @property
    def total_debits(self) -> Decimal:
        return sum((item.debit or Decimal(0) for item in self.items), Decimal(0))

    @property
    def total_credits(self) -> Decimal:
        return sum((item.credit or Decimal(0) for item in self.items), Decimal(0))
