"""
Journal entry item (ledger line) model.
"""
from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from sqlalchemy import String, ForeignKey, Integer, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, Money

if TYPE_CHECKING:
    from printerp.models.journal_entry import JournalEntry
    from printerp.models.account import Account


class JournalEntryItem(BaseModel):
    """
    A single line in a journal entry.
    Each line debits or credits a specific account.
    """
    __tablename__ = "journal_entry_items"
    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="non_negative_amounts"),
    )

    journal_entry_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Line number for ordering
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    account_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    debit: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0")
    )

    # Relationships
    journal_entry: Mapped["JournalEntry"] = relationship(
        "JournalEntry",
        foreign_keys=[journal_entry_id],
        back_populates="items"
    )
    account: Mapped["Account"] = relationship(
        "Account",
        foreign_keys=[account_id],
        back_populates="journal_items"
    )

    def __repr__(self) -> str:
        if self.debit and self.debit > 0:
            return f"<JournalEntryItem DR {self.account_id}: {self.debit}>"
        return f"<JournalEntryItem CR {self.account_id}: {self.credit}>"
