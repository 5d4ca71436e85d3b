"""
Financial period model.
"""
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
from enum import Enum
from sqlalchemy import String, Integer, Date, DateTime, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel

if TYPE_CHECKING:
    from printerp.models.journal_entry import JournalEntry


class PeriodStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PeriodType(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"
    CUSTOM = "CUSTOM"


class FinancialPeriod(BaseModel):
    """
    A bounded date range that gates postings.

    ``status`` is the only stored open/closed state; ``is_closed`` is a view
    of it for callers that think in booleans.
    """
    __tablename__ = "financial_periods"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="date_range"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    period_type: Mapped[PeriodType] = mapped_column(
        SQLEnum(
            PeriodType,
            name="periodtype",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=PeriodType.MONTHLY
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    quarter: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[PeriodStatus] = mapped_column(
        SQLEnum(
            PeriodStatus,
            name="periodstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=PeriodStatus.OPEN,
        index=True
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    journal_entries: Mapped[list["JournalEntry"]] = relationship(
        "JournalEntry",
        back_populates="period"
    )

    def __repr__(self) -> str:
        return f"<FinancialPeriod {self.name} {self.start_date}..{self.end_date} ({self.status.value})>"

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
