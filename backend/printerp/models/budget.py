"""
Budget, budget item and department models.
"""
from typing import Optional, TYPE_CHECKING
from decimal import Decimal
from sqlalchemy import String, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, Money

if TYPE_CHECKING:
    from printerp.models.account import Account
    from printerp.models.financial_period import FinancialPeriod


class Department(BaseModel):
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    budgets: Mapped[list["Budget"]] = relationship("Budget", back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name}>"


class Budget(BaseModel):
    """
    Budget for a year, optionally scoped to a department and a period.

    ``total_amount`` is the sum of the items and is recomputed whenever the
    items are replaced.
    """
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("department_id", "period_id", name="uq_budgets_department_period"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    department_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    period_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("financial_periods.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0")
    )

    department: Mapped[Optional["Department"]] = relationship("Department", back_populates="budgets")
    period: Mapped[Optional["FinancialPeriod"]] = relationship("FinancialPeriod")
    items: Mapped[list["BudgetItem"]] = relationship(
        "BudgetItem",
        back_populates="budget",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Budget {self.name} ({self.year})>"


class BudgetItem(BaseModel):
    __tablename__ = "budget_items"

    budget_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("budgets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    account_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    amount: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=Decimal("0")
    )

    budget: Mapped["Budget"] = relationship("Budget", back_populates="items")
    account: Mapped["Account"] = relationship("Account")

    def __repr__(self) -> str:
        return f"<BudgetItem {self.account_id}: {self.amount}>"
