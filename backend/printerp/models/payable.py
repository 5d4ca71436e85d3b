"""
Vendor, bill and bill payment models (accounts payable).
"""
from typing import Optional, TYPE_CHECKING
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Integer, Date, Numeric, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from printerp.models.base import BaseModel, CreatedByMixin, Money, ZERO

if TYPE_CHECKING:
    from printerp.models.account import Account
    from printerp.models.financial_transaction import FinancialTransaction
    from printerp.models.journal_entry import JournalEntry


class VendorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class BillStatus(str, Enum):
    """Stored bill state. OVERDUE is derived from the due date, never stored."""
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class Vendor(BaseModel):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    contact_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    tax_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[VendorStatus] = mapped_column(
        SQLEnum(
            VendorStatus,
            name="vendorstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=VendorStatus.ACTIVE,
        index=True
    )

    bills: Mapped[list["Bill"]] = relationship("Bill", back_populates="vendor")

    @property
    def is_active(self) -> bool:
        return self.status == VendorStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Vendor {self.name}>"


class Bill(BaseModel, CreatedByMixin):
    """
    A vendor bill.

    Creating a bill posts its accrual entry (items debited, accounts payable
    credited). ``paid_amount`` is the sum of the bill's payments.
    """
    __tablename__ = "bills"

    # Allocated from the entry_sequences counter, e.g. BILL-20240115-001
    bill_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)

    vendor_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("vendors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[BillStatus] = mapped_column(
        SQLEnum(
            BillStatus,
            name="billstatus",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x]
        ),
        nullable=False,
        default=BillStatus.UNPAID,
        index=True
    )

    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)
    paid_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=ZERO)

    # Accrual entry; replaced (cancel + repost) when the bill is edited
    journal_entry_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("journal_entries.id", ondelete="SET NULL"),
        nullable=True
    )

    vendor: Mapped["Vendor"] = relationship("Vendor", back_populates="bills")
    journal_entry: Mapped[Optional["JournalEntry"]] = relationship("JournalEntry")
    items: Mapped[list["BillItem"]] = relationship(
        "BillItem",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItem.line_number"
    )
    payments: Mapped[list["BillPayment"]] = relationship(
        "BillPayment",
        back_populates="bill",
        order_by="BillPayment.payment_date.desc()"
    )

    @property
    def remaining_amount(self) -> Decimal:
        return (self.total_amount or ZERO) - (self.paid_amount or ZERO)

    @property
    def is_open(self) -> bool:
        return self.status in (BillStatus.UNPAID, BillStatus.PARTIAL)

    def __repr__(self) -> str:
        return f"<Bill {self.bill_number} {self.status.value} {self.total_amount}>"


class BillItem(BaseModel):
    __tablename__ = "bill_items"
    __table_args__ = (
        CheckConstraint("quantity > 0 AND unit_price >= 0", name="positive_quantity_price"),
    )

    bill_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Expense (or asset) account debited by the accrual
    account_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=18, scale=4), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(precision=5, scale=2), nullable=False, default=ZERO)

    bill: Mapped["Bill"] = relationship("Bill", back_populates="items")
    account: Mapped["Account"] = relationship("Account")

    def __repr__(self) -> str:
        return f"<BillItem {self.line_number}: {self.quantity} x {self.unit_price}>"


class BillPayment(BaseModel, CreatedByMixin):
    """A payment against a bill, carried to the ledger by its cash transaction."""
    __tablename__ = "bill_payments"

    bill_id: Mapped[str] = mapped_column(
        String(15),
        ForeignKey("bills.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        ForeignKey("financial_transactions.id", ondelete="SET NULL"),
        nullable=True
    )

    bill: Mapped["Bill"] = relationship("Bill", back_populates="payments")
    transaction: Mapped[Optional["FinancialTransaction"]] = relationship("FinancialTransaction")

    def __repr__(self) -> str:
        return f"<BillPayment {self.bill_id}: {self.amount}>"
