"""
Production order model.

Orders are owned by the order screens; the finance module only reads and
writes their payment fields.
"""
from typing import Optional
from datetime import date
from decimal import Decimal
from sqlalchemy import BigInteger, Integer, String, Text, Date
from sqlalchemy.orm import Mapped, mapped_column
from printerp.db.base import Base
from printerp.models.base import TimestampMixin, Money


class Order(Base, TimestampMixin):
    __tablename__ = "orders"

    # SQLite only autoincrements INTEGER PRIMARY KEY columns
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    invoice_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    invoice_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    down_payment: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    down_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    settlement_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    balance_due: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)

    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    down_payment_receipt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    settlement_receipt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    production_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    goods_approval: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Order {self.order_number}>"

    @property
    def amount_paid(self) -> Decimal:
        total = self.total_amount or Decimal("0")
        if self.balance_due is None:
            return self.down_payment or Decimal("0")
        return total - self.balance_due
