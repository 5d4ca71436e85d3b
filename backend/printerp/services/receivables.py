"""
Receivable payments against production orders.

Payments are tracked on the order itself: the first payment is the down
payment, the next one settles the order. The chart of accounts is not
touched here.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.errors import OrderAlreadyPaid, OrderNotFound, ValidationError
from printerp.models.order import Order
from printerp.schemas.receivable import PaymentCreate

logger = logging.getLogger(__name__)

SETTLEMENT_TOLERANCE = Decimal("0.01")
DEFAULT_PAYMENT_METHOD = "CASH"
PLACEHOLDER_INVOICE_PREFIX = "INV-"


def invoice_number_for(order: Order) -> str:
    return order.invoice_number or f"{PLACEHOLDER_INVOICE_PREFIX}{order.order_number or order.id}"


@dataclass
class PaymentResult:
    order: Order
    amount: Decimal
    payment_date: date
    payment_method: str
    description: str
    notes: Optional[str]
    amount_paid: Decimal

    @property
    def balance(self) -> Decimal:
        return (self.order.total_amount or Decimal("0")) - self.amount_paid

    @property
    def status(self) -> str:
        """
        Payment state reported for this payment.

        The second payment always stamps the settlement, even when short, so
        an order can read PARTIALLY_PAID here and still reject later payments.
        """
        return "PAID" if abs(self.balance) < SETTLEMENT_TOLERANCE else "PARTIALLY_PAID"


async def get_order(order_id: int, db: AsyncSession) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id).with_for_update()
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound(f"Order {order_id} not found")
    return order


async def record_payment(data: PaymentCreate, db: AsyncSession) -> PaymentResult:
    """
    Record a payment as down payment or settlement.

    Raises:
        ValidationError: amount is not positive
        OrderNotFound: unknown order
        OrderAlreadyPaid: the order is already settled
    """
    if data.amount is None or data.amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    order = await get_order(data.order_id, db)
    if order.settlement_date is not None:
        raise OrderAlreadyPaid(f"Order {order.order_number} is already fully paid")

    payment_date = data.payment_date or date.today()
    payment_method = data.payment_method or DEFAULT_PAYMENT_METHOD
    total = order.total_amount or Decimal("0")
    has_down_payment = order.down_payment_date is not None and order.down_payment is not None

    if data.invoice_number and (
        not order.invoice_number or order.invoice_number.startswith(PLACEHOLDER_INVOICE_PREFIX)
    ):
        order.invoice_number = data.invoice_number
        order.invoice_date = payment_date

    order.production_status = "DELIVERY"
    order.goods_approval = "APPROVED"
    order.payment_method = payment_method

    if not has_down_payment:
        amount_paid = data.amount
        order.down_payment = data.amount
        order.down_payment_date = payment_date
        order.down_payment_receipt = data.receipt_path
        order.payment_notes = data.notes
        order.balance_due = total - data.amount
        if abs(total - data.amount) < SETTLEMENT_TOLERANCE:
            order.settlement_date = payment_date
            order.settlement_receipt = data.receipt_path
    else:
        amount_paid = order.down_payment + data.amount
        order.settlement_date = payment_date
        order.settlement_receipt = data.receipt_path
        order.balance_due = total - amount_paid
        if data.notes:
            order.payment_notes = f"{order.payment_notes}, {data.notes}" if order.payment_notes else data.notes

    await db.flush()

    reference = order.order_number or order.id
    description = f"Payment for order {reference}"
    if data.notes:
        description = f"{description}: {data.notes}"

    logger.info(
        f"Recorded {'settlement' if has_down_payment else 'down payment'} of {data.amount} "
        f"for order {reference}"
    )
    return PaymentResult(
        order=order,
        amount=data.amount,
        payment_date=payment_date,
        payment_method=payment_method,
        description=description,
        notes=data.notes,
        amount_paid=amount_paid,
    )


@dataclass
class PaymentRecord:
    id: str
    order: Order
    amount: Decimal
    payment_date: date
    description: str
    receipt_url: Optional[str]


def payments_for(order: Order) -> list[PaymentRecord]:
    """Synthesize the down payment and settlement records of an order."""
    reference = order.order_number or order.id
    records = []

    if order.down_payment_date is not None and order.down_payment is not None:
        records.append(PaymentRecord(
            id=f"dp-{order.id}",
            order=order,
            amount=order.down_payment,
            payment_date=order.down_payment_date,
            description=f"Down payment for order {reference}",
            receipt_url=order.down_payment_receipt,
        ))

    if order.settlement_date is not None:
        final_amount = (order.total_amount or Decimal("0")) - (order.down_payment or Decimal("0"))
        if final_amount > 0:
            records.append(PaymentRecord(
                id=f"final-{order.id}",
                order=order,
                amount=final_amount,
                payment_date=order.settlement_date,
                description=f"Final payment for order {reference}",
                receipt_url=order.settlement_receipt,
            ))

    return records


async def list_payments(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[PaymentRecord], int]:
    """Payment history of orders with at least one payment, newest first."""
    query = select(Order).where(or_(
        Order.down_payment_date.is_not(None),
        Order.settlement_date.is_not(None),
    ))
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Order.invoice_number).like(pattern),
            func.lower(Order.order_number).like(pattern),
            func.lower(Order.customer_name).like(pattern),
        ))

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    result = await db.execute(
        query.order_by(Order.created.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    records = [record for order in result.scalars().all() for record in payments_for(order)]
    records.sort(key=lambda record: record.payment_date, reverse=True)
    return records, total
