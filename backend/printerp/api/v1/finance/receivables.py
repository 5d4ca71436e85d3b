"""
Receivable payment endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.base import utcnow
from printerp.schemas.receivable import (
    PaymentCreate, PaymentRecordResponse, PaymentTransaction, InvoiceSummary,
    PaymentHistoryResponse, PaymentHistoryItem
)
from printerp.services import receivables as receivable_service
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size

router = APIRouter()


def payment_record_to_response(record: receivable_service.PaymentRecord) -> PaymentHistoryItem:
    order = record.order
    return PaymentHistoryItem(
        id=record.id,
        order_id=str(order.id),
        order_number=order.order_number,
        invoice_number=receivable_service.invoice_number_for(order),
        customer_name=order.customer_name or "Unknown",
        amount=record.amount,
        day=record.payment_date,
        payment_method=order.payment_method or receivable_service.DEFAULT_PAYMENT_METHOD,
        description=record.description,
        notes=order.payment_notes,
        receipt_url=record.receipt_url,
    )


@router.get("/receivables/payments", response_model=PaymentHistoryResponse)
async def list_payments(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Payment history synthesized from order payment fields, newest first."""
    page_size = clamp_page_size(page_size)
    records, total = await receivable_service.list_payments(db, search=search, page=page, page_size=page_size)
    return PaymentHistoryResponse(
        transactions=[payment_record_to_response(r) for r in records],
        pagination=build_pagination(total, page, page_size),
    )


@router.post("/receivables/payments", response_model=PaymentRecordResponse)
async def record_payment(
    payment_data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Record a down payment or settlement on an order."""
    result = await receivable_service.record_payment(payment_data, db)
    order = result.order

    return PaymentRecordResponse(
        success=True,
        message="Payment recorded successfully",
        transaction=PaymentTransaction(
            id=f"payment-{order.id}-{int(utcnow().timestamp() * 1000)}",
            amount=result.amount,
            day=result.payment_date,
            payment_method=result.payment_method,
            description=result.description,
            notes=result.notes,
        ),
        invoice=InvoiceSummary(
            id=str(order.id),
            invoice_number=receivable_service.invoice_number_for(order),
            amount_paid=result.amount_paid,
            balance=result.balance,
            status=result.status,
        ),
    )
