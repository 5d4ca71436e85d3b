"""
Pydantic schemas for receivable payment endpoints.
"""
from typing import Optional
from datetime import date
from decimal import Decimal
from pydantic import Field

from printerp.schemas.common import CamelModel, Pagination


class PaymentCreate(CamelModel):
    order_id: int
    amount: Decimal
    payment_date: Optional[date] = None
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    receipt_path: Optional[str] = Field(None, max_length=500)
    invoice_number: Optional[str] = Field(None, max_length=50)


class PaymentTransaction(CamelModel):
    id: str
    amount: Decimal
    day: date = Field(..., alias="date")
    payment_method: str
    status: str = "COMPLETED"
    description: str
    notes: Optional[str] = None


class InvoiceSummary(CamelModel):
    # Order ids are BIGINT; sent as strings
    id: str
    invoice_number: str
    amount_paid: Decimal
    balance: Decimal
    status: str


class PaymentRecordResponse(CamelModel):
    success: bool = True
    message: str
    transaction: PaymentTransaction
    invoice: InvoiceSummary


class PaymentHistoryItem(CamelModel):
    id: str
    order_id: str
    order_number: str
    invoice_number: str
    customer_name: str
    amount: Decimal
    day: date = Field(..., alias="date")
    payment_method: str
    status: str = "COMPLETED"
    description: str
    notes: Optional[str] = None
    receipt_url: Optional[str] = None


class PaymentHistoryResponse(CamelModel):
    transactions: list[PaymentHistoryItem]
    pagination: Pagination
