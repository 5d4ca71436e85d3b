"""
Pydantic schemas for vendor, bill and bill payment endpoints.
"""
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import Field

from printerp.models.payable import VendorStatus
from printerp.schemas.common import CamelModel, Pagination
from printerp.schemas.transaction import TransactionResponse

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# Vendors

class VendorCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    phone: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1)
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class VendorUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    address: Optional[str] = Field(None, min_length=1)
    tax_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
    status: Optional[VendorStatus] = None


class VendorResponse(CamelModel):
    id: str
    name: str
    contact_name: str
    email: str
    phone: str
    address: str
    tax_id: Optional[str] = None
    notes: Optional[str] = None
    status: VendorStatus
    created: datetime


class VendorListResponse(CamelModel):
    vendors: list[VendorResponse]


class VendorOption(CamelModel):
    id: str
    name: str


# Bills

class BillItemInput(CamelModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("0")
    # Falls back to the default expense account
    account_id: Optional[str] = None


class BillCreate(CamelModel):
    vendor_id: str
    issue_date: date
    due_date: date
    description: Optional[str] = Field(None, max_length=500)
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: list[BillItemInput] = []


class BillUpdate(CamelModel):
    """Update an unpaid bill. When ``items`` is given it replaces all items."""
    vendor_id: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: Optional[list[BillItemInput]] = None


class BillItemResponse(CamelModel):
    id: str
    line_number: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal
    tax_rate: Decimal
    account_id: str
    account_code: Optional[str] = None
    account_name: Optional[str] = None


class BillPaymentResponse(CamelModel):
    id: str
    amount: Decimal
    payment_date: date
    payment_method: str
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    transaction_id: Optional[str] = None
    created: datetime


class BillResponse(CamelModel):
    id: str
    bill_number: str
    vendor_id: str
    vendor_name: str
    issue_date: date
    due_date: date
    # UNPAID, PARTIAL, PAID, CANCELLED or OVERDUE
    status: str
    description: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    journal_entry_id: Optional[str] = None
    items: list[BillItemResponse] = []
    payments: list[BillPaymentResponse] = []
    created: datetime
    updated: datetime


class PayablesSummary(CamelModel):
    total_payable: Decimal
    overdue: Decimal
    due_soon: Decimal
    overdue_count: int
    due_soon_count: int
    vendor_count: int
    new_vendor_count: int


class BillListResponse(CamelModel):
    bills: list[BillResponse]
    summary: PayablesSummary
    pagination: Pagination
    vendors: list[VendorOption]


# Payments

class BillPaymentCreate(CamelModel):
    amount: Decimal
    payment_date: date
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    # Cash or bank account paid from; defaults to the first cash account
    account_id: Optional[str] = None


class BillPaymentRecordResponse(CamelModel):
    message: str
    payment: BillPaymentResponse
    bill: BillResponse
    transaction: TransactionResponse
