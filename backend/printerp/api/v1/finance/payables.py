"""
Accounts payable endpoints: vendors, bills and bill payments.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.payable import Bill, BillPayment, Vendor
from printerp.schemas.payable import (
    VendorCreate, VendorUpdate, VendorResponse, VendorListResponse, VendorOption,
    BillCreate, BillUpdate, BillResponse, BillItemResponse, BillPaymentResponse, BillListResponse,
    PayablesSummary, BillPaymentCreate, BillPaymentRecordResponse
)
from printerp.services import payables as payable_service
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size
from printerp.api.v1.finance.cash import transaction_to_response

router = APIRouter()


def vendor_to_response(vendor: Vendor) -> VendorResponse:
    return VendorResponse(
        id=vendor.id,
        name=vendor.name,
        contact_name=vendor.contact_name,
        email=vendor.email,
        phone=vendor.phone,
        address=vendor.address,
        tax_id=vendor.tax_id,
        notes=vendor.notes,
        status=vendor.status,
        created=vendor.created,
    )


def payment_to_response(payment: BillPayment) -> BillPaymentResponse:
    return BillPaymentResponse(
        id=payment.id,
        amount=payment.amount,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        payment_reference=payment.payment_reference,
        notes=payment.notes,
        transaction_id=payment.transaction_id,
        created=payment.created,
    )


def bill_to_response(bill: Bill, today: Optional[date] = None) -> BillResponse:
    """Convert a loaded Bill model to BillResponse schema."""
    return BillResponse(
        id=bill.id,
        bill_number=bill.bill_number,
        vendor_id=bill.vendor_id,
        vendor_name=bill.vendor.name if bill.vendor else "",
        issue_date=bill.issue_date,
        due_date=bill.due_date,
        status=payable_service.display_status(bill, today),
        description=bill.description,
        reference=bill.reference,
        notes=bill.notes,
        total_amount=bill.total_amount,
        paid_amount=bill.paid_amount,
        remaining_amount=bill.remaining_amount,
        journal_entry_id=bill.journal_entry_id,
        items=[
            BillItemResponse(
                id=item.id,
                line_number=item.line_number,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
                tax_rate=item.tax_rate,
                account_id=item.account_id,
                account_code=item.account.code if item.account else None,
                account_name=item.account.name if item.account else None,
            )
            for item in bill.items
        ],
        payments=[payment_to_response(p) for p in bill.payments],
        created=bill.created,
        updated=bill.updated,
    )


@router.get("/payables", response_model=BillListResponse)
async def list_bills(
    search: Optional[str] = None,
    vendor_id: Optional[str] = Query(None, alias="vendorId"),
    bill_status: Optional[str] = Query(None, alias="status"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    List bills with the payables summary and the active vendors.
    ``status`` may be OVERDUE for open bills past their due date.
    """
    page_size = clamp_page_size(page_size)
    today = date.today()
    bills, total = await payable_service.list_bills(
        db,
        search=search,
        vendor_id=vendor_id,
        status=bill_status,
        from_date=from_date,
        to_date=to_date,
        today=today,
        page=page,
        page_size=page_size,
    )
    summary = await payable_service.payables_summary(db, today=today)
    vendors = await payable_service.list_vendors(db)

    return BillListResponse(
        bills=[bill_to_response(b, today) for b in bills],
        summary=PayablesSummary(
            total_payable=summary.total_payable,
            overdue=summary.overdue,
            due_soon=summary.due_soon,
            overdue_count=summary.overdue_count,
            due_soon_count=summary.due_soon_count,
            vendor_count=summary.vendor_count,
            new_vendor_count=summary.new_vendor_count,
        ),
        pagination=build_pagination(total, page, page_size),
        vendors=[VendorOption(id=v.id, name=v.name) for v in vendors],
    )


@router.post("/payables", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_data: BillCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Create a bill and post its accrual entry."""
    bill = await payable_service.create_bill(bill_data, db, user_id=current_user.id)
    return bill_to_response(bill)


@router.get("/payables/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    bill = await payable_service.get_bill(bill_id, db)
    return bill_to_response(bill)


@router.put("/payables/{bill_id}", response_model=BillResponse)
async def update_bill(
    bill_id: str,
    bill_data: BillUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Update an unpaid bill. Supplied items replace all existing items."""
    bill = await payable_service.update_bill(bill_id, bill_data, db, user_id=current_user.id)
    return bill_to_response(bill)


@router.delete("/payables/{bill_id}", response_model=BillResponse)
async def cancel_bill(
    bill_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Cancel an unpaid bill. The bill is kept, its accrual entry is reversed."""
    bill = await payable_service.cancel_bill(bill_id, db, user_id=current_user.id)
    return bill_to_response(bill)


@router.post("/payables/{bill_id}/payments", response_model=BillPaymentRecordResponse)
async def record_bill_payment(
    bill_id: str,
    payment_data: BillPaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    payment, transaction = await payable_service.record_bill_payment(
        bill_id, payment_data, db, user_id=current_user.id
    )
    bill = await payable_service.get_bill(bill_id, db)

    return BillPaymentRecordResponse(
        message="Payment recorded successfully",
        payment=payment_to_response(payment),
        bill=bill_to_response(bill),
        transaction=transaction_to_response(transaction),
    )


@router.get("/vendors", response_model=VendorListResponse)
async def list_vendors(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    vendors = await payable_service.list_vendors(db, include_inactive=include_inactive)
    return VendorListResponse(vendors=[vendor_to_response(v) for v in vendors])


@router.post("/vendors", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor(
    vendor_data: VendorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    vendor = await payable_service.create_vendor(vendor_data, db)
    return vendor_to_response(vendor)


@router.patch("/vendors/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: str,
    vendor_data: VendorUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    vendor = await payable_service.update_vendor(vendor_id, vendor_data, db)
    return vendor_to_response(vendor)
