"""
Cash management endpoints.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.financial_transaction import FinancialTransaction, TransactionType
from printerp.schemas.transaction import (
    TransactionCreate, TransactionResponse, TransactionCreateResponse, TransactionListResponse,
    CashSummaryResponse, CashSummary, CashFlowDay
)
from printerp.services import cash as cash_service
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size
from printerp.api.v1.finance.accounts import account_to_response

router = APIRouter()


def transaction_to_response(transaction: FinancialTransaction) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        transaction_number=transaction.transaction_number,
        transaction_type=transaction.transaction_type,
        amount=transaction.amount,
        description=transaction.description,
        category=transaction.category,
        transaction_date=transaction.transaction_date,
        status=transaction.status,
        payment_method=transaction.payment_method,
        reference_number=transaction.reference_number,
        account_id=transaction.account_id,
        counter_account_id=transaction.counter_account_id,
        journal_entry_id=transaction.journal_entry_id,
        notes=transaction.notes,
        created_by_id=transaction.created_by_id,
        created=transaction.created,
    )


@router.get("/cash", response_model=CashSummaryResponse)
async def get_cash_summary(
    range_name: str = Query("month", alias="range"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Cash position and cash flow.
    ``range`` is one of week, month, quarter, year or custom (with ``from``/``to``).
    """
    summary = await cash_service.cash_summary(db, range_name=range_name, from_date=from_date, to_date=to_date)

    return CashSummaryResponse(
        start_date=summary.start_date,
        end_date=summary.end_date,
        summary=CashSummary(
            total_cash_balance=summary.total_cash_balance,
            period_inflows=summary.period_inflows,
            period_outflows=summary.period_outflows,
            net_cash_flow=summary.net_cash_flow,
            inflow_count=summary.inflow_count,
            outflow_count=summary.outflow_count,
        ),
        cash_accounts=[account_to_response(a) for a in summary.cash_accounts],
        recent_transactions=[transaction_to_response(t) for t in summary.recent_transactions],
        cash_flow_by_day=[
            CashFlowDay(day=d.day, inflow=d.inflow, outflow=d.outflow, net_flow=d.net_flow)
            for d in summary.cash_flow_by_day
        ],
    )


@router.get("/cash/transactions", response_model=TransactionListResponse)
async def list_transactions(
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    page_size = clamp_page_size(page_size)
    transactions, total = await cash_service.list_transactions(
        db,
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return TransactionListResponse(
        transactions=[transaction_to_response(t) for t in transactions],
        pagination=build_pagination(total, page, page_size),
    )


@router.post("/cash/transactions", response_model=TransactionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Record a cash transaction.
    INCOME and EXPENSE also post a journal entry when the date falls in an open period.
    """
    transaction = await cash_service.record_transaction(transaction_data, db, user_id=current_user.id)
    return TransactionCreateResponse(success=True, transaction=transaction_to_response(transaction))
