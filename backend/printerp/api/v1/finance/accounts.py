"""
Chart of Accounts endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.deps import CurrentUser, get_current_user
from printerp.db.base import get_db
from printerp.models.account import Account, AccountType
from printerp.schemas.account import (
    AccountCreate, AccountUpdate, AccountResponse, AccountListResponse, AccountFilters
)
from printerp.schemas.common import SuccessResponse
from printerp.services import accounts as account_service
from printerp.api.v1.finance._pagination import build_pagination, clamp_page_size

router = APIRouter()


def account_to_response(account: Account) -> AccountResponse:
    """Convert Account model to AccountResponse schema."""
    return AccountResponse(
        id=account.id,
        code=account.code,
        name=account.name,
        description=account.description,
        account_type=account.account_type,
        subtype=account.subtype,
        balance=account.balance,
        is_active=account.is_active,
        created=account.created,
        updated=account.updated,
    )


@router.get("/accounts", response_model=AccountListResponse)
async def list_accounts(
    account_type: Optional[AccountType] = Query(None, alias="type"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """List accounts ordered by code."""
    page_size = clamp_page_size(page_size)
    accounts, total = await account_service.list_accounts(
        db,
        account_type=account_type,
        is_active=is_active,
        search=search,
        page=page,
        page_size=page_size,
    )

    return AccountListResponse(
        accounts=[account_to_response(a) for a in accounts],
        pagination=build_pagination(total, page, page_size),
        filters=AccountFilters(types=[t.value for t in AccountType]),
    )


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Create an account. Codes must be unique."""
    account = await account_service.create_account(account_data, db)
    return account_to_response(account)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    account = await account_service.get_account(account_id, db)
    return account_to_response(account)


@router.patch("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    account_data: AccountUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    account = await account_service.update_account(account_id, account_data, db)
    return account_to_response(account)


@router.delete("/accounts/{account_id}", response_model=SuccessResponse)
async def delete_account(
    account_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete an account that has never been used."""
    await account_service.delete_account(account_id, db)
    return SuccessResponse(success=True)
