"""
Pydantic schemas for Chart of Accounts endpoints.
"""
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import Field

from printerp.models.account import AccountType
from printerp.schemas.common import CamelModel, Pagination


class AccountCreate(CamelModel):
    """Create a new account. Balances start at zero."""
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    account_type: AccountType = Field(..., alias="type")
    subtype: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class AccountUpdate(CamelModel):
    """Update an account. ``balance`` is not writable."""
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    account_type: Optional[AccountType] = Field(None, alias="type")
    subtype: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class AccountResponse(CamelModel):
    """Account response."""
    id: str
    code: str
    name: str
    description: Optional[str] = None
    account_type: AccountType = Field(..., alias="type")
    subtype: Optional[str] = None
    balance: Decimal
    is_active: bool = True
    created: datetime
    updated: datetime


class AccountFilters(CamelModel):
    types: list[str]


class AccountListResponse(CamelModel):
    """Paginated list of accounts."""
    accounts: list[AccountResponse]
    pagination: Pagination
    filters: AccountFilters
