"""
Chart of Accounts service.

``apply_delta`` is the only code path that writes ``Account.balance``; it is
called by the posting engine inside the request transaction.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.errors import AccountNotFound, AccountInUse, ValidationError
from printerp.models.account import Account, AccountType
from printerp.models.budget import BudgetItem
from printerp.models.journal_entry_item import JournalEntryItem
from printerp.models.payable import BillItem
from printerp.schemas.account import AccountCreate, AccountUpdate

logger = logging.getLogger(__name__)


async def get_account(account_id: str, db: AsyncSession) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        raise AccountNotFound(f"Account {account_id} not found")
    return account


async def get_account_by_code(code: str, db: AsyncSession) -> Optional[Account]:
    result = await db.execute(select(Account).where(Account.code == code))
    return result.scalar_one_or_none()


async def list_accounts(
    db: AsyncSession,
    account_type: Optional[AccountType] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> tuple[list[Account], int]:
    """List accounts ordered by code. ``page_size=None`` returns everything."""
    query = select(Account)

    if account_type is not None:
        query = query.where(Account.account_type == account_type)
    if is_active is not None:
        query = query.where(Account.is_active == is_active)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Account.code).like(pattern),
            func.lower(Account.name).like(pattern),
        ))

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    query = query.order_by(Account.code.asc())
    if page_size is not None:
        query = query.offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def account_has_postings(account_id: str, db: AsyncSession) -> bool:
    result = await db.execute(
        select(func.count()).select_from(JournalEntryItem).where(
            JournalEntryItem.account_id == account_id
        )
    )
    return (result.scalar() or 0) > 0


async def create_account(data: AccountCreate, db: AsyncSession) -> Account:
    if await get_account_by_code(data.code, db) is not None:
        raise ValidationError(f"Account code {data.code} already exists")

    account = Account(
        code=data.code,
        name=data.name,
        description=data.description,
        account_type=data.account_type,
        subtype=data.subtype,
        is_active=data.is_active,
        balance=Decimal("0"),
    )
    db.add(account)
    await db.flush()

    logger.info(f"Account {account.code} created ({account.account_type.value})")
    return account


async def update_account(account_id: str, data: AccountUpdate, db: AsyncSession) -> Account:
    account = await get_account(account_id, db)

    if data.code is not None and data.code != account.code:
        existing = await get_account_by_code(data.code, db)
        if existing is not None:
            raise ValidationError(f"Account code {data.code} already exists")
        account.code = data.code

    if data.account_type is not None and data.account_type != account.account_type:
        if await account_has_postings(account.id, db):
            raise ValidationError("Cannot change the type of an account with postings")
        account.account_type = data.account_type

    if data.name is not None:
        account.name = data.name
    if data.description is not None:
        account.description = data.description
    if data.subtype is not None:
        account.subtype = data.subtype
    if data.is_active is not None:
        account.is_active = data.is_active

    await db.flush()
    return account


async def delete_account(account_id: str, db: AsyncSession) -> None:
    """Delete an unused account. Accounts with postings must be deactivated instead."""
    account = await get_account(account_id, db)

    if await account_has_postings(account.id, db):
        raise AccountInUse(f"Account {account.code} has postings; deactivate it instead")

    for model, label in ((BudgetItem, "budgets"), (BillItem, "bills")):
        refs = await db.execute(
            select(func.count()).select_from(model).where(model.account_id == account.id)
        )
        if (refs.scalar() or 0) > 0:
            raise AccountInUse(f"Account {account.code} is referenced by {label}")

    await db.delete(account)
    await db.flush()
    logger.info(f"Account {account.code} deleted")


async def apply_delta(
    account_id: str,
    debit: Decimal,
    credit: Decimal,
    db: AsyncSession
) -> Account:
    """
    Apply a debit/credit pair to an account balance.

    ASSET and EXPENSE accounts grow with debits; LIABILITY, EQUITY and
    REVENUE accounts grow with credits. The row is locked for the rest of
    the caller's transaction.
    """
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise AccountNotFound(f"Account {account_id} not found")

    delta = account.signed_amount(debit or Decimal("0"), credit or Decimal("0"))
    account.balance = (account.balance or Decimal("0")) + delta
    await db.flush()
    return account
