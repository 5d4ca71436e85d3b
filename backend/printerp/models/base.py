"""
Shared column types and base classes for ledger models.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from printerp.db.base import Base

# Every monetary column; amounts are kept as exact decimals, never floats
Money = Numeric(precision=18, scale=2, asdecimal=True)

ZERO = Decimal("0")


def generate_id() -> str:
    """Generate a 15-character hex ID."""
    return uuid.uuid4().hex[:15]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )


class CreatedByMixin:
    """Subject of the bearer token that created the row."""
    created_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class BaseModel(Base, TimestampMixin):
    """Abstract base model with a hex id and timestamps."""
    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(15),
        primary_key=True,
        default=generate_id
    )
