"""
Counter rows used to allocate human-readable document numbers.
"""
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from printerp.db.base import Base
from printerp.models.base import TimestampMixin


class EntrySequence(Base, TimestampMixin):
    """One row per number prefix, e.g. ``JE-20240115`` or ``TRX-20240115``."""
    __tablename__ = "entry_sequences"

    prefix: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<EntrySequence {self.prefix}={self.last_value}>"
