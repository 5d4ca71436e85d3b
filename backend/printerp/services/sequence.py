"""
Document number allocation.

Numbers look like ``JE-20240115-001``: a prefix, the document date and a
per-day counter. The counter lives in ``entry_sequences`` and is read with
``SELECT ... FOR UPDATE`` so concurrent writers are serialized on the row.
The increment is only visible once the caller's transaction commits.
"""
import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.models.entry_sequence import EntrySequence

logger = logging.getLogger(__name__)


def sequence_key(prefix: str, day: date) -> str:
    return f"{prefix}-{day.strftime('%Y%m%d')}"


def format_number(key: str, value: int) -> str:
    return f"{key}-{value:03d}"


async def _lock_counter(key: str, db: AsyncSession):
    result = await db.execute(
        select(EntrySequence)
        .where(EntrySequence.prefix == key)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def next_value(key: str, db: AsyncSession) -> int:
    """
    Increment and return the counter for ``key``, creating it on first use.

    A concurrent first use can race on the insert; the loser rolls back its
    savepoint and increments the row the winner created.
    """
    counter = await _lock_counter(key, db)

    if counter is None:
        try:
            async with db.begin_nested():
                counter = EntrySequence(prefix=key, last_value=1)
                db.add(counter)
                await db.flush()
            logger.debug(f"Sequence {key} started at 1")
            return 1
        except IntegrityError:
            logger.debug(f"Sequence {key} created concurrently, retrying")
            counter = await _lock_counter(key, db)
            if counter is None:
                raise

    counter.last_value += 1
    await db.flush()
    logger.debug(f"Sequence {key} allocated {counter.last_value}")
    return counter.last_value


async def next_number(prefix: str, day: date, db: AsyncSession) -> str:
    """Allocate the next document number for ``prefix`` on ``day``."""
    key = sequence_key(prefix, day)
    value = await next_value(key, db)
    return format_number(key, value)
