"""
Tests for the posting engine (printerp.services.posting).

Covers:
- Balanced entries update account balances by type
- Unbalanced and malformed entries are rejected without side effects
- Closed periods reject every mutation
- Posting, cancelling (with reversal) and deleting
- Entry numbering
"""
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from printerp.core.errors import (
    AccountNotFound,
    EntryCancelled,
    EntryNotFound,
    PeriodClosed,
    PostedEntryImmutable,
    UnbalancedEntry,
    ValidationError,
)
from printerp.models.journal_entry import JournalEntry, JournalEntrySource, JournalEntryStatus
from printerp.schemas.journal import JournalEntryCreate, JournalEntryUpdate, JournalItemInput
from printerp.services import posting
from printerp.services.periods import close_period


def entry_data(period, lines, status=None, entry_date=date(2024, 1, 15), description="Test entry"):
    return JournalEntryCreate(
        entry_date=entry_date,
        period_id=period.id,
        description=description,
        status=status,
        items=[
            JournalItemInput(account_id=account.id, debit=Decimal(debit), credit=Decimal(credit))
            for account, debit, credit in lines
        ],
    )


async def count_entries(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(JournalEntry))
    return result.scalar()


class TestCreateEntry:

    @pytest.mark.asyncio
    async def test_posted_entry_updates_balances_by_type(self, db_session, accounts, open_period, balance_of):
        """Debit cash / credit revenue raises both balances."""
        cash, revenue = accounts["1000"], accounts["4000"]

        entry = await posting.create_entry(
            entry_data(open_period, [(cash, "100", "0"), (revenue, "0", "100")], status=JournalEntryStatus.POSTED),
            db_session,
            user_id="test-user",
        )

        assert entry.status == JournalEntryStatus.POSTED
        assert entry.posted_at is not None
        assert entry.posted_by_id == "test-user"
        assert entry.entry_number == "JE-20240115-001"
        assert len(entry.items) == 2
        assert entry.total_debits == entry.total_credits == Decimal("100")

        assert await balance_of(cash.id) == Decimal("100")
        assert await balance_of(revenue.id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_credit_normal_debit_decreases(self, db_session, accounts, open_period, balance_of):
        payable, expense = accounts["2000"], accounts["5000"]

        await posting.create_entry(
            entry_data(open_period, [(expense, "40", "0"), (payable, "0", "40")], status=JournalEntryStatus.POSTED),
            db_session,
        )
        await posting.create_entry(
            entry_data(open_period, [(payable, "15", "0"), (accounts["1000"], "0", "15")], status=JournalEntryStatus.POSTED),
            db_session,
        )

        assert await balance_of(payable.id) == Decimal("25")
        assert await balance_of(expense.id) == Decimal("40")
        assert await balance_of(accounts["1000"].id) == Decimal("-15")

    @pytest.mark.asyncio
    async def test_draft_does_not_touch_balances(self, db_session, accounts, open_period, balance_of):
        cash, revenue = accounts["1000"], accounts["4000"]

        entry = await posting.create_entry(
            entry_data(open_period, [(cash, "75", "0"), (revenue, "0", "75")]),
            db_session,
        )

        assert entry.status == JournalEntryStatus.DRAFT
        assert entry.posted_at is None
        assert entry.source_type == JournalEntrySource.MANUAL.value
        assert await balance_of(cash.id) == Decimal("0")
        assert await balance_of(revenue.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_unbalanced_entry_rejected(self, db_session, accounts, open_period, balance_of):
        cash, revenue = accounts["1000"], accounts["4000"]

        with pytest.raises(UnbalancedEntry) as exc_info:
            await posting.create_entry(
                entry_data(open_period, [(cash, "100", "0"), (revenue, "0", "90")], status=JournalEntryStatus.POSTED),
                db_session,
            )

        assert exc_info.value.difference == Decimal("10")
        assert exc_info.value.details["difference"] == "10"
        assert await count_entries(db_session) == 0
        assert await balance_of(cash.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_difference_within_tolerance_accepted(self, db_session, accounts, open_period, balance_of):
        entry = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "100.00", "0"), (accounts["4000"], "0", "99.99")]),
            db_session,
        )
        assert entry.status == JournalEntryStatus.DRAFT

    @pytest.mark.asyncio
    async def test_single_item_rejected(self, db_session, accounts, open_period, balance_of):
        with pytest.raises(ValidationError):
            await posting.create_entry(entry_data(open_period, [(accounts["1000"], "10", "0")]), db_session)

    @pytest.mark.asyncio
    async def test_zero_item_rejected(self, db_session, accounts, open_period, balance_of):
        with pytest.raises(ValidationError):
            await posting.create_entry(
                entry_data(open_period, [
                    (accounts["1000"], "10", "0"),
                    (accounts["4000"], "0", "10"),
                    (accounts["5000"], "0", "0"),
                ]),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, db_session, accounts, open_period, balance_of):
        with pytest.raises(ValidationError):
            await posting.create_entry(
                entry_data(open_period, [(accounts["1000"], "-10", "0"), (accounts["4000"], "0", "-10")]),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_unknown_account_rejected(self, db_session, accounts, open_period, balance_of):
        data = entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")])
        data.items[1].account_id = "doesnotexist123"

        with pytest.raises(AccountNotFound):
            await posting.create_entry(data, db_session)
        assert await count_entries(db_session) == 0

    @pytest.mark.asyncio
    async def test_inactive_account_rejected(self, db_session, accounts, open_period, balance_of):
        accounts["4000"].is_active = False
        await db_session.flush()

        with pytest.raises(ValidationError):
            await posting.create_entry(
                entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_closed_period_rejected(self, db_session, accounts, open_period, balance_of):
        await close_period(open_period.id, db_session)

        with pytest.raises(PeriodClosed):
            await posting.create_entry(
                entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
                db_session,
            )
        assert await count_entries(db_session) == 0

    @pytest.mark.asyncio
    async def test_date_outside_period_rejected(self, db_session, accounts, open_period, balance_of):
        with pytest.raises(ValidationError):
            await posting.create_entry(
                entry_data(
                    open_period,
                    [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                    entry_date=date(2024, 2, 1),
                ),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_cancelled_status_not_accepted_on_create(self, db_session, accounts, open_period, balance_of):
        with pytest.raises(ValidationError):
            await posting.create_entry(
                entry_data(
                    open_period,
                    [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                    status=JournalEntryStatus.CANCELLED,
                ),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_entry_numbers_are_sequential(self, db_session, accounts, open_period, balance_of):
        lines = [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]
        first = await posting.create_entry(entry_data(open_period, lines), db_session)
        second = await posting.create_entry(entry_data(open_period, lines), db_session)
        third = await posting.create_entry(entry_data(open_period, lines), db_session)

        assert [first.entry_number, second.entry_number, third.entry_number] == [
            "JE-20240115-001",
            "JE-20240115-002",
            "JE-20240115-003",
        ]


class TestPostEntry:

    @pytest.mark.asyncio
    async def test_post_draft_applies_balances_once(self, db_session, accounts, open_period, balance_of):
        cash, revenue = accounts["1000"], accounts["4000"]
        draft = await posting.create_entry(
            entry_data(open_period, [(cash, "250", "0"), (revenue, "0", "250")]),
            db_session,
        )

        posted = await posting.post_entry(draft.id, db_session, user_id="poster")

        assert posted.status == JournalEntryStatus.POSTED
        assert posted.posted_by_id == "poster"
        assert await balance_of(cash.id) == Decimal("250")

        with pytest.raises(PostedEntryImmutable):
            await posting.post_entry(draft.id, db_session)
        assert await balance_of(cash.id) == Decimal("250")

    @pytest.mark.asyncio
    async def test_post_in_closed_period_rejected(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )
        await close_period(open_period.id, db_session)

        with pytest.raises(PeriodClosed):
            await posting.post_entry(draft.id, db_session)
        assert await balance_of(accounts["1000"].id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_post_unknown_entry(self, db_session):
        with pytest.raises(EntryNotFound):
            await posting.post_entry("missing", db_session)


class TestUpdateEntry:

    @pytest.mark.asyncio
    async def test_update_draft_replaces_items(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )

        updated = await posting.update_entry(
            draft.id,
            JournalEntryUpdate(
                description="Corrected",
                items=[
                    JournalItemInput(account_id=accounts["5000"].id, debit=Decimal("30")),
                    JournalItemInput(account_id=accounts["2000"].id, credit=Decimal("30")),
                ],
            ),
            db_session,
        )

        assert updated.description == "Corrected"
        assert [item.account_id for item in updated.items] == [accounts["5000"].id, accounts["2000"].id]
        assert [item.line_number for item in updated.items] == [1, 2]
        assert updated.total_debits == Decimal("30")

    @pytest.mark.asyncio
    async def test_update_draft_with_unbalanced_items_rejected(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )

        with pytest.raises(UnbalancedEntry):
            await posting.update_entry(
                draft.id,
                JournalEntryUpdate(items=[
                    JournalItemInput(account_id=accounts["5000"].id, debit=Decimal("30")),
                    JournalItemInput(account_id=accounts["2000"].id, credit=Decimal("20")),
                ]),
                db_session,
            )

        reloaded = await posting.get_entry(draft.id, db_session)
        assert reloaded.total_debits == Decimal("10")

    @pytest.mark.asyncio
    async def test_update_to_posted_applies_balances(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "60", "0"), (accounts["4000"], "0", "60")]),
            db_session,
        )

        posted = await posting.update_entry(
            draft.id, JournalEntryUpdate(status=JournalEntryStatus.POSTED), db_session, user_id="u1"
        )

        assert posted.status == JournalEntryStatus.POSTED
        assert await balance_of(accounts["4000"].id) == Decimal("60")

    @pytest.mark.asyncio
    async def test_posted_entry_is_immutable(self, db_session, accounts, open_period, balance_of):
        entry = await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                status=JournalEntryStatus.POSTED,
            ),
            db_session,
        )

        with pytest.raises(PostedEntryImmutable):
            await posting.update_entry(entry.id, JournalEntryUpdate(description="Changed"), db_session)

        with pytest.raises(PostedEntryImmutable):
            await posting.update_entry(
                entry.id,
                JournalEntryUpdate(status=JournalEntryStatus.CANCELLED, description="Changed"),
                db_session,
            )

    @pytest.mark.asyncio
    async def test_update_posted_to_cancelled_reverses(self, db_session, accounts, open_period, balance_of):
        entry = await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                status=JournalEntryStatus.POSTED,
            ),
            db_session,
        )

        cancelled = await posting.update_entry(
            entry.id, JournalEntryUpdate(status=JournalEntryStatus.CANCELLED), db_session
        )

        assert cancelled.status == JournalEntryStatus.CANCELLED
        assert await balance_of(accounts["1000"].id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_edit_draft_in_closed_period_rejected(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )
        await close_period(open_period.id, db_session)

        with pytest.raises(PeriodClosed):
            await posting.update_entry(draft.id, JournalEntryUpdate(description="Late edit"), db_session)
        with pytest.raises(PeriodClosed):
            await posting.update_entry(
                draft.id, JournalEntryUpdate(status=JournalEntryStatus.POSTED), db_session
            )

        reloaded = await posting.get_entry(draft.id, db_session)
        assert reloaded.description == "Test entry"
        assert reloaded.status == JournalEntryStatus.DRAFT
        assert await balance_of(accounts["1000"].id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_move_draft_into_closed_period_rejected(
        self, db_session, accounts, open_period, closed_period, balance_of
    ):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )

        with pytest.raises(PeriodClosed):
            await posting.update_entry(
                draft.id,
                JournalEntryUpdate(period_id=closed_period.id, entry_date=date(2023, 12, 10)),
                db_session,
            )

        reloaded = await posting.get_entry(draft.id, db_session)
        assert reloaded.period_id == open_period.id
        assert reloaded.entry_date == date(2024, 1, 15)


class TestCancelEntry:

    @pytest.mark.asyncio
    async def test_cancel_posted_creates_reversal(self, db_session, accounts, open_period, balance_of):
        cash, revenue = accounts["1000"], accounts["4000"]
        entry = await posting.create_entry(
            entry_data(open_period, [(cash, "500", "0"), (revenue, "0", "500")], status=JournalEntryStatus.POSTED),
            db_session,
        )

        cancelled, reversal = await posting.cancel_entry(entry.id, db_session, user_id="auditor")

        assert cancelled.status == JournalEntryStatus.CANCELLED
        assert cancelled.cancelled_by_id == "auditor"
        assert cancelled.cancelled_at is not None

        assert reversal is not None
        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.reversal_of_id == entry.id
        assert reversal.source_type == JournalEntrySource.REVERSAL.value
        assert reversal.reference == entry.entry_number
        assert reversal.description == f"Reversal of {entry.entry_number}"
        assert [(i.account_id, i.debit, i.credit) for i in reversal.items] == [
            (cash.id, Decimal("0"), Decimal("500")),
            (revenue.id, Decimal("500"), Decimal("0")),
        ]

        assert await balance_of(cash.id) == Decimal("0")
        assert await balance_of(revenue.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_cancel_draft_has_no_reversal(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )

        cancelled, reversal = await posting.cancel_entry(draft.id, db_session)

        assert cancelled.status == JournalEntryStatus.CANCELLED
        assert reversal is None
        assert await count_entries(db_session) == 1

    @pytest.mark.asyncio
    async def test_cancel_twice_rejected(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )
        await posting.cancel_entry(draft.id, db_session)

        with pytest.raises(EntryCancelled):
            await posting.cancel_entry(draft.id, db_session)
        with pytest.raises(EntryCancelled):
            await posting.update_entry(draft.id, JournalEntryUpdate(description="x"), db_session)

    @pytest.mark.asyncio
    async def test_cancel_in_closed_period_rejected(self, db_session, accounts, open_period, balance_of):
        entry = await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                status=JournalEntryStatus.POSTED,
            ),
            db_session,
        )
        await close_period(open_period.id, db_session)

        with pytest.raises(PeriodClosed):
            await posting.cancel_entry(entry.id, db_session)
        assert await balance_of(accounts["1000"].id) == Decimal("10")


def fail_on_call(monkeypatch, call_number):
    """Make the n-th balance update of the posting engine fail."""
    real_apply_delta = posting.apply_delta
    calls = []

    async def apply_delta(account_id, debit, credit, db):
        calls.append(account_id)
        if len(calls) == call_number:
            raise AccountNotFound(f"Account {account_id} not found")
        return await real_apply_delta(account_id, debit, credit, db)

    monkeypatch.setattr(posting, "apply_delta", apply_delta)
    return calls


class TestAtomicity:
    """A failure midway through applying items leaves no trace once the transaction rolls back."""

    @pytest.mark.asyncio
    async def test_failed_create_leaves_no_entry_or_balance(
        self, db_session, accounts, open_period, balance_of, monkeypatch
    ):
        cash, revenue = accounts["1000"], accounts["4000"]
        calls = fail_on_call(monkeypatch, 2)

        with pytest.raises(AccountNotFound):
            async with db_session.begin_nested():
                await posting.create_entry(
                    entry_data(open_period, [(cash, "75", "0"), (revenue, "0", "75")], status=JournalEntryStatus.POSTED),
                    db_session,
                )

        assert calls == [cash.id, revenue.id]
        assert await count_entries(db_session) == 0
        assert await balance_of(cash.id) == Decimal("0")
        assert await balance_of(revenue.id) == Decimal("0")

        monkeypatch.undo()
        entry = await posting.create_entry(
            entry_data(open_period, [(cash, "75", "0"), (revenue, "0", "75")], status=JournalEntryStatus.POSTED),
            db_session,
        )
        assert entry.entry_number == "JE-20240115-001"
        assert await balance_of(cash.id) == Decimal("75")

    @pytest.mark.asyncio
    async def test_failed_cancel_keeps_posting(self, db_session, accounts, open_period, balance_of, monkeypatch):
        cash, revenue = accounts["1000"], accounts["4000"]
        entry = await posting.create_entry(
            entry_data(open_period, [(cash, "40", "0"), (revenue, "0", "40")], status=JournalEntryStatus.POSTED),
            db_session,
        )
        fail_on_call(monkeypatch, 2)

        with pytest.raises(AccountNotFound):
            async with db_session.begin_nested():
                await posting.cancel_entry(entry.id, db_session)

        reloaded = await posting.get_entry(entry.id, db_session)
        assert reloaded.status == JournalEntryStatus.POSTED
        assert reloaded.cancelled_at is None
        assert await count_entries(db_session) == 1
        assert await balance_of(cash.id) == Decimal("40")
        assert await balance_of(revenue.id) == Decimal("40")


class TestDeleteEntry:

    @pytest.mark.asyncio
    async def test_delete_draft(self, db_session, accounts, open_period, balance_of):
        draft = await posting.create_entry(
            entry_data(open_period, [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")]),
            db_session,
        )

        await posting.delete_entry(draft.id, db_session)

        assert await count_entries(db_session) == 0
        with pytest.raises(EntryNotFound):
            await posting.get_entry(draft.id, db_session)

    @pytest.mark.asyncio
    async def test_delete_posted_rejected(self, db_session, accounts, open_period, balance_of):
        entry = await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                status=JournalEntryStatus.POSTED,
            ),
            db_session,
        )

        with pytest.raises(PostedEntryImmutable):
            await posting.delete_entry(entry.id, db_session)

        cancelled, _ = await posting.cancel_entry(entry.id, db_session)
        with pytest.raises(PostedEntryImmutable):
            await posting.delete_entry(cancelled.id, db_session)


class TestListEntries:

    @pytest.mark.asyncio
    async def test_filters_and_sorting(self, db_session, accounts, open_period, balance_of):
        await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["1000"], "10", "0"), (accounts["4000"], "0", "10")],
                entry_date=date(2024, 1, 5),
                description="Business cards",
            ),
            db_session,
        )
        await posting.create_entry(
            entry_data(
                open_period,
                [(accounts["5000"], "20", "0"), (accounts["2000"], "0", "20")],
                entry_date=date(2024, 1, 20),
                description="Paper stock",
                status=JournalEntryStatus.POSTED,
            ),
            db_session,
        )

        entries, total = await posting.list_entries(db_session)
        assert total == 2
        assert [e.description for e in entries] == ["Paper stock", "Business cards"]

        entries, total = await posting.list_entries(db_session, sort_by="date", sort_direction="asc")
        assert [e.description for e in entries] == ["Business cards", "Paper stock"]

        entries, total = await posting.list_entries(db_session, search="paper")
        assert total == 1

        entries, total = await posting.list_entries(db_session, status=JournalEntryStatus.DRAFT)
        assert [e.description for e in entries] == ["Business cards"]

        entries, total = await posting.list_entries(db_session, account_id=accounts["2000"].id)
        assert [e.description for e in entries] == ["Paper stock"]

        entries, total = await posting.list_entries(db_session, start_date=date(2024, 1, 10))
        assert total == 1

        entries, total = await posting.list_entries(db_session, page=2, page_size=1)
        assert total == 2
        assert len(entries) == 1

    @pytest.mark.asyncio
    async def test_invalid_sort_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await posting.list_entries(db_session, sort_by="amount")
