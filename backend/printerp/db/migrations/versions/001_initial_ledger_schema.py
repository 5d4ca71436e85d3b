"""Initial ledger schema

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Chart of accounts
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'account_type',
            sa.Enum('ASSET', 'LIABILITY', 'EQUITY', 'REVENUE', 'EXPENSE', name='accounttype', create_constraint=True),
            nullable=False
        ),
        sa.Column('subtype', sa.String(100), nullable=True),
        sa.Column('balance', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_accounts'),
    )
    op.create_index('ix_accounts_code', 'accounts', ['code'], unique=True)
    op.create_index('ix_accounts_account_type', 'accounts', ['account_type'])
    op.create_index('ix_accounts_is_active', 'accounts', ['is_active'])

    # Financial periods
    op.create_table(
        'financial_periods',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column(
            'period_type',
            sa.Enum('MONTHLY', 'QUARTERLY', 'ANNUAL', 'CUSTOM', name='periodtype', create_constraint=True),
            nullable=False
        ),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('quarter', sa.Integer(), nullable=True),
        sa.Column('month', sa.Integer(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('OPEN', 'CLOSED', name='periodstatus', create_constraint=True),
            nullable=False
        ),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_by_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_financial_periods'),
        sa.CheckConstraint('start_date <= end_date', name='ck_financial_periods_date_range'),
    )
    op.create_index('ix_financial_periods_start_date', 'financial_periods', ['start_date'])
    op.create_index('ix_financial_periods_end_date', 'financial_periods', ['end_date'])
    op.create_index('ix_financial_periods_year', 'financial_periods', ['year'])
    op.create_index('ix_financial_periods_status', 'financial_periods', ['status'])

    # Journal entries
    op.create_table(
        'journal_entries',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('entry_number', sa.String(50), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column(
            'status',
            sa.Enum('DRAFT', 'POSTED', 'CANCELLED', name='journalentrystatus', create_constraint=True),
            nullable=False
        ),
        sa.Column('period_id', sa.String(15), nullable=False),
        sa.Column('source_type', sa.String(50), nullable=False),
        sa.Column('source_id', sa.String(15), nullable=True),
        sa.Column('reversal_of_id', sa.String(15), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('posted_by_id', sa.String(64), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by_id', sa.String(64), nullable=True),
        sa.Column('created_by_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_journal_entries'),
        sa.ForeignKeyConstraint(
            ['period_id'], ['financial_periods.id'],
            name='fk_journal_entries_period_id_financial_periods', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['reversal_of_id'], ['journal_entries.id'],
            name='fk_journal_entries_reversal_of_id_journal_entries', ondelete='RESTRICT'
        ),
    )
    op.create_index('ix_journal_entries_entry_number', 'journal_entries', ['entry_number'], unique=True)
    op.create_index('ix_journal_entries_entry_date', 'journal_entries', ['entry_date'])
    op.create_index('ix_journal_entries_status', 'journal_entries', ['status'])
    op.create_index('ix_journal_entries_period_id', 'journal_entries', ['period_id'])
    op.create_index('ix_journal_entries_reversal_of_id', 'journal_entries', ['reversal_of_id'])

    # Journal entry items
    op.create_table(
        'journal_entry_items',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('journal_entry_id', sa.String(15), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.String(15), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('debit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('credit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_journal_entry_items'),
        sa.ForeignKeyConstraint(
            ['journal_entry_id'], ['journal_entries.id'],
            name='fk_journal_entry_items_journal_entry_id_journal_entries', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name='fk_journal_entry_items_account_id_accounts', ondelete='RESTRICT'
        ),
        sa.CheckConstraint('debit >= 0 AND credit >= 0', name='ck_journal_entry_items_non_negative_amounts'),
    )
    op.create_index('ix_journal_entry_items_journal_entry_id', 'journal_entry_items', ['journal_entry_id'])
    op.create_index('ix_journal_entry_items_account_id', 'journal_entry_items', ['account_id'])

    # Document number counters
    op.create_table(
        'entry_sequences',
        sa.Column('prefix', sa.String(50), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('prefix', name='pk_entry_sequences'),
    )

    # Departments and budgets
    op.create_table(
        'departments',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_departments'),
        sa.UniqueConstraint('name', name='uq_departments_name'),
    )

    op.create_table(
        'budgets',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('department_id', sa.String(15), nullable=True),
        sa.Column('period_id', sa.String(15), nullable=True),
        sa.Column('total_amount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_budgets'),
        sa.ForeignKeyConstraint(
            ['department_id'], ['departments.id'],
            name='fk_budgets_department_id_departments', ondelete='SET NULL'
        ),
        sa.ForeignKeyConstraint(
            ['period_id'], ['financial_periods.id'],
            name='fk_budgets_period_id_financial_periods', ondelete='RESTRICT'
        ),
        sa.UniqueConstraint('department_id', 'period_id', name='uq_budgets_department_period'),
    )
    op.create_index('ix_budgets_year', 'budgets', ['year'])
    op.create_index('ix_budgets_department_id', 'budgets', ['department_id'])
    op.create_index('ix_budgets_period_id', 'budgets', ['period_id'])

    op.create_table(
        'budget_items',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('budget_id', sa.String(15), nullable=False),
        sa.Column('account_id', sa.String(15), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_budget_items'),
        sa.ForeignKeyConstraint(
            ['budget_id'], ['budgets.id'],
            name='fk_budget_items_budget_id_budgets', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name='fk_budget_items_account_id_accounts', ondelete='RESTRICT'
        ),
    )
    op.create_index('ix_budget_items_budget_id', 'budget_items', ['budget_id'])
    op.create_index('ix_budget_items_account_id', 'budget_items', ['account_id'])

    # Cash transactions
    op.create_table(
        'financial_transactions',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('transaction_number', sa.String(50), nullable=False),
        sa.Column(
            'transaction_type',
            sa.Enum('INCOME', 'EXPENSE', 'PAYOUT', name='transactiontype', create_constraint=True),
            nullable=False
        ),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('COMPLETED', 'PENDING', name='transactionstatus', create_constraint=True),
            nullable=False
        ),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('reference_number', sa.String(100), nullable=True),
        sa.Column('account_id', sa.String(15), nullable=False),
        sa.Column('counter_account_id', sa.String(15), nullable=True),
        sa.Column('journal_entry_id', sa.String(15), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_financial_transactions'),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name='fk_financial_transactions_account_id_accounts', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['counter_account_id'], ['accounts.id'],
            name='fk_financial_transactions_counter_account_id_accounts', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['journal_entry_id'], ['journal_entries.id'],
            name='fk_financial_transactions_journal_entry_id_journal_entries', ondelete='SET NULL'
        ),
    )
    op.create_index(
        'ix_financial_transactions_transaction_number', 'financial_transactions',
        ['transaction_number'], unique=True
    )
    op.create_index('ix_financial_transactions_transaction_type', 'financial_transactions', ['transaction_type'])
    op.create_index('ix_financial_transactions_transaction_date', 'financial_transactions', ['transaction_date'])
    op.create_index('ix_financial_transactions_account_id', 'financial_transactions', ['account_id'])

    # Orders (payment fields only are maintained by this service)
    op.create_table(
        'orders',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('order_number', sa.String(50), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('invoice_number', sa.String(50), nullable=True),
        sa.Column('invoice_date', sa.Date(), nullable=True),
        sa.Column('total_amount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('down_payment', sa.Numeric(18, 2), nullable=True),
        sa.Column('down_payment_date', sa.Date(), nullable=True),
        sa.Column('settlement_date', sa.Date(), nullable=True),
        sa.Column('balance_due', sa.Numeric(18, 2), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('payment_notes', sa.Text(), nullable=True),
        sa.Column('down_payment_receipt', sa.String(500), nullable=True),
        sa.Column('settlement_receipt', sa.String(500), nullable=True),
        sa.Column('production_status', sa.String(50), nullable=True),
        sa.Column('goods_approval', sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_invoice_number', 'orders', ['invoice_number'])


def downgrade() -> None:
    op.drop_table('orders')
    op.drop_table('financial_transactions')
    op.drop_table('budget_items')
    op.drop_table('budgets')
    op.drop_table('departments')
    op.drop_table('entry_sequences')
    op.drop_table('journal_entry_items')
    op.drop_table('journal_entries')
    op.drop_table('financial_periods')
    op.drop_table('accounts')

    for enum_name in (
        'transactionstatus', 'transactiontype', 'journalentrystatus',
        'periodstatus', 'periodtype', 'accounttype',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
