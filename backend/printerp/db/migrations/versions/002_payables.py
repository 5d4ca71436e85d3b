"""Vendors, bills and bill payments

Revision ID: 002
Revises: 001
Create Date: 2024-02-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Vendors
    op.create_table(
        'vendors',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('contact_name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('tax_id', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('ACTIVE', 'INACTIVE', name='vendorstatus', create_constraint=True),
            nullable=False
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_vendors'),
        sa.UniqueConstraint('name', name='uq_vendors_name'),
    )
    op.create_index('ix_vendors_status', 'vendors', ['status'])

    # Bills
    op.create_table(
        'bills',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('bill_number', sa.String(50), nullable=False),
        sa.Column('vendor_id', sa.String(15), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('UNPAID', 'PARTIAL', 'PAID', 'CANCELLED', name='billstatus', create_constraint=True),
            nullable=False
        ),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_amount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('journal_entry_id', sa.String(15), nullable=True),
        sa.Column('created_by_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_bills'),
        sa.ForeignKeyConstraint(
            ['vendor_id'], ['vendors.id'],
            name='fk_bills_vendor_id_vendors', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['journal_entry_id'], ['journal_entries.id'],
            name='fk_bills_journal_entry_id_journal_entries', ondelete='SET NULL'
        ),
    )
    op.create_index('ix_bills_bill_number', 'bills', ['bill_number'], unique=True)
    op.create_index('ix_bills_vendor_id', 'bills', ['vendor_id'])
    op.create_index('ix_bills_issue_date', 'bills', ['issue_date'])
    op.create_index('ix_bills_due_date', 'bills', ['due_date'])
    op.create_index('ix_bills_status', 'bills', ['status'])

    # Bill items
    op.create_table(
        'bill_items',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('bill_id', sa.String(15), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.String(15), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Numeric(18, 4), nullable=False),
        sa.Column('unit_price', sa.Numeric(18, 2), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_bill_items'),
        sa.ForeignKeyConstraint(
            ['bill_id'], ['bills.id'],
            name='fk_bill_items_bill_id_bills', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name='fk_bill_items_account_id_accounts', ondelete='RESTRICT'
        ),
        sa.CheckConstraint(
            'quantity > 0 AND unit_price >= 0', name='ck_bill_items_positive_quantity_price'
        ),
    )
    op.create_index('ix_bill_items_bill_id', 'bill_items', ['bill_id'])
    op.create_index('ix_bill_items_account_id', 'bill_items', ['account_id'])

    # Bill payments
    op.create_table(
        'bill_payments',
        sa.Column('id', sa.String(15), nullable=False),
        sa.Column('bill_id', sa.String(15), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('transaction_id', sa.String(15), nullable=True),
        sa.Column('created_by_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_bill_payments'),
        sa.ForeignKeyConstraint(
            ['bill_id'], ['bills.id'],
            name='fk_bill_payments_bill_id_bills', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['transaction_id'], ['financial_transactions.id'],
            name='fk_bill_payments_transaction_id_financial_transactions', ondelete='SET NULL'
        ),
    )
    op.create_index('ix_bill_payments_bill_id', 'bill_payments', ['bill_id'])


def downgrade() -> None:
    op.drop_table('bill_payments')
    op.drop_table('bill_items')
    op.drop_table('bills')
    op.drop_table('vendors')

    for enum_name in ('billstatus', 'vendorstatus'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
