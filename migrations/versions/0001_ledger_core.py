"""ledger core tables

Revision ID: 0001_ledger_core
Revises: 
Create Date: 2026-10-16
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_ledger_core'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _settlement_table(name: str, date_column: str):
    op.create_table(name,
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column(date_column, sa.DateTime(timezone=True), nullable=True),
        sa.Column('origin_type', sa.String(length=32), nullable=True),
        sa.Column('origin_id', sa.String(length=36), nullable=True),
        sa.Column('document_number', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id'), nullable=False),
        sa.Column('financial_transaction_id', sa.String(length=36), sa.ForeignKey('financial_transactions.id'), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    for col in ('due_date', 'status', date_column, 'company_id', 'branch_id', 'financial_transaction_id'):
        op.create_index(f'ix_{name}_{col}', name, [col])


def upgrade():
    op.create_table('companies',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table('branches',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_branches_company_id', 'branches', ['company_id'])
    op.create_table('maintenance_orders',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id'), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_maintenance_orders_company_id', 'maintenance_orders', ['company_id'])
    op.create_index('ix_maintenance_orders_branch_id', 'maintenance_orders', ['branch_id'])

    op.create_table('financial_transactions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('origin_type', sa.String(length=32), nullable=True),
        sa.Column('origin_id', sa.String(length=36), nullable=True),
        sa.Column('document_number', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('company_id', sa.String(length=36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id'), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        *_timestamps(),
    )
    for col in ('type', 'transaction_date', 'company_id', 'branch_id'):
        op.create_index(f'ix_financial_transactions_{col}', 'financial_transactions', [col])

    _settlement_table('accounts_payable', 'payment_date')
    _settlement_table('accounts_receivable', 'receipt_date')

    op.create_table('branch_balances',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('branch_id', sa.String(length=36), sa.ForeignKey('branches.id'), nullable=False, unique=True),
        sa.Column('balance', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table('balance_adjustments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('branch_balance_id', sa.String(length=36), sa.ForeignKey('branch_balances.id'), nullable=False),
        sa.Column('previous_balance', sa.Numeric(14, 2), nullable=False),
        sa.Column('new_balance', sa.Numeric(14, 2), nullable=False),
        sa.Column('adjustment_type', sa.String(length=32), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_balance_adjustments_branch_balance_id', 'balance_adjustments', ['branch_balance_id'])
    op.create_index('ix_balance_adjustments_created_at', 'balance_adjustments', ['created_at'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.String(length=36), nullable=True),
        sa.Column('actor_role', sa.String(length=32), nullable=True),
        sa.Column('branch_id', sa.String(length=36), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('before', sa.JSON(), nullable=True),
        sa.Column('after', sa.JSON(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    for col in ('actor_user_id', 'branch_id', 'action', 'entity_id'):
        op.create_index(f'ix_audit_logs_{col}', 'audit_logs', [col])


def downgrade():
    for name in (
        'audit_logs', 'balance_adjustments', 'branch_balances', 'accounts_receivable',
        'accounts_payable', 'financial_transactions', 'maintenance_orders', 'branches', 'companies',
    ):
        op.drop_table(name)
