"""create payment_transactions table

Revision ID: 2026_10_18_1200
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '2026_10_18_1200'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.String(length=128), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('pending', 'success', 'failed', name='payment_transaction_status', create_constraint=True),
            nullable=False,
            server_default='pending',
        ),
        sa.Column('gateway_reference', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_payment_transactions'),
    )
    op.create_index('ix_payment_transactions_id', 'payment_transactions', ['id'])
    op.create_index('ix_payment_transactions_transaction_id', 'payment_transactions', ['transaction_id'], unique=True)
    op.create_index('ix_payment_transactions_status', 'payment_transactions', ['status'])


def downgrade():
    op.drop_index('ix_payment_transactions_status', table_name='payment_transactions')
    op.drop_index('ix_payment_transactions_transaction_id', table_name='payment_transactions')
    op.drop_index('ix_payment_transactions_id', table_name='payment_transactions')
    op.drop_table('payment_transactions')
    sa.Enum(name='payment_transaction_status').drop(op.get_bind(), checkfirst=True)
