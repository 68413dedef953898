"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create orders table
    op.create_table(
        'orders',
        sa.Column('order_id', sa.String(36), primary_key=True),
        sa.Column('short_code', sa.String(16), nullable=False),
        sa.Column('canteen', sa.String(255), nullable=False),
        sa.Column('items_json', sa.JSON(), nullable=False),
        sa.Column('total_amount_minor', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', sa.String(32), nullable=False, server_default='PENDING_PAYMENT'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('paid_at', sa.DateTime()),
        sa.Column('payment_provider', sa.String(32)),
        sa.Column('payment_method', sa.String(32)),
        sa.Column('provider_intent_id', sa.String(64)),
        sa.Column('provider_payment_id', sa.String(64)),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_status_expires_at', 'orders', ['status', 'expires_at'])
    op.create_index('ix_orders_provider_intent_id', 'orders', ['provider_intent_id'])

    # Create otp_challenges table
    op.create_table(
        'otp_challenges',
        sa.Column('email', sa.String(255), primary_key=True),
        sa.Column('code', sa.String(12), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('delivered_at', sa.DateTime()),
    )


def downgrade() -> None:
    op.drop_table('otp_challenges')
    op.drop_index('ix_orders_provider_intent_id', table_name='orders')
    op.drop_index('ix_orders_status_expires_at', table_name='orders')
    op.drop_index('ix_orders_created_at', table_name='orders')
    op.drop_table('orders')
