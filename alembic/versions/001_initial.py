"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

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
    # Create tenants table
    op.create_table(
        'tenants',
        sa.Column('tenant_id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
    )

    # Create subscriptions table
    op.create_table(
        'subscriptions',
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id'), primary_key=True),
        sa.Column('plan', sa.String(20), nullable=False, server_default='monthly'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(8), nullable=False, server_default='INR'),
        sa.Column('start_at', sa.BigInteger(), nullable=False),
        sa.Column('current_period_start', sa.BigInteger(), nullable=False),
        sa.Column('current_period_end', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
    )

    # Create users table
    op.create_table(
        'users',
        sa.Column('user_id', sa.String(64), primary_key=True),
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id')),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('role', sa.String(32), server_default='customer'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.BigInteger()),
        sa.Column('created_at', sa.BigInteger()),
    )

    # Create orders table
    op.create_table(
        'orders',
        sa.Column('order_id', sa.String(64), primary_key=True),
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id'), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='confirmed'),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(32), nullable=False),
        sa.Column('customer_phone_last10', sa.String(10), nullable=False),
        sa.Column('customer_email', sa.String(255)),
        sa.Column('address_json', sa.JSON(), nullable=False),
        sa.Column('items_json', sa.JSON(), nullable=False),
        sa.Column('totals_json', sa.JSON(), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('payment_reference', sa.String(255), nullable=False),
        sa.Column('delivery_fee_mode', sa.String(32), nullable=False, server_default='prepaid'),
        sa.Column('delivery_fee_settlement_status', sa.String(32), nullable=False),
        sa.Column('delivery_fee_collection_json', sa.JSON()),
        sa.Column('delivery_confirmation_json', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
    )

    # Create tracking table
    op.create_table(
        'tracking',
        sa.Column('order_id', sa.String(64), sa.ForeignKey('orders.order_id'), primary_key=True),
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id'), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='assigned'),
        sa.Column('agent_name', sa.String(255), nullable=False),
        sa.Column('agent_phone', sa.String(32), nullable=False),
        sa.Column('eta_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_lat', sa.Float(), nullable=False),
        sa.Column('current_lng', sa.Float(), nullable=False),
        sa.Column('events_json', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
    )

    # Create customer_lookup_otps table
    op.create_table(
        'customer_lookup_otps',
        sa.Column('request_id', sa.String(64), primary_key=True),
        sa.Column('phone', sa.String(32), nullable=False),
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id'), nullable=False),
        sa.Column('otp_code', sa.String(8), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('expires_at', sa.BigInteger(), nullable=False),
    )

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('provider_message_id', sa.String(64), primary_key=True),
        sa.Column('tenant_id', sa.String(64), sa.ForeignKey('tenants.tenant_id'), nullable=False),
        sa.Column('order_id', sa.String(64), sa.ForeignKey('orders.order_id'), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('channel', sa.String(16), nullable=False, server_default='whatsapp'),
        sa.Column('queued', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('delivered_to_provider', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
    )

    # Create audit_logs table
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(64)),
        sa.Column('actor_user_id', sa.String(64)),
        sa.Column('actor_email', sa.String(255)),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', sa.String(64)),
        sa.Column('status', sa.String(20), server_default='success'),
        sa.Column('details_json', sa.JSON()),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
    )

    # Create indexes
    op.create_index('ix_orders_tenant_id', 'orders', ['tenant_id'])
    op.create_index('ix_orders_tenant_phone', 'orders', ['tenant_id', 'customer_phone_last10'])
    op.create_index('ix_tracking_tenant_id', 'tracking', ['tenant_id'])
    op.create_index('ix_tracking_status', 'tracking', ['status'])
    op.create_index('ix_customer_lookup_otps_expires_at', 'customer_lookup_otps', ['expires_at'])
    op.create_index('ix_notifications_tenant_id', 'notifications', ['tenant_id'])
    op.create_index('ix_notifications_order_id', 'notifications', ['order_id'])
    op.create_index('ix_audit_logs_tenant_id', 'audit_logs', ['tenant_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('notifications')
    op.drop_table('customer_lookup_otps')
    op.drop_table('tracking')
    op.drop_table('orders')
    op.drop_table('users')
    op.drop_table('subscriptions')
    op.drop_table('tenants')
