"""Create Rise Local tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users 테이블
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='buyer'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('is_pass_member', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('pass_expires_at', sa.DateTime(), nullable=True),
        sa.Column('tier', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('buyer', 'vendor', 'admin')", name='check_user_role'),
        sa.CheckConstraint(
            "status IN ('active', 'suspended', 'deleted')", name='check_user_status'
        ),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_status', 'users', ['status'])

    # Vendors 테이블
    op.create_table(
        'vendors',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'owner_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False, unique=True,
        ),
        sa.Column('business_name', sa.String(200), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_vendors_city', 'vendors', ['city'])
    op.create_index('idx_vendors_verified', 'vendors', ['is_verified'])

    # Deals 테이블
    op.create_table(
        'deals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'vendor_id', sa.Uuid(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('deal_type', sa.String(20), nullable=False, server_default='percent'),
        sa.Column('tier', sa.String(20), nullable=True),
        sa.Column('is_pass_locked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('discount_type', sa.String(20), nullable=True),
        sa.Column('discount_value', sa.DECIMAL(10, 2), nullable=True),
        sa.Column('original_price', sa.DECIMAL(10, 2), nullable=True),
        sa.Column(
            'redemption_frequency', sa.String(20), nullable=False, server_default='once'
        ),
        sa.Column('custom_redemption_days', sa.Integer(), nullable=True),
        sa.Column('max_redemptions_per_user', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.Column('coupon_redemption_type', sa.String(10), nullable=True),
        sa.Column('static_code', sa.String(50), nullable=True),
        sa.Column('code_reserve_minutes', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("deal_type IN ('bogo', 'percent', 'addon')", name='check_deal_type'),
        sa.CheckConstraint(
            "redemption_frequency IN ('once', 'weekly', 'monthly', 'unlimited', 'custom')",
            name='check_redemption_frequency',
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'paused', 'expired')", name='check_deal_status'
        ),
        sa.CheckConstraint(
            "coupon_redemption_type IS NULL OR coupon_redemption_type IN ('STATIC', 'UNIQUE')",
            name='check_coupon_redemption_type',
        ),
        sa.CheckConstraint(
            "custom_redemption_days IS NULL OR custom_redemption_days >= 1",
            name='check_custom_days_positive',
        ),
        sa.CheckConstraint(
            "max_redemptions_per_user IS NULL OR max_redemptions_per_user >= 1",
            name='check_max_redemptions_positive',
        ),
    )
    op.create_index('ix_deals_vendor_id', 'deals', ['vendor_id'])
    op.create_index('ix_deals_status', 'deals', ['status'])
    op.create_index('idx_deals_vendor_status', 'deals', ['vendor_id', 'status'])

    # Deal codes 테이블 (UNIQUE 코드 풀)
    op.create_table(
        'deal_codes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'deal_id', sa.Uuid(),
            sa.ForeignKey('deals.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='AVAILABLE'),
        sa.Column(
            'assigned_to_user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('reserved_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('redeemed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('deal_id', 'code', name='uq_deal_codes_deal_code'),
        sa.CheckConstraint(
            "status IN ('AVAILABLE', 'RESERVED', 'REDEEMED', 'EXPIRED')",
            name='check_deal_code_status',
        ),
    )
    op.create_index('ix_deal_codes_assigned_to_user_id', 'deal_codes', ['assigned_to_user_id'])
    op.create_index('idx_deal_codes_deal_status', 'deal_codes', ['deal_id', 'status'])

    # Redemptions 테이블
    op.create_table(
        'redemptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'deal_id', sa.Uuid(),
            sa.ForeignKey('deals.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'vendor_id', sa.Uuid(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'deal_code_id', sa.Uuid(),
            sa.ForeignKey('deal_codes.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('source', sa.String(20), nullable=False, server_default='web'),
        sa.Column('status', sa.String(20), nullable=False, server_default='redeemed'),
        sa.Column('redeemed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('voided_at', sa.DateTime(), nullable=True),
        sa.Column('voided_by', sa.String(20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('redeemed', 'voided')", name='check_redemption_status'),
        sa.CheckConstraint(
            "source IN ('web', 'vendor_verify')", name='check_redemption_source'
        ),
        sa.CheckConstraint(
            "voided_by IS NULL OR voided_by IN ('customer', 'vendor')",
            name='check_redemption_voided_by',
        ),
    )
    op.create_index('ix_redemptions_vendor_id', 'redemptions', ['vendor_id'])
    op.create_index(
        'idx_redemptions_user_deal', 'redemptions', ['user_id', 'deal_id', 'redeemed_at']
    )

    # Products 테이블
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'vendor_id', sa.Uuid(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('price', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('inventory', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('price >= 0', name='check_price_non_negative'),
        sa.CheckConstraint('inventory >= 0', name='check_inventory_non_negative'),
    )
    op.create_index('idx_products_vendor', 'products', ['vendor_id'])
    op.create_index('idx_products_category', 'products', ['category'])

    # Orders 테이블
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'buyer_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('fulfillment_method', sa.String(20), nullable=False),
        sa.Column('subtotal', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('tax', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('buyer_fee', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('total', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled')", name='check_order_status'
        ),
        sa.CheckConstraint(
            "fulfillment_method IN ('pickup', 'delivery', 'shipping')",
            name='check_fulfillment_method',
        ),
    )
    op.create_index('idx_orders_buyer_created', 'orders', ['buyer_id', 'created_at'])

    # Order items 테이블
    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'order_id', sa.Uuid(),
            sa.ForeignKey('orders.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('vendor_id', sa.Uuid(), sa.ForeignKey('vendors.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_at_purchase', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('variant_id', sa.String(100), nullable=True),
        sa.Column('options', sa.JSON(), nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    # Conversations / messages 테이블
    op.create_table(
        'conversations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'consumer_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'vendor_id', sa.Uuid(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('last_message_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            'consumer_id', 'vendor_id', name='uq_conversations_consumer_vendor'
        ),
    )
    op.create_index('ix_conversations_vendor_id', 'conversations', ['vendor_id'])

    op.create_table(
        'conversation_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'conversation_id', sa.Uuid(),
            sa.ForeignKey('conversations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'sender_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        'idx_messages_conversation_created',
        'conversation_messages',
        ['conversation_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_table('conversation_messages')
    op.drop_table('conversations')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('redemptions')
    op.drop_table('deal_codes')
    op.drop_table('deals')
    op.drop_table('vendors')
    op.drop_table('users')
