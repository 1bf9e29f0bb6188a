"""Events, restaurants and menu items

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

조회 전용 이벤트 / 레스토랑 / 메뉴 테이블을 추가합니다.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '004'
down_revision = '003'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Restaurants 테이블
    op.create_table(
        'restaurants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'owner_id', sa.Uuid(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('restaurant_name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cuisine_type', sa.String(100), nullable=True),
        sa.Column('price_range', sa.String(10), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('address', sa.String(300), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_restaurants_owner', 'restaurants', ['owner_id'])
    op.create_index('idx_restaurants_verified', 'restaurants', ['is_verified'])

    # Menu items 테이블
    op.create_table(
        'menu_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'restaurant_id', sa.Uuid(),
            sa.ForeignKey('restaurants.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('price', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('price >= 0', name='check_menu_price_non_negative'),
    )
    op.create_index(
        'idx_menu_items_restaurant', 'menu_items', ['restaurant_id', 'display_order']
    )

    # Events 테이블
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'organizer_id', sa.Uuid(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'restaurant_id', sa.Uuid(),
            sa.ForeignKey('restaurants.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(300), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('tickets_available', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rsvp_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('tickets_available >= 0', name='check_tickets_non_negative'),
    )
    op.create_index('idx_events_starts_at', 'events', ['starts_at'])
    op.create_index('idx_events_organizer', 'events', ['organizer_id'])
    op.create_index('idx_events_restaurant', 'events', ['restaurant_id'])


def downgrade() -> None:
    op.drop_table('events')
    op.drop_table('menu_items')
    op.drop_table('restaurants')
