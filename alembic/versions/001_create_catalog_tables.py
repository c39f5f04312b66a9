"""Create catalog, store, area and order tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    """Create catalog, store, area and order tables."""
    # Areas and stores
    op.create_table(
        'areas',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('city', sa.String(100), nullable=False, index=True),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lng', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, unique=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('logo_url', sa.String(1000), nullable=True),
        sa.Column('banner_url', sa.String(1000), nullable=True),
        sa.Column('store_type', sa.String(50), nullable=False, server_default='grocery'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('same_day_delivery', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('delivery_charges', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('min_order_value', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('free_delivery_threshold', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('store_hours', sa.String(200), nullable=True),
        sa.Column('delivery_hours', sa.String(200), nullable=True),
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'store_areas',
        sa.Column('store_id', sa.Integer(),
                  sa.ForeignKey('stores.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('area_id', sa.Integer(),
                  sa.ForeignKey('areas.id', ondelete='CASCADE'), primary_key=True),
    )

    # Global catalog
    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('logo_url', sa.String(1000), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False, unique=True),
        sa.Column('parent_id', sa.Integer(),
                  sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('path', sa.String(500), nullable=True, index=True),
        sa.Column('depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )

    op.create_table(
        'global_products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('slug', sa.String(500), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand_id', sa.Integer(),
                  sa.ForeignKey('brands.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('category_id', sa.Integer(),
                  sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('weight', sa.String(100), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('images', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('attributes', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
        *_timestamps(),
    )

    # Store listings: override of a global product, or a custom product
    op.create_table(
        'store_products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('store_id', sa.Integer(),
                  sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('global_product_id', sa.Integer(),
                  sa.ForeignKey('global_products.id', ondelete='RESTRICT'), nullable=True, index=True),
        sa.Column('price_override', sa.Numeric(10, 2), nullable=True),
        sa.Column('old_price_override', sa.Numeric(10, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_in_stock', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('custom_name', sa.String(500), nullable=True),
        sa.Column('custom_slug', sa.String(500), nullable=True),
        sa.Column('custom_description', sa.Text(), nullable=True),
        sa.Column('custom_brand_name', sa.String(200), nullable=True),
        sa.Column('custom_category_id', sa.Integer(),
                  sa.ForeignKey('categories.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('custom_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('custom_old_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('custom_weight', sa.String(100), nullable=True),
        sa.Column('custom_image_url', sa.String(1000), nullable=True),
        sa.Column('custom_images', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('custom_attributes', postgresql.JSONB(), nullable=False, server_default='{}'),
        *_timestamps(),
    )

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_number', sa.String(30), nullable=False, unique=True),
        sa.Column('store_id', sa.Integer(),
                  sa.ForeignKey('stores.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('status_history', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('store_name_snapshot', sa.String(200), nullable=False),
        sa.Column('delivery_address', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False, server_default='cod'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('placed_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()'), index=True),
        *_timestamps(),
    )

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.String(36),
                  sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('store_product_id', sa.Integer(),
                  sa.ForeignKey('store_products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('product_name_snapshot', sa.String(500), nullable=False),
        sa.Column('product_image_snapshot', sa.String(1000), nullable=True),
        sa.Column('product_weight_snapshot', sa.String(100), nullable=True),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('line_total', sa.Numeric(10, 2), nullable=False),
    )

    # Storefront listing lookups
    op.create_index(
        'ix_store_products_store_active',
        'store_products',
        ['store_id', 'is_active', 'is_in_stock'],
    )


def downgrade() -> None:
    """Drop catalog, store, area and order tables."""
    op.drop_index('ix_store_products_store_active', table_name='store_products')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('store_products')
    op.drop_table('global_products')
    op.drop_table('categories')
    op.drop_table('brands')
    op.drop_table('store_areas')
    op.drop_table('stores')
    op.drop_table('areas')
