"""initial storefront schema

Revision ID: 0001_initial_storefront
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete storefront schema:
- users / session_tokens: one-time code sign-in and bearer sessions
- products / product_variants: catalog, price and stock per variant
- inventory_offers: standalone sellable items with their own quantity pool
- orders / order_items: placed orders with priced item snapshots

Stock and quantity columns carry CHECK (>= 0) constraints as a backstop for
the conditional decrements done at order placement.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_storefront'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users: storefront accounts (email and/or phone)
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('avatar', sa.String(length=512), nullable=True),
        sa.Column('address_street', sa.String(length=255), nullable=True),
        sa.Column('address_city', sa.String(length=128), nullable=True),
        sa.Column('address_state', sa.String(length=128), nullable=True),
        sa.Column('address_zip', sa.String(length=32), nullable=True),
        sa.Column('address_country', sa.String(length=128), nullable=True),
        sa.Column('preference_notes', sa.JSON(), nullable=False),
        sa.Column('preference_categories', sa.JSON(), nullable=False),
        sa.Column('otp_hash', sa.String(length=255), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(), nullable=True),
        sa.Column('otp_failed_attempts', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('phone'),
        sa.CheckConstraint("email IS NOT NULL OR phone IS NOT NULL", name='ck_users_has_identifier'),
        sa.CheckConstraint("role IN ('customer', 'admin')", name='ck_users_role'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)

    # ============================================================================
    # products / product_variants: catalog
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('notes', sa.JSON(), nullable=False),
        sa.Column('image', sa.String(length=512), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category_active', 'products', ['category', 'is_active'])

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('stock >= 0', name='ck_product_variants_stock_nonnegative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_product_variants_price_nonnegative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])
    op.create_index('ix_product_variants_sku', 'product_variants', ['sku'])

    # ============================================================================
    # inventory_offers: secondary sellable source
    # ============================================================================
    op.create_table(
        'inventory_offers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('size', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('mrp_cents', sa.Integer(), nullable=False),
        sa.Column('offer', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_offers_quantity_nonnegative'),
        sa.CheckConstraint('mrp_cents >= 0', name='ck_inventory_offers_mrp_nonnegative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_offers_category_active', 'inventory_offers', ['category', 'is_active'])
    op.create_index('ix_inventory_offers_item', 'inventory_offers', ['item'])

    # ============================================================================
    # orders / order_items
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('customer_address', sa.Text(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_cents >= 0', name='ck_orders_total_nonnegative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_user_created', 'orders', ['user_id', 'created_at'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=16), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('variant_id', sa.Integer(), nullable=True),
        sa.Column('offer_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('variant_name', sa.String(length=255), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('image', sa.String(length=512), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('unit_price_cents >= 0', name='ck_order_items_price_nonnegative'),
        sa.CheckConstraint("source IN ('catalog', 'offer')", name='ck_order_items_source'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])


def downgrade():
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_user_created', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_inventory_offers_item', table_name='inventory_offers')
    op.drop_index('ix_inventory_offers_category_active', table_name='inventory_offers')
    op.drop_table('inventory_offers')
    op.drop_index('ix_product_variants_sku', table_name='product_variants')
    op.drop_index('ix_product_variants_product_id', table_name='product_variants')
    op.drop_table('product_variants')
    op.drop_index('ix_products_category_active', table_name='products')
    op.drop_table('products')
    op.drop_index('ix_session_tokens_token_hash', table_name='session_tokens')
    op.drop_index('ix_session_tokens_user_id', table_name='session_tokens')
    op.drop_table('session_tokens')
    op.drop_table('users')
