"""campaign offers

Revision ID: 0002_campaign_offers
Revises: 0001_initial_storefront
Create Date: 2026-10-18 12:00:00.000000

Adds storefront campaign offers:
- offers: title, description, bundle/discount type, optional percentage and dates
- offer_products: many-to-many link to catalog products
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_campaign_offers'
down_revision = '0001_initial_storefront'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'offers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('discount_percent', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("type IN ('bundle', 'discount')", name='ck_offers_type'),
        sa.CheckConstraint(
            'discount_percent IS NULL OR (discount_percent >= 0 AND discount_percent <= 100)',
            name='ck_offers_discount_percent_range',
        ),
        sqlite_autoincrement=True
    )
    op.create_index('ix_offers_active_dates', 'offers', ['is_active', 'start_date', 'end_date'])

    op.create_table(
        'offer_products',
        sa.Column('offer_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('offer_id', 'product_id'),
    )


def downgrade():
    op.drop_table('offer_products')
    op.drop_index('ix_offers_active_dates', table_name='offers')
    op.drop_table('offers')
