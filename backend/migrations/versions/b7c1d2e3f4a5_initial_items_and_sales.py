"""initial items and sales

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema from scratch:
- items: Sellable stock with price (cents), on-hand stock, optional
  expiration date and soft-delete flag
- sales: Append-only committed sale lines, one row per cart line
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # items: Item master with on-hand stock
    # ============================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('stock >= 0', name='ck_items_stock_non_negative'),
        sa.CheckConstraint('unit_price_cents > 0', name='ck_items_price_positive'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_items_name', 'items', ['name'])
    op.create_index('ix_items_active_expiration', 'items', ['is_active', 'expiration_date'])

    # ============================================================================
    # sales: Committed sale lines (immutable)
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('sold_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity > 0', name='ck_sales_quantity_positive'),
        sa.CheckConstraint('unit_price_cents > 0', name='ck_sales_price_positive'),
        sa.CheckConstraint('total_cents = quantity * unit_price_cents', name='ck_sales_total'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_sold_at', 'sales', ['sold_at'])
    op.create_index('ix_sales_actor_sold_at', 'sales', ['actor_id', 'sold_at'])
    op.create_index('ix_sales_item_sold_at', 'sales', ['item_id', 'sold_at'])


def downgrade():
    op.drop_index('ix_sales_item_sold_at', table_name='sales')
    op.drop_index('ix_sales_actor_sold_at', table_name='sales')
    op.drop_index('ix_sales_sold_at', table_name='sales')
    op.drop_table('sales')

    op.drop_index('ix_items_active_expiration', table_name='items')
    op.drop_index('ix_items_name', table_name='items')
    op.drop_table('items')
