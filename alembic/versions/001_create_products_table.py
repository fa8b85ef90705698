"""Create products table.

Revision ID: 001
Revises:
Create Date: 2026-10-19

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
    """Create products table and its query indexes."""
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('main_category', sa.String(200), nullable=False),
        sa.Column('sub_category', sa.String(200), nullable=False),
        sa.Column('nested_category', sa.String(200), nullable=False, server_default=''),
        sa.Column('composition', sa.Text(), nullable=True),
        sa.Column('gsm', sa.String(100), nullable=True),
        sa.Column('width', sa.String(100), nullable=True),
        sa.Column('count', sa.String(100), nullable=True),
        sa.Column('construction', sa.String(200), nullable=True),
        sa.Column('weave', sa.String(200), nullable=True),
        sa.Column('finish', sa.String(200), nullable=True),
        sa.Column('specifications', sa.JSON(), nullable=False),
        sa.Column('image_data', sa.LargeBinary(), nullable=True),
        sa.Column('image_content_type', sa.String(100), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('product_url', sa.String(1000), nullable=False, server_default=''),
        sa.Column('in_stock', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_index('ix_products_main_category', 'products', ['main_category'])
    op.create_index('ix_products_created_at', 'products', ['created_at'])
    op.create_index('ix_products_in_stock', 'products', ['in_stock'])


def downgrade() -> None:
    """Drop products table."""
    op.drop_index('ix_products_in_stock', table_name='products')
    op.drop_index('ix_products_created_at', table_name='products')
    op.drop_index('ix_products_main_category', table_name='products')
    op.drop_table('products')
