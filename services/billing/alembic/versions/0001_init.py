from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'inventory',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('name_key', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('stock', sa.Integer, nullable=False, server_default='0'),
        sa.Column('unit_rate', sa.Numeric(12, 2), nullable=False),
        sa.Column('low_stock_threshold', sa.Integer, nullable=False, server_default='10'),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.CheckConstraint('stock >= 0', name='ck_inventory_stock_non_negative'),
    )
    op.create_table(
        'invoices',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('invoice_number', sa.String(30), nullable=False, unique=True, index=True),
        sa.Column('date', sa.DateTime, nullable=False, index=True),
        sa.Column('customer_name', sa.String(100), nullable=False),
        sa.Column('customer_address', sa.String(255), nullable=False),
        sa.Column('customer_mobile', sa.String(10), nullable=False),
        sa.Column('customer_gst_number', sa.String(15), nullable=True),
        sa.Column('tax_rate_percent', sa.Numeric(5, 2), nullable=False),
        sa.Column('subtotal_excl_tax', sa.Numeric(18, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('grand_total_incl_tax', sa.Numeric(18, 2), nullable=False),
        sa.Column('total_units', sa.Integer, nullable=False),
        sa.Column('terms_text', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('invoice_id', sa.String(36), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sl_no', sa.Integer, nullable=False),
        sa.Column('description', sa.String(100), nullable=False),
        sa.Column('serial_numbers', sa.JSON, nullable=True),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('rate_inclusive_of_tax', sa.Numeric(14, 2), nullable=False),
        sa.Column('rate_exclusive_of_tax', sa.Numeric(14, 2), nullable=False),
        sa.Column('amount_exclusive_of_tax', sa.Numeric(14, 2), nullable=False),
    )

def downgrade():
    op.drop_table('invoice_items')
    op.drop_table('invoices')
    op.drop_table('inventory')
