"""create ledger tables read by the financial reports

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-03-02 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(15, 2)

fund_type = postgresql.ENUM('fund_in', 'fund_out', name='fundtype', create_type=False)
transaction_type = postgresql.ENUM('income', 'expense', name='transactiontype', create_type=False)
transaction_origin = postgresql.ENUM(
    'manual', 'sale_payment', 'vendor_payment', 'stock_purchase', 'asset_purchase', 'prepaid_rent',
    name='transactionorigin', create_type=False,
)
derived_income = postgresql.ENUM('medicine', 'optics', name='derivedincome', create_type=False)
expense_class = postgresql.ENUM('operating', 'capital', 'prepaid_rent', 'security_deposit', name='expenseclass', create_type=False)
balance_type = postgresql.ENUM('due', 'advance', name='balancetype', create_type=False)
vendor_transaction_type = postgresql.ENUM('purchase', 'payment', 'return', 'adjustment', name='vendortransactiontype', create_type=False)
asset_status = postgresql.ENUM('active', 'fully_paid', 'inactive', name='assetstatus', create_type=False)
product_line = postgresql.ENUM('frames', 'lenses', 'complete_glasses', name='productline', create_type=False)
movement_type = postgresql.ENUM('purchase', 'sale', name='movementtype', create_type=False)
advance_source = postgresql.ENUM('ledger', 'legacy_field', name='advancesource', create_type=False)
booking_status = postgresql.ENUM('scheduled', 'completed', 'cancelled', 'rescheduled', name='bookingstatus', create_type=False)
floor_type = postgresql.ENUM('2_3_floor', '4_floor', name='floortype', create_type=False)
rent_status = postgresql.ENUM('active', 'exhausted', 'cancelled', name='rentstatus', create_type=False)

ENUM_TYPES = (
    fund_type, transaction_type, transaction_origin, derived_income, expense_class, balance_type,
    vendor_transaction_type, asset_status, product_line, movement_type, advance_source,
    booking_status, floor_type, rent_status,
)


def upgrade() -> None:
    """Upgrade schema."""
    # Enum types are shared between tables, create each once up front
    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'hospital_account',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'hospital_fund_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('voucher_no', sa.String(20), nullable=False, unique=True),
        sa.Column('type', fund_type, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('purpose', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_fund_transactions_date', 'hospital_fund_transactions', ['date'])

    op.create_table(
        'hospital_income_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('derived_income', derived_income, nullable=True),
    )
    op.create_table(
        'hospital_expense_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('expense_class', expense_class, nullable=False, server_default='operating'),
    )
    op.create_table(
        'hospital_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('transaction_no', sa.String(20), nullable=False, unique=True),
        sa.Column('type', transaction_type, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('income_category_id', sa.Integer(), sa.ForeignKey('hospital_income_categories.id'), nullable=True),
        sa.Column('expense_category_id', sa.Integer(), sa.ForeignKey('hospital_expense_categories.id'), nullable=True),
        sa.Column('origin', transaction_origin, nullable=False, server_default='manual'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_hospital_transactions_date', 'hospital_transactions', ['type', 'transaction_date'])

    for prefix in ('optics', 'medicine'):
        op.create_table(
            f'{prefix}_vendors',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('opening_balance', MONEY, nullable=False, server_default='0'),
            sa.Column('current_balance', MONEY, nullable=False, server_default='0'),
            sa.Column('balance_type', balance_type, nullable=False, server_default='due'),
        )
    op.create_table(
        'optics_vendor_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('optics_vendors.id'), nullable=False),
        sa.Column('type', vendor_transaction_type, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.Date(), nullable=False),
    )
    op.create_table(
        'medicine_vendor_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('medicine_vendors.id'), nullable=False),
        sa.Column('type', vendor_transaction_type, nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
    )
    op.create_table(
        'medicine_vendor_payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('medicine_vendors.id'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'fixed_asset_vendors',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
    )
    op.create_table(
        'fixed_assets',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('asset_number', sa.String(20), nullable=False, unique=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('paid_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('status', asset_status, nullable=False, server_default='active'),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('fixed_asset_vendors.id'), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'fixed_asset_vendor_payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('fixed_asset_vendors.id'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
    )

    op.create_table(
        'medicine_sales',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('invoice_number', sa.String(20), nullable=False, unique=True),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('paid_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'medicine_sale_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('medicine_sale_id', sa.Integer(), sa.ForeignKey('medicine_sales.id'), nullable=False),
        sa.Column('medicine_name', sa.String(150), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.Column('buy_price', MONEY, nullable=False, server_default='0'),
    )
    op.create_table(
        'medicine_sale_payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('medicine_sale_id', sa.Integer(), sa.ForeignKey('medicine_sales.id'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
    )
    op.create_table(
        'medicine_stock_purchases',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('medicine_name', sa.String(150), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('medicine_vendors.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'optics_products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_line', product_line, nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
    )
    op.create_table(
        'optics_sales',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('invoice_number', sa.String(20), nullable=False, unique=True),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('advance_payment', MONEY, nullable=False, server_default='0'),
        sa.Column('advance_recorded_in', advance_source, nullable=False, server_default='ledger'),
        sa.Column('glass_fitting_price', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'optics_stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('optics_products.id'), nullable=False),
        sa.Column('movement_type', movement_type, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', MONEY, nullable=False),
        sa.Column('buy_price', MONEY, nullable=True),
        sa.Column('movement_date', sa.Date(), nullable=False),
        sa.Column('optics_sale_id', sa.Integer(), sa.ForeignKey('optics_sales.id'), nullable=True),
    )
    op.create_index('ix_optics_stock_movements_product_date', 'optics_stock_movements', ['product_id', 'movement_date'])
    op.create_table(
        'optics_sale_payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('optics_sale_id', sa.Integer(), sa.ForeignKey('optics_sales.id'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(30), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=False),
    )

    op.create_table(
        'operation_bookings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('booking_no', sa.String(20), nullable=False, unique=True),
        sa.Column('patient_name', sa.String(150), nullable=True),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('advance_payment', MONEY, nullable=False, server_default='0'),
        sa.Column('due_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('status', booking_status, nullable=False, server_default='scheduled'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'advance_house_rents',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('floor_type', floor_type, nullable=False),
        sa.Column('advance_amount', MONEY, nullable=False),
        sa.Column('used_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('remaining_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('status', rent_status, nullable=False, server_default='active'),
        sa.Column('payment_date', sa.Date(), nullable=False),
    )
    op.create_table(
        'advance_house_rent_deductions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('advance_house_rent_id', sa.Integer(), sa.ForeignKey('advance_house_rents.id'), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('deduction_date', sa.Date(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'advance_house_rent_deductions', 'advance_house_rents', 'operation_bookings',
        'optics_sale_payments', 'optics_stock_movements', 'optics_sales', 'optics_products',
        'medicine_stock_purchases', 'medicine_sale_payments', 'medicine_sale_items', 'medicine_sales',
        'fixed_asset_vendor_payments', 'fixed_assets', 'fixed_asset_vendors',
        'medicine_vendor_payments', 'medicine_vendor_transactions', 'optics_vendor_transactions',
        'medicine_vendors', 'optics_vendors', 'hospital_transactions', 'hospital_expense_categories',
        'hospital_income_categories', 'hospital_fund_transactions', 'hospital_account',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in ENUM_TYPES:
        enum_type.drop(bind, checkfirst=True)
