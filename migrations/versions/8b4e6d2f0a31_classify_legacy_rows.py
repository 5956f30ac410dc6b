"""classify legacy ledger rows by origin and optics advance source

Revision ID: 8b4e6d2f0a31
Revises: 3f1c2a9d7b10
Create Date: 2026-03-09 15:47:03.552918

Rows written before the origin and advance_recorded_in columns existed were
told apart by their descriptions and payment notes. The same markers are
applied here once so that reports only compare enum values.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8b4e6d2f0a31'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Income generated by the sale subsystem
    op.execute("""
        UPDATE hospital_transactions
        SET origin = 'sale_payment'
        WHERE type = 'income'
          AND origin = 'manual'
          AND (
              description LIKE '%Medicine Sale:%'
              OR description LIKE '%Advance Payment%'
              OR description LIKE '%Due Payment%'
              OR description LIKE '%Invoice%'
          )
    """)

    # Expenses that moved money into balance-sheet items
    op.execute("""
        UPDATE hospital_transactions
        SET origin = 'vendor_payment'
        WHERE type = 'expense'
          AND origin = 'manual'
          AND description LIKE '%Vendor Payment%'
    """)
    op.execute("""
        UPDATE hospital_transactions
        SET origin = 'asset_purchase'
        WHERE type = 'expense'
          AND origin = 'manual'
          AND description LIKE '%Fixed Asset%'
    """)
    op.execute("""
        UPDATE hospital_transactions
        SET origin = 'prepaid_rent'
        WHERE type = 'expense'
          AND origin = 'manual'
          AND description LIKE '%Advance House Rent%'
    """)

    # Optics sales whose counter advance was also written as a payment row
    op.execute("""
        UPDATE optics_sales
        SET advance_recorded_in = 'ledger'
        WHERE EXISTS (
            SELECT 1 FROM optics_sale_payments p
            WHERE p.optics_sale_id = optics_sales.id
              AND p.notes LIKE '%Advance%'
        )
    """)
    op.execute("""
        UPDATE optics_sales
        SET advance_recorded_in = 'legacy_field'
        WHERE advance_payment > 0
          AND NOT EXISTS (
              SELECT 1 FROM optics_sale_payments p
              WHERE p.optics_sale_id = optics_sales.id
                AND p.notes LIKE '%Advance%'
          )
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("UPDATE hospital_transactions SET origin = 'manual'")
    op.execute("UPDATE optics_sales SET advance_recorded_in = 'ledger'")
