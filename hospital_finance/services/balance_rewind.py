from datetime import date
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.models.fixed_asset import FixedAsset, FixedAssetVendorPayment
from hospital_finance.models.medicine import MedicineSale, MedicineSalePayment
from hospital_finance.models.operation import BookingStatus, OperationBooking
from hospital_finance.models.optics import AdvanceSource, OpticsSale, OpticsSalePayment
from hospital_finance.models.vendor import (
    BalanceType,
    MedicineVendor,
    MedicineVendorPayment,
    MedicineVendorTransaction,
    OpticsVendor,
    OpticsVendorTransaction,
    VendorTransactionType,
)
from hospital_finance.utils.filteration import apply_after, apply_date_window
from hospital_finance.utils.money import ZERO, positive, to_decimal


# ==================== HELPER FUNCTIONS ====================

def rewind_balance(current_balance: Decimal, future_payments: Decimal, future_purchases: Decimal) -> Decimal:
    """
    Balance owed to a vendor at the cutoff, reconstructed from the live balance.
    Payments after the cutoff were still owed then; purchases after it were not.
    """
    return to_decimal(current_balance) + to_decimal(future_payments) - to_decimal(future_purchases)


def signed_vendor_balance(vendor) -> Decimal:
    """Live balance as an amount owed: advances count negative."""
    balance = to_decimal(vendor.current_balance)
    return balance if vendor.balance_type == BalanceType.due else -balance


def optics_sale_paid(sale: OpticsSale, payments_to_date: Decimal) -> Decimal:
    """
    Amount collected on an optics sale. The counter advance is added from the
    legacy column only when it was never written as a payment row.
    """
    paid = to_decimal(payments_to_date)
    if sale.advance_recorded_in == AdvanceSource.legacy_field:
        paid += to_decimal(sale.advance_payment)
    return paid


class BalanceRewindService:
    """
    Payables by rewinding stored vendor balances; receivables directly from
    payment history. Only positive balances are reported.
    """
    def __init__(self, db: Session):
        self.db = db

    # ==================== VENDOR PAYABLES ====================

    def _future_sum(self, vendor_column, amount_column, date_column, as_on_date: date, *criteria) -> dict:
        """Per-vendor totals dated strictly after the cutoff."""
        query = self.db.query(vendor_column, func.coalesce(func.sum(amount_column), 0)).filter(*criteria)
        query = apply_after(query, date_column, as_on_date)
        return {vendor_id: to_decimal(total) for vendor_id, total in query.group_by(vendor_column).all()}

    def optics_vendor_dues(self, as_on_date: date) -> List[dict]:
        payments = self._future_sum(
            OpticsVendorTransaction.vendor_id, OpticsVendorTransaction.amount, OpticsVendorTransaction.transaction_date, as_on_date,
            OpticsVendorTransaction.type == VendorTransactionType.payment,
        )
        purchases = self._future_sum(
            OpticsVendorTransaction.vendor_id, OpticsVendorTransaction.amount, OpticsVendorTransaction.transaction_date, as_on_date,
            OpticsVendorTransaction.type == VendorTransactionType.purchase,
        )
        return self._vendor_dues(
            self.db.query(OpticsVendor).order_by(OpticsVendor.id).all(), payments, purchases
        )

    def medicine_vendor_dues(self, as_on_date: date) -> List[dict]:
        payments = self._future_sum(
            MedicineVendorPayment.vendor_id, MedicineVendorPayment.amount, MedicineVendorPayment.payment_date, as_on_date,
        )
        purchases = self._future_sum(
            MedicineVendorTransaction.vendor_id, MedicineVendorTransaction.amount, MedicineVendorTransaction.transaction_date, as_on_date,
            MedicineVendorTransaction.type == VendorTransactionType.purchase,
        )
        return self._vendor_dues(
            self.db.query(MedicineVendor).order_by(MedicineVendor.id).all(), payments, purchases
        )

    def _vendor_dues(self, vendors, payments: dict, purchases: dict) -> List[dict]:
        dues = []
        for vendor in vendors:
            balance = rewind_balance(
                signed_vendor_balance(vendor),
                payments.get(vendor.id, ZERO),
                purchases.get(vendor.id, ZERO),
            )
            dues.append({
                "vendor_id": vendor.id,
                "vendor_name": vendor.name,
                "balance": balance,
                "due": positive(balance),
            })
        return dues

    def optics_vendor_due(self, as_on_date: date) -> Decimal:
        return sum((row["due"] for row in self.optics_vendor_dues(as_on_date)), ZERO)

    def medicine_vendor_due(self, as_on_date: date) -> Decimal:
        return sum((row["due"] for row in self.medicine_vendor_dues(as_on_date)), ZERO)

    def fixed_asset_purchase_due(self, as_on_date: date) -> Decimal:
        """
        Per vendor: asset totals minus amounts paid at purchase minus vendor
        payments to date, clamped at zero. Assets without a vendor add their
        own unpaid remainder.
        """
        query = self.db.query(
            FixedAsset.vendor_id,
            func.coalesce(func.sum(FixedAsset.total_amount), 0),
            func.coalesce(func.sum(FixedAsset.paid_amount), 0),
        ).filter(FixedAsset.deleted_at.is_(None))
        query = apply_date_window(query, FixedAsset.purchase_date, None, as_on_date)
        per_vendor = query.filter(FixedAsset.vendor_id.isnot(None)).group_by(FixedAsset.vendor_id).all()

        payments_query = self.db.query(
            FixedAssetVendorPayment.vendor_id,
            func.coalesce(func.sum(FixedAssetVendorPayment.amount), 0),
        )
        payments_query = apply_date_window(payments_query, FixedAssetVendorPayment.payment_date, None, as_on_date)
        payments = {
            vendor_id: to_decimal(total)
            for vendor_id, total in payments_query.group_by(FixedAssetVendorPayment.vendor_id).all()
        }

        total_due = ZERO
        for vendor_id, total, paid in per_vendor:
            total_due += positive(to_decimal(total) - to_decimal(paid) - payments.get(vendor_id, ZERO))

        unassigned = query.filter(FixedAsset.vendor_id.is_(None)).with_entities(
            FixedAsset.total_amount, FixedAsset.paid_amount
        ).all()
        for total, paid in unassigned:
            total_due += positive(to_decimal(total) - to_decimal(paid))

        logger.debug(f"Fixed asset purchase due as of {as_on_date}: {total_due}")
        return total_due

    # ==================== SALE RECEIVABLES ====================

    def _payments_by_sale(self, sale_column, amount_column, date_column, as_on_date: date) -> dict:
        query = self.db.query(sale_column, func.coalesce(func.sum(amount_column), 0))
        query = apply_date_window(query, date_column, None, as_on_date)
        return {sale_id: to_decimal(total) for sale_id, total in query.group_by(sale_column).all()}

    def optics_sale_dues(self, as_on_date: date) -> List[Tuple[OpticsSale, Decimal]]:
        paid_by_sale = self._payments_by_sale(
            OpticsSalePayment.optics_sale_id, OpticsSalePayment.amount, OpticsSalePayment.payment_date, as_on_date
        )
        query = self.db.query(OpticsSale).filter(OpticsSale.deleted_at.is_(None))
        sales = apply_date_window(query, OpticsSale.created_at, None, as_on_date).order_by(OpticsSale.id).all()

        dues = []
        for sale in sales:
            paid = optics_sale_paid(sale, paid_by_sale.get(sale.id, ZERO))
            dues.append((sale, to_decimal(sale.total_amount) - paid))
        return dues

    def optics_receivable(self, as_on_date: date) -> Decimal:
        return sum((positive(due) for _, due in self.optics_sale_dues(as_on_date)), ZERO)

    def medicine_receivable(self, as_on_date: date) -> Decimal:
        paid_by_sale = self._payments_by_sale(
            MedicineSalePayment.medicine_sale_id, MedicineSalePayment.amount, MedicineSalePayment.payment_date, as_on_date
        )
        query = self.db.query(MedicineSale).filter(MedicineSale.deleted_at.is_(None))
        sales = apply_date_window(query, MedicineSale.sale_date, None, as_on_date).all()

        total_due = ZERO
        for sale in sales:
            paid = to_decimal(sale.paid_amount) + paid_by_sale.get(sale.id, ZERO)
            total_due += positive(to_decimal(sale.total_amount) - paid)
        return total_due

    def operation_receivable(self, as_on_date: date) -> Decimal:
        """Only completed operations are earned; advances on open bookings are not receivables."""
        query = self.db.query(func.coalesce(func.sum(OperationBooking.due_amount), 0)).filter(
            OperationBooking.status == BookingStatus.completed,
            OperationBooking.due_amount > 0,
        )
        return to_decimal(apply_date_window(query, OperationBooking.created_at, None, as_on_date).scalar())
