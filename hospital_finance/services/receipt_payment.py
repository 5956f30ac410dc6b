from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.models.ledger import (
    ExpenseCategory,
    FundTransaction,
    FundType,
    IncomeCategory,
    LedgerTransaction,
    TransactionType,
)
from hospital_finance.services.category_aggregator import (
    OTHER_EXPENSES,
    OTHER_INCOME,
    CategoryAggregator,
    label_criterion,
)
from hospital_finance.services.fund_ledger import FundLedgerReader
from hospital_finance.utils.filteration import apply_date_window
from hospital_finance.utils.money import ZERO, q2, to_decimal

RECEIPT_TYPES = ("fund_in", "income", "special_income")
PAYMENT_TYPES = ("fund_out", "expense", "special_expense")


def particulars_row(serial: int, particulars: str, row_type: str, current: Decimal, cumulative: Decimal,
                    category_id=None, category: Optional[str] = None) -> dict:
    """category_id or category is what the details lookup for the row takes."""
    return {
        "serial": serial,
        "particulars": particulars,
        "type": row_type,
        "category_id": category_id,
        "category": category,
        "current_period": current,
        "cumulative": cumulative,
    }


def verify(opening: Decimal, receipts: Decimal, payments: Decimal, closing: Decimal) -> dict:
    """Receipt side (opening + receipts) against payment side (payments + closing), at 2 decimals."""
    receipt_side = opening + receipts
    payment_side = payments + closing
    return {
        "receipt_side_total": receipt_side,
        "payment_side_total": payment_side,
        "difference": q2(receipt_side) - q2(payment_side),
        "is_balanced": q2(receipt_side) == q2(payment_side),
    }


class ReceiptPaymentService:
    """Cash-basis receipts and payments, fund movements and operating ledger combined."""

    def __init__(self, db: Session):
        self.db = db
        self.funds = FundLedgerReader(db)
        self.aggregator = CategoryAggregator(db)

    # ==================== ROWS ====================

    def _fund_rows(self, fund_type: FundType, prefix: str, from_date: date, to_date: date, rows: List[dict]):
        current = self.funds.fund_by_purpose(fund_type, from_date, to_date)
        for purpose, cumulative in self.funds.fund_by_purpose(fund_type, None, to_date).items():
            rows.append(particulars_row(
                len(rows) + 1, f"{prefix} - {purpose}", fund_type.value, current.get(purpose, ZERO), cumulative,
                category=purpose,
            ))

    def _label_rows(self, groups_current: Dict[str, Decimal], groups_cumulative: Dict[str, Decimal], row_type: str, rows: List[dict]):
        for label, cumulative in groups_cumulative.items():
            rows.append(particulars_row(
                len(rows) + 1, label, row_type, groups_current.get(label, ZERO), cumulative, category=label
            ))

    def receipt_rows(self, from_date: date, to_date: date) -> List[dict]:
        rows: List[dict] = []
        self._fund_rows(FundType.fund_in, "Fund In", from_date, to_date, rows)

        for category in self.db.query(IncomeCategory).order_by(IncomeCategory.id).all():
            criteria = (LedgerTransaction.income_category_id == category.id,)
            rows.append(particulars_row(
                len(rows) + 1, category.name, "income",
                self.aggregator.ledger_sum(TransactionType.income, *criteria, from_date=from_date, to_date=to_date),
                self.aggregator.ledger_sum(TransactionType.income, *criteria, to_date=to_date),
                category_id=category.id,
            ))

        uncategorised = (LedgerTransaction.income_category_id.is_(None),)
        self._label_rows(
            self.aggregator.ledger_group_sum(TransactionType.income, OTHER_INCOME, *uncategorised, from_date=from_date, to_date=to_date),
            self.aggregator.ledger_group_sum(TransactionType.income, OTHER_INCOME, *uncategorised, to_date=to_date),
            "special_income", rows,
        )
        return rows

    def payment_rows(self, from_date: date, to_date: date) -> List[dict]:
        rows: List[dict] = []
        self._fund_rows(FundType.fund_out, "Fund Out", from_date, to_date, rows)

        for category in self.db.query(ExpenseCategory).order_by(ExpenseCategory.id).all():
            rows.append(particulars_row(
                len(rows) + 1, category.name, "expense",
                self.aggregator.expense_sum(category, from_date, to_date),
                self.aggregator.expense_sum(category, None, to_date),
                category_id=category.id,
            ))

        uncategorised = (LedgerTransaction.expense_category_id.is_(None),)
        self._label_rows(
            self.aggregator.ledger_group_sum(TransactionType.expense, OTHER_EXPENSES, *uncategorised, from_date=from_date, to_date=to_date),
            self.aggregator.ledger_group_sum(TransactionType.expense, OTHER_EXPENSES, *uncategorised, to_date=to_date),
            "special_expense", rows,
        )
        return rows

    # ==================== REPORT ====================

    def generate(self, from_date: date, to_date: date, generated_at: Optional[datetime] = None) -> dict:
        logger.info(f"Generating receipt & payment for {from_date} .. {to_date}")
        receipts = self.receipt_rows(from_date, to_date)
        payments = self.payment_rows(from_date, to_date)

        current_balance = self.funds.current_account_balance()
        # Rewind the live balance to the start of the window
        opening = current_balance - self.funds.net_cash_change(from_date=from_date)
        # Whatever the ledger cannot explain is carried as an adjustment
        cumulative_opening = current_balance - self.funds.net_cash_change(to_date=to_date)

        current_receipts = sum((row["current_period"] for row in receipts), ZERO)
        cumulative_receipts = sum((row["cumulative"] for row in receipts), ZERO)
        current_payments = sum((row["current_period"] for row in payments), ZERO)
        cumulative_payments = sum((row["cumulative"] for row in payments), ZERO)

        closing = opening + current_receipts - current_payments
        cumulative_closing = cumulative_opening + cumulative_receipts - cumulative_payments

        current_check = verify(opening, current_receipts, current_payments, closing)
        cumulative_check = verify(cumulative_opening, cumulative_receipts, cumulative_payments, cumulative_closing)
        if not (current_check["is_balanced"] and cumulative_check["is_balanced"]):
            logger.warning(
                f"Receipt & payment {from_date} .. {to_date} does not verify: "
                f"current={current_check['difference']}, cumulative={cumulative_check['difference']}"
            )

        report = {
            "filters": {"from_date": from_date, "to_date": to_date},
            "current_account_balance": current_balance,
            "receipts": receipts,
            "payments": payments,
            "totals": {
                "opening_balance": opening,
                "cumulative_opening_balance": cumulative_opening,
                "current_receipts": current_receipts,
                "cumulative_receipts": cumulative_receipts,
                "current_payments": current_payments,
                "cumulative_payments": cumulative_payments,
                "closing_balance": closing,
                "cumulative_closing_balance": cumulative_closing,
            },
            "verification": {
                "current": current_check,
                "cumulative": cumulative_check,
            },
        }
        if generated_at is not None:
            report["generated_at"] = generated_at
        return report

    def export(self, from_date: date, to_date: date) -> dict:
        return self.generate(from_date, to_date, generated_at=datetime.now())

    # ==================== DRILL-DOWN ====================

    def _fund_details(self, fund_type: FundType, purpose: str, from_date: date, to_date: date) -> List[dict]:
        query = self.db.query(FundTransaction).filter(
            FundTransaction.type == fund_type,
            FundTransaction.purpose == purpose,
        )
        query = apply_date_window(query, FundTransaction.date, from_date, to_date)
        return [
            {
                "voucher_no": tx.voucher_no,
                "transaction_date": tx.date,
                "category": tx.purpose,
                "description": tx.description,
                "amount": to_decimal(tx.amount),
            }
            for tx in query.order_by(FundTransaction.date.desc(), FundTransaction.id.desc()).all()
        ]

    def _ledger_details(self, tx_type: TransactionType, *criteria, from_date: date, to_date: date) -> List[dict]:
        """Expense amounts are listed by absolute value, as the rows sum them."""
        query = self.db.query(LedgerTransaction).filter(LedgerTransaction.type == tx_type, *criteria)
        query = apply_date_window(query, LedgerTransaction.transaction_date, from_date, to_date)
        details = []
        for tx in query.order_by(LedgerTransaction.transaction_date.desc(), LedgerTransaction.id.desc()).all():
            amount = to_decimal(tx.amount)
            details.append({
                "voucher_no": tx.transaction_no,
                "transaction_date": tx.transaction_date,
                "category": tx.category,
                "description": tx.description,
                "amount": abs(amount) if tx_type == TransactionType.expense else amount,
            })
        return details

    def _row_details(self, row_type: str, name: str, details: List[dict], from_date: date, to_date: date) -> dict:
        return {
            "category": name,
            "type": row_type,
            "filters": {"from_date": from_date, "to_date": to_date},
            "details": details,
            "total": sum((row["amount"] for row in details), ZERO),
        }

    def receipt_details(self, row_type: str, from_date: date, to_date: date,
                        category: Optional[str] = None, category_id: Optional[int] = None) -> Optional[dict]:
        """
        Entries behind one receipt row. Income rows are looked up by
        category_id; fund and uncategorised rows by their purpose or label.
        Returns None for an unknown income category.
        """
        if row_type not in RECEIPT_TYPES:
            raise ValueError(f"Unknown receipt type '{row_type}'")

        if row_type == "income":
            if category_id is None:
                raise ValueError("category_id is required for income rows")
            income_category = self.db.query(IncomeCategory).filter(IncomeCategory.id == category_id).first()
            if not income_category:
                return None
            details = self._ledger_details(
                TransactionType.income,
                LedgerTransaction.income_category_id == income_category.id,
                from_date=from_date, to_date=to_date,
            )
            return self._row_details(row_type, income_category.name, details, from_date, to_date)

        if not category:
            raise ValueError(f"category is required for {row_type} rows")
        if row_type == "fund_in":
            details = self._fund_details(FundType.fund_in, category, from_date, to_date)
        else:
            details = self._ledger_details(
                TransactionType.income,
                LedgerTransaction.income_category_id.is_(None),
                label_criterion(category, OTHER_INCOME),
                from_date=from_date, to_date=to_date,
            )
        return self._row_details(row_type, category, details, from_date, to_date)

    def payment_details(self, row_type: str, from_date: date, to_date: date,
                        category: Optional[str] = None, category_id: Optional[int] = None) -> Optional[dict]:
        """Entries behind one payment row, looked up the same way as receipts."""
        if row_type not in PAYMENT_TYPES:
            raise ValueError(f"Unknown payment type '{row_type}'")

        if row_type == "expense":
            if category_id is None:
                raise ValueError("category_id is required for expense rows")
            expense_category = self.db.query(ExpenseCategory).filter(ExpenseCategory.id == category_id).first()
            if not expense_category:
                return None
            details = self._ledger_details(
                TransactionType.expense,
                LedgerTransaction.expense_category_id == expense_category.id,
                from_date=from_date, to_date=to_date,
            )
            return self._row_details(row_type, expense_category.name, details, from_date, to_date)

        if not category:
            raise ValueError(f"category is required for {row_type} rows")
        if row_type == "fund_out":
            details = self._fund_details(FundType.fund_out, category, from_date, to_date)
        else:
            details = self._ledger_details(
                TransactionType.expense,
                LedgerTransaction.expense_category_id.is_(None),
                label_criterion(category, OTHER_EXPENSES),
                from_date=from_date, to_date=to_date,
            )
        return self._row_details(row_type, category, details, from_date, to_date)
