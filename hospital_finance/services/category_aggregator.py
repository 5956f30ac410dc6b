from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.models.house_rent import (
    FLOOR_LABELS,
    AdvanceHouseRent,
    AdvanceHouseRentDeduction,
    FloorType,
)
from hospital_finance.models.ledger import (
    CAPITAL_ORIGINS,
    DerivedIncome,
    ExpenseCategory,
    ExpenseClass,
    IncomeCategory,
    LedgerTransaction,
    TransactionOrigin,
    TransactionType,
)
from hospital_finance.services.stock_valuation import StockValuationService
from hospital_finance.utils.filteration import apply_date_window
from hospital_finance.utils.money import ZERO, abs_amount, to_decimal

OTHER_EXPENSES = "Other Expenses"
OTHER_INCOME = "Other Income"
SPECIAL = "special"


def label_criterion(label: str, default: str):
    """Rows grouped under label. A blank label groups under the default one."""
    if label == default:
        return or_(
            LedgerTransaction.category.is_(None),
            LedgerTransaction.category == "",
            LedgerTransaction.category == label,
        )
    return LedgerTransaction.category == label


def category_row(serial: int, name: str, category_id, current: Decimal, cumulative: Decimal,
                 is_active: bool = True, is_special: bool = False, is_adjustment: bool = False) -> dict:
    return {
        "serial": serial,
        "category": name,
        "category_id": category_id,
        "current_period": current,
        "cumulative": cumulative,
        "is_active": is_active,
        "is_special": is_special,
        "is_adjustment": is_adjustment,
    }


class CategoryAggregator:
    """
    Per-category income and expense sums for a period and cumulatively.

    Both windows go through the same summation; the cumulative figure is the
    period figure with no lower bound.
    """
    def __init__(self, db: Session):
        self.db = db
        self.stock = StockValuationService(db)

    # ==================== SUMMATION PRIMITIVES ====================

    def ledger_sum(self, tx_type: TransactionType, *criteria, from_date=None, to_date=None) -> Decimal:
        amount = abs_amount(LedgerTransaction.amount) if tx_type == TransactionType.expense else LedgerTransaction.amount
        query = self.db.query(func.coalesce(func.sum(amount), 0)).filter(
            LedgerTransaction.type == tx_type, *criteria
        )
        query = apply_date_window(query, LedgerTransaction.transaction_date, from_date, to_date)
        return to_decimal(query.scalar())

    def ledger_group_sum(self, tx_type: TransactionType, label: str, *criteria, from_date=None, to_date=None) -> Dict[str, Decimal]:
        amount = abs_amount(LedgerTransaction.amount) if tx_type == TransactionType.expense else LedgerTransaction.amount
        query = self.db.query(LedgerTransaction.category, func.coalesce(func.sum(amount), 0)).filter(
            LedgerTransaction.type == tx_type, *criteria
        )
        query = apply_date_window(query, LedgerTransaction.transaction_date, from_date, to_date)
        groups: Dict[str, Decimal] = {}
        for name, total in query.group_by(LedgerTransaction.category).all():
            name = name or label
            groups[name] = groups.get(name, ZERO) + to_decimal(total)
        return dict(sorted(groups.items()))

    def income_sum(self, category: IncomeCategory, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """
        Raw sum for ordinary categories. Derived categories report sales profit
        plus the manual entries that did not come from the sale subsystem.
        """
        if category.derived_income is None:
            return self.ledger_sum(
                TransactionType.income,
                LedgerTransaction.income_category_id == category.id,
                from_date=from_date, to_date=to_date,
            )

        manual = self.ledger_sum(
            TransactionType.income,
            LedgerTransaction.income_category_id == category.id,
            LedgerTransaction.origin != TransactionOrigin.sale_payment,
            from_date=from_date, to_date=to_date,
        )
        if category.derived_income == DerivedIncome.medicine:
            profit = self.stock.medicine_profit(from_date, to_date)
        else:
            profit = self.stock.optics_profit(from_date, to_date)
        logger.debug(f"{category.name}: profit={profit}, manual={manual}")
        return profit + manual

    def expense_sum(self, category: ExpenseCategory, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        return self.ledger_sum(
            TransactionType.expense,
            LedgerTransaction.expense_category_id == category.id,
            from_date=from_date, to_date=to_date,
        )

    def special_expense_groups(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Dict[str, Decimal]:
        """Uncategorised operating expenses grouped by their free-text label."""
        return self.ledger_group_sum(
            TransactionType.expense, OTHER_EXPENSES,
            LedgerTransaction.expense_category_id.is_(None),
            LedgerTransaction.origin.notin_(CAPITAL_ORIGINS),
            from_date=from_date, to_date=to_date,
        )

    def special_income_groups(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Dict[str, Decimal]:
        """Uncategorised manual income grouped by label."""
        return self.ledger_group_sum(
            TransactionType.income, OTHER_INCOME,
            LedgerTransaction.income_category_id.is_(None),
            LedgerTransaction.origin != TransactionOrigin.sale_payment,
            from_date=from_date, to_date=to_date,
        )

    def house_rent_deductions(self, floor_type: FloorType, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """Prepaid rent consumed for one floor, by deduction date."""
        query = (
            self.db.query(func.coalesce(func.sum(AdvanceHouseRentDeduction.amount), 0))
            .join(AdvanceHouseRent, AdvanceHouseRentDeduction.advance_house_rent_id == AdvanceHouseRent.id)
            .filter(AdvanceHouseRent.floor_type == floor_type)
        )
        query = apply_date_window(query, AdvanceHouseRentDeduction.deduction_date, from_date, to_date)
        return to_decimal(query.scalar())

    # ==================== REPORT ROWS ====================

    def income_rows(self, from_date: date, to_date: date) -> List[dict]:
        rows = []
        categories = self.db.query(IncomeCategory).order_by(IncomeCategory.id).all()
        for category in categories:
            rows.append(category_row(
                len(rows) + 1,
                category.name,
                category.id,
                self.income_sum(category, from_date, to_date),
                self.income_sum(category, None, to_date),
                is_active=category.is_active,
            ))

        current = self.special_income_groups(from_date, to_date)
        for name, cumulative in self.special_income_groups(None, to_date).items():
            rows.append(category_row(
                len(rows) + 1, name, None, current.get(name, ZERO), cumulative, is_special=True
            ))
        return rows

    def expense_rows(self, from_date: date, to_date: date) -> List[dict]:
        """
        House rent per floor first (only floors with a nonzero amount), then
        operating categories, then uncategorised expenses grouped by label.
        """
        rows = []
        for floor_type in FloorType:
            current = self.house_rent_deductions(floor_type, from_date, to_date)
            cumulative = self.house_rent_deductions(floor_type, None, to_date)
            if current > 0 or cumulative > 0:
                rows.append(category_row(
                    len(rows) + 1, FLOOR_LABELS[floor_type], None, current, cumulative,
                    is_special=True, is_adjustment=True,
                ))

        categories = (
            self.db.query(ExpenseCategory)
            .filter(ExpenseCategory.expense_class == ExpenseClass.operating)
            .order_by(ExpenseCategory.id)
            .all()
        )
        for category in categories:
            rows.append(category_row(
                len(rows) + 1,
                category.name,
                category.id,
                self.expense_sum(category, from_date, to_date),
                self.expense_sum(category, None, to_date),
                is_active=category.is_active,
            ))

        current = self.special_expense_groups(from_date, to_date)
        for name, cumulative in self.special_expense_groups(None, to_date).items():
            rows.append(category_row(
                len(rows) + 1, name, SPECIAL, current.get(name, ZERO), cumulative, is_special=True
            ))
        return rows

    # ==================== DRILL-DOWN ====================

    def _transactions(self, *criteria, from_date=None, to_date=None) -> List[LedgerTransaction]:
        query = self.db.query(LedgerTransaction).filter(*criteria)
        query = apply_date_window(query, LedgerTransaction.transaction_date, from_date, to_date)
        return query.order_by(LedgerTransaction.transaction_date, LedgerTransaction.id).all()

    def income_details(self, category_id: int, from_date: date, to_date: date) -> Optional[dict]:
        category = self.db.query(IncomeCategory).filter(IncomeCategory.id == category_id).first()
        if not category:
            return None

        criteria = [
            LedgerTransaction.type == TransactionType.income,
            LedgerTransaction.income_category_id == category.id,
        ]
        derived_profit = None
        if category.derived_income is not None:
            criteria.append(LedgerTransaction.origin != TransactionOrigin.sale_payment)
            if category.derived_income == DerivedIncome.medicine:
                derived_profit = self.stock.medicine_profit(from_date, to_date)
            else:
                derived_profit = self.stock.optics_profit(from_date, to_date)

        transactions = self._transactions(*criteria, from_date=from_date, to_date=to_date)
        return {
            "category": category.name,
            "category_id": category.id,
            "derived_profit": derived_profit,
            "transactions": transactions,
            "total": self.income_sum(category, from_date, to_date),
        }

    def expense_details(self, category_id, from_date: date, to_date: date, label: Optional[str] = None) -> Optional[dict]:
        """
        Transactions behind one expense row. "special" lists the uncategorised
        ones, narrowed to a single row when its label is given.
        """
        if category_id == SPECIAL:
            criteria = [
                LedgerTransaction.type == TransactionType.expense,
                LedgerTransaction.expense_category_id.is_(None),
                LedgerTransaction.origin.notin_(CAPITAL_ORIGINS),
            ]
            if label:
                criteria.append(label_criterion(label, OTHER_EXPENSES))
            transactions = self._transactions(*criteria, from_date=from_date, to_date=to_date)
            return {
                "category": label or OTHER_EXPENSES,
                "category_id": SPECIAL,
                "derived_profit": None,
                "transactions": transactions,
                "total": sum((abs(to_decimal(tx.amount)) for tx in transactions), ZERO),
            }

        category = self.db.query(ExpenseCategory).filter(ExpenseCategory.id == int(category_id)).first()
        if not category:
            return None

        transactions = self._transactions(
            LedgerTransaction.type == TransactionType.expense,
            LedgerTransaction.expense_category_id == category.id,
            from_date=from_date, to_date=to_date,
        )
        return {
            "category": category.name,
            "category_id": category.id,
            "derived_profit": None,
            "transactions": transactions,
            "total": self.expense_sum(category, from_date, to_date),
        }
