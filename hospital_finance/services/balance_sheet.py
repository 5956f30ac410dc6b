from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hospital_finance.core.config import settings
from hospital_finance.logger_config import logger
from hospital_finance.models.fixed_asset import AssetStatus, FixedAsset
from hospital_finance.models.house_rent import (
    AdvanceHouseRent,
    AdvanceHouseRentDeduction,
    RentStatus,
)
from hospital_finance.models.ledger import (
    ExpenseCategory,
    ExpenseClass,
    FundType,
    LedgerTransaction,
    TransactionType,
)
from hospital_finance.services.balance_rewind import BalanceRewindService
from hospital_finance.services.fund_ledger import FundLedgerReader
from hospital_finance.services.income_expenditure import IncomeExpenditureService
from hospital_finance.services.stock_valuation import StockValuationService
from hospital_finance.utils.filteration import apply_date_window
from hospital_finance.utils.money import ZERO, abs_amount, q2, to_decimal


class BalanceSheetService:
    """
    Point-in-time balance sheet. The balancing difference is reported as it
    is; nothing is plugged to force the sheet to balance.
    """
    def __init__(self, db: Session, opening_balance: Optional[Decimal] = None):
        self.db = db
        self.opening_balance = to_decimal(
            settings.OPENING_BANK_BALANCE if opening_balance is None else opening_balance
        )
        self.funds = FundLedgerReader(db)
        self.stock = StockValuationService(db)
        self.rewind = BalanceRewindService(db)
        self.income_expenditure = IncomeExpenditureService(db)

    # ==================== ASSET COMPONENTS ====================

    def advance_house_rent_remaining(self, as_on_date: date) -> Decimal:
        """Advances paid by the date less the deductions taken from them by the date."""
        advances = self.db.query(func.coalesce(func.sum(AdvanceHouseRent.advance_amount), 0)).filter(
            AdvanceHouseRent.status != RentStatus.cancelled
        )
        advances = apply_date_window(advances, AdvanceHouseRent.payment_date, None, as_on_date)

        deductions = (
            self.db.query(func.coalesce(func.sum(AdvanceHouseRentDeduction.amount), 0))
            .join(AdvanceHouseRent, AdvanceHouseRentDeduction.advance_house_rent_id == AdvanceHouseRent.id)
            .filter(AdvanceHouseRent.status != RentStatus.cancelled)
        )
        deductions = apply_date_window(deductions, AdvanceHouseRent.payment_date, None, as_on_date)
        deductions = apply_date_window(deductions, AdvanceHouseRentDeduction.deduction_date, None, as_on_date)

        return to_decimal(advances.scalar()) - to_decimal(deductions.scalar())

    def fixed_assets_value(self, as_on_date: date) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(FixedAsset.total_amount), 0)).filter(
            FixedAsset.status != AssetStatus.inactive,
            FixedAsset.deleted_at.is_(None),
        )
        return to_decimal(apply_date_window(query, FixedAsset.purchase_date, None, as_on_date).scalar())

    def house_security_prepaid(self, as_on_date: date) -> Decimal:
        """Security deposits paid out are held as an asset."""
        query = (
            self.db.query(func.coalesce(func.sum(abs_amount(LedgerTransaction.amount)), 0))
            .join(ExpenseCategory, LedgerTransaction.expense_category_id == ExpenseCategory.id)
            .filter(
                LedgerTransaction.type == TransactionType.expense,
                ExpenseCategory.expense_class == ExpenseClass.security_deposit,
            )
        )
        return to_decimal(apply_date_window(query, LedgerTransaction.transaction_date, None, as_on_date).scalar())

    # ==================== REPORT ====================

    def generate(self, as_on_date: date) -> dict:
        logger.info(f"Generating balance sheet as on {as_on_date}")

        optics_stock = self.stock.optics_stock_value(as_on_date)
        receivables = {
            "optics": self.rewind.optics_receivable(as_on_date),
            "medicine": self.rewind.medicine_receivable(as_on_date),
            "operation": self.rewind.operation_receivable(as_on_date),
        }
        assets = {
            "bank_balance": self.funds.bank_balance(as_on_date, self.opening_balance),
            "medicine_stock": self.stock.medicine_stock_value(as_on_date),
            "optics_stock": optics_stock["total"],
            "advance_house_rent": self.advance_house_rent_remaining(as_on_date),
            "fixed_assets": self.fixed_assets_value(as_on_date),
            "house_security": self.house_security_prepaid(as_on_date),
            "optics_receivable": receivables["optics"],
            "medicine_receivable": receivables["medicine"],
            "operation_receivable": receivables["operation"],
        }
        liabilities = {
            "optics_vendor_due": self.rewind.optics_vendor_due(as_on_date),
            "medicine_vendor_due": self.rewind.medicine_vendor_due(as_on_date),
            "fixed_asset_purchase_due": self.rewind.fixed_asset_purchase_due(as_on_date),
        }

        total_assets = sum(assets.values(), ZERO)
        total_liabilities = sum(liabilities.values(), ZERO)
        fund_in = self.funds.fund_total(FundType.fund_in, to_date=as_on_date)
        fund_out = self.funds.fund_total(FundType.fund_out, to_date=as_on_date)
        fund = fund_in - fund_out
        profit_totals = self.income_expenditure.cumulative_totals(as_on_date)
        net_profit = profit_totals["cumulative_surplus_deficit"]
        liabilities_and_equity = total_liabilities + fund + net_profit
        difference = total_assets - liabilities_and_equity
        is_balanced = q2(difference) == ZERO

        if not is_balanced:
            logger.warning(
                f"Balance sheet as on {as_on_date} does not balance: "
                f"assets={total_assets}, liabilities={total_liabilities}, fund={fund}, "
                f"net_profit={net_profit}, difference={difference}"
            )

        return {
            "filters": {"as_on_date": as_on_date},
            "opening_balance": self.opening_balance,
            "assets": assets,
            "optics_stock_breakdown": optics_stock,
            "liabilities": liabilities,
            "total_assets": total_assets,
            "total_liabilities": total_liabilities,
            "total_fund_in": fund_in,
            "total_fund_out": fund_out,
            "fund": fund,
            "total_income": profit_totals["cumulative_income"],
            "total_expenditure": profit_totals["cumulative_expenditure"],
            "net_profit": net_profit,
            "total_liabilities_and_equity": liabilities_and_equity,
            "difference": difference,
            "is_balanced": is_balanced,
        }
