from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.models.ledger import (
    FundTransaction,
    FundType,
    HospitalAccount,
    LedgerTransaction,
    TransactionType,
)
from hospital_finance.utils.filteration import apply_date_window
from hospital_finance.utils.money import ZERO, abs_amount, to_decimal


class FundLedgerReader:
    """
    Cash-side sums over fund transactions and the income/expense ledger.
    """
    def __init__(self, db: Session):
        self.db = db

    # ==================== FUND TRANSACTIONS ====================

    def fund_total(self, fund_type: FundType, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        query = self.db.query(func.coalesce(func.sum(FundTransaction.amount), 0)).filter(
            FundTransaction.type == fund_type
        )
        query = apply_date_window(query, FundTransaction.date, from_date, to_date)
        return to_decimal(query.scalar())

    def fund_by_purpose(self, fund_type: FundType, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Dict[str, Decimal]:
        query = self.db.query(
            FundTransaction.purpose,
            func.coalesce(func.sum(FundTransaction.amount), 0),
        ).filter(FundTransaction.type == fund_type)
        query = apply_date_window(query, FundTransaction.date, from_date, to_date)
        rows = query.group_by(FundTransaction.purpose).order_by(FundTransaction.purpose).all()
        return {purpose: to_decimal(total) for purpose, total in rows}

    # ==================== LEDGER TRANSACTIONS ====================

    def ledger_total(self, tx_type: TransactionType, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """All income or all expense in the window. Expenses are summed by absolute value."""
        amount = LedgerTransaction.amount
        if tx_type == TransactionType.expense:
            amount = abs_amount(amount)
        query = self.db.query(func.coalesce(func.sum(amount), 0)).filter(
            LedgerTransaction.type == tx_type
        )
        query = apply_date_window(query, LedgerTransaction.transaction_date, from_date, to_date)
        return to_decimal(query.scalar())

    def net_cash_change(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """fund in - fund out + income - expense over the window."""
        change = (
            self.fund_total(FundType.fund_in, from_date, to_date)
            - self.fund_total(FundType.fund_out, from_date, to_date)
            + self.ledger_total(TransactionType.income, from_date, to_date)
            - self.ledger_total(TransactionType.expense, from_date, to_date)
        )
        logger.debug(f"Net cash change {from_date or 'inception'} .. {to_date or 'now'}: {change}")
        return change

    def bank_balance(self, as_on_date: date, opening_balance: Decimal) -> Decimal:
        return to_decimal(opening_balance) + self.net_cash_change(to_date=as_on_date)

    def current_account_balance(self) -> Decimal:
        """Live balance held on the hospital account row."""
        account = self.db.query(HospitalAccount).order_by(HospitalAccount.id).first()
        if not account:
            logger.warning("No hospital account row found, using zero balance")
            return ZERO
        return to_decimal(account.balance)
