from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.services.category_aggregator import CategoryAggregator
from hospital_finance.utils.dates import INCEPTION
from hospital_finance.utils.money import ZERO


def _column_total(rows: List[dict], key: str) -> Decimal:
    return sum((row[key] for row in rows), ZERO)


class IncomeExpenditureService:
    """Income and expenditure for a period, side by side with the cumulative figures."""

    def __init__(self, db: Session):
        self.db = db
        self.aggregator = CategoryAggregator(db)

    def generate(self, from_date: date, to_date: date) -> dict:
        logger.info(f"Generating income & expenditure for {from_date} .. {to_date}")
        income = self.aggregator.income_rows(from_date, to_date)
        expenditure = self.aggregator.expense_rows(from_date, to_date)

        current_income = _column_total(income, "current_period")
        cumulative_income = _column_total(income, "cumulative")
        current_expenditure = _column_total(expenditure, "current_period")
        cumulative_expenditure = _column_total(expenditure, "cumulative")
        current_surplus = current_income - current_expenditure
        cumulative_surplus = cumulative_income - cumulative_expenditure

        return {
            "filters": {"from_date": from_date, "to_date": to_date},
            "income": income,
            "expenditure": expenditure,
            "totals": {
                "current_income": current_income,
                "cumulative_income": cumulative_income,
                "current_expenditure": current_expenditure,
                "cumulative_expenditure": cumulative_expenditure,
                "current_surplus_deficit": current_surplus,
                "cumulative_surplus_deficit": cumulative_surplus,
                "is_current_surplus": current_surplus >= 0,
                "is_cumulative_surplus": cumulative_surplus >= 0,
            },
        }

    def cumulative_totals(self, as_on_date: date) -> dict:
        """Income, expenditure and surplus from inception to the date."""
        return self.generate(INCEPTION, as_on_date)["totals"]

    def income_details(self, category_id: int, from_date: date, to_date: date):
        return self.aggregator.income_details(category_id, from_date, to_date)

    def expense_details(self, category_id, from_date: date, to_date: date, label: Optional[str] = None):
        return self.aggregator.expense_details(category_id, from_date, to_date, label)
