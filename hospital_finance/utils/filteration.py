from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import DateTime



def _is_datetime_column(column) -> bool:
    return isinstance(getattr(column, "type", None), DateTime)


def day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def apply_date_window(query, column, from_date: Optional[date] = None, to_date: Optional[date] = None):
    """
    Restrict a query to column values within [from_date, to_date], both days
    inclusive. A missing bound leaves that side open. Timestamp columns are
    compared against day boundaries so no cast is needed.
    """
    if _is_datetime_column(column):
        if from_date:
            query = query.filter(column >= day_start(from_date))
        if to_date:
            query = query.filter(column < day_start(to_date + timedelta(days=1)))
    else:
        if from_date:
            query = query.filter(column >= from_date)
        if to_date:
            query = query.filter(column <= to_date)
    return query


def apply_after(query, column, as_on_date: date):
    """Rows dated strictly after as_on_date."""
    if _is_datetime_column(column):
        return query.filter(column >= day_start(as_on_date + timedelta(days=1)))
    return query.filter(column > as_on_date)
