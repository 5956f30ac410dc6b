from datetime import date, datetime
from typing import Optional, Tuple, Union

from hospital_finance.logger_config import logger

# Lower bound used for "since the beginning" windows
INCEPTION = date(1900, 1, 1)


def _today() -> date:
    return date.today()


def month_start(d: date) -> date:
    return d.replace(day=1)


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Parse YYYY-MM-DD (or a date/datetime). Returns None when missing or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def resolve_date(value, default: date, field: str = "date") -> date:
    """Lenient date parameter: anything unparseable falls back to the default."""
    parsed = parse_date(value)
    if parsed is None:
        if value not in (None, ""):
            logger.warning(f"Invalid {field} '{value}', falling back to {default}")
        return default
    return parsed


def resolve_as_on_date(as_on_date=None) -> date:
    return resolve_date(as_on_date, _today(), "as_on_date")


def resolve_period(from_date=None, to_date=None) -> Tuple[date, date]:
    """
    Resolve a report period. to_date defaults to today, from_date to the first
    day of the current month. A reversed range is swapped.
    """
    today = _today()
    start = resolve_date(from_date, month_start(today), "from_date")
    end = resolve_date(to_date, today, "to_date")
    if start > end:
        logger.warning(f"from_date {start} is after to_date {end}, swapping")
        start, end = end, start
    return start, end
