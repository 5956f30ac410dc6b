from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import Numeric, func

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce a DB scalar (None, int, float, Decimal) into a Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def q2(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money(value) -> float:
    """Round half-up to 2 decimals for the JSON boundary."""
    return float(q2(value))


def positive(value) -> Decimal:
    value = to_decimal(value)
    return value if value > 0 else ZERO


def abs_amount(column):
    """SQL abs() keeping the money type so sums come back as Decimal."""
    return func.abs(column, type_=Numeric(15, 2))
