"""
Amount and date coercion helpers.

All monetary values are handled as Decimal. Inputs arrive from request
payloads, database rows and statement files as int, float, str or Decimal,
so every entry point funnels through these helpers. Malformed values fail
fast instead of propagating NaN through a balance chain.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from tourbooks.core.exceptions import InvalidAmountError, InvalidDateError

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")

DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%d-%b-%Y", "%d %b %Y")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: int, float, str or Decimal
        field: Field name used in the error message

    Returns:
        Finite Decimal value

    Raises:
        InvalidAmountError: If value is None, bool, NaN, infinite or not numeric
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(value, field)

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(value, field) from None

    if not result.is_finite():
        raise InvalidAmountError(value, field, reason="not a finite number")
    return result


def to_optional_decimal(value: Any, field: str = "amount") -> Optional[Decimal]:
    """Like to_decimal, but None and empty strings mean 'not set'."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value, field)


def round_currency(amount: Decimal) -> Decimal:
    """Round to 2 decimal places using round-half-up."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_date(value: Any, field: str = "date") -> date:
    """
    Coerce a date, datetime or date string to a date.

    Accepts ISO dates and timestamps as well as the day-first formats used by
    Indian bank statements (15-02-2024, 15/02/2024, 15-Feb-2024).

    Raises:
        InvalidDateError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise InvalidDateError(value, field)


def parse_optional_date(value: Any, field: str = "date") -> Optional[date]:
    """Like parse_date, but None and empty strings mean 'not set'."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_date(value, field)
