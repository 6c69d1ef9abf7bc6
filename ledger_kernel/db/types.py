"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and rounding helpers for money and
    rate columns.  Centralizes precision so that every model and service uses
    identical type definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Currency codes are ISO-ish strings supplied by collaborators and are not
validated against a registry here.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

# Monetary amount: 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Tax / discount rate as a fraction in [0, 1]
Rate = Annotated[Decimal, Numeric(20, 9)]

# Currency code as supplied by the caller (e.g. "USD", "GBP")
Currency = Annotated[str, String(3)]


# Rounding constants
MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: object, field_name: str = "amount") -> Decimal:
    """
    Coerce an int / str / Decimal input into a Decimal.

    Floats are rejected: they cannot represent money exactly.

    Raises:
        ValueError: If the value is a float or not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"{field_name} must be Decimal, int or str, not {type(value).__name__}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{field_name} is not numeric: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{field_name} is not finite: {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    All other code MUST delegate rounding here to keep precision handling
    consistent.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def format_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> str:
    """Render a monetary value as a fixed-point string, e.g. ``"1000.00"``."""
    rounded = round_money(value, decimal_places)
    if rounded == ZERO:
        rounded = abs(rounded)
    return str(rounded)
