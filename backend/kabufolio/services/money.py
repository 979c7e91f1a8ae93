# backend/kabufolio/services/money.py
"""
Rounding and currency formatting shared by every computation.

All monetary figures are Decimal. Rounding is half away from zero
(ROUND_HALF_UP on Decimal), never banker's rounding:

    round_to_tenth(Decimal("0.25"))   -> Decimal("0.3")
    round_to_tenth(Decimal("-0.25"))  -> Decimal("-0.3")
    round_to_integer(Decimal("2.5"))  -> Decimal("3")

Aggregates are finalized with round_to_tenth; single-holding display values
with round_to_integer. Callers that need to choose pass a RoundingPrecision.
"""

import enum
from decimal import Decimal, ROUND_HALF_UP

TENTH = Decimal("0.1")
INTEGER = Decimal("1")

# Currencies rendered with a symbol; anything else is shown as "<CODE> <amount>"
CURRENCY_SYMBOLS: dict[str, str] = {
    "JPY": "¥",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

# Fraction digits per currency (default 2)
_ZERO_DECIMAL_CURRENCIES = {"JPY"}


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """
    Convert a number to Decimal without binary float artefacts.

    None is treated as zero. Floats go through str() so that 0.1 becomes
    Decimal("0.1") and not Decimal("0.1000000000000000055511151231257827").
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_to_tenth(value: Decimal | int | float | str) -> Decimal:
    """Round to one decimal place, half away from zero."""
    return to_decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def round_to_integer(value: Decimal | int | float | str) -> Decimal:
    """Round to a whole number, half away from zero."""
    return to_decimal(value).quantize(INTEGER, rounding=ROUND_HALF_UP)


class RoundingPrecision(str, enum.Enum):
    """Rounding applied when a valuation is finalized."""

    TENTH = "TENTH"      # one-decimal yen, for aggregates
    INTEGER = "INTEGER"  # whole yen, for single-holding display

    def apply(self, value: Decimal | int | float | str) -> Decimal:
        if self is RoundingPrecision.INTEGER:
            return round_to_integer(value)
        return round_to_tenth(value)


# =============================================================================
# FORMATTING
# =============================================================================

def format_currency(
        amount: Decimal | int | float | None,
        currency_code: str = "JPY",
) -> str:
    """
    Render an amount for display.

    Args:
        amount: The amount (None is shown as zero)
        currency_code: ISO-like currency code

    Returns:
        "¥1,501" for JPY (no fraction digits), "$1,500.55" for USD/EUR/GBP,
        "XYZ 1,000.00" for unknown codes. Negative amounts keep the sign in
        front of the symbol: "-¥1,000".
    """
    code = (currency_code or "JPY").upper()
    digits = 0 if code in _ZERO_DECIMAL_CURRENCIES else 2
    exponent = Decimal(1).scaleb(-digits)

    rounded = to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    body = f"{abs(rounded):,.{digits}f}"

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {body}"
    return f"{sign}{symbol}{body}"


def format_percent(ratio: Decimal | int | float | None, digits: int = 1) -> str:
    """Render a ratio as a percentage: Decimal("0.1234") -> "12.3%"."""
    percent = to_decimal(ratio) * 100
    exponent = Decimal(1).scaleb(-digits)
    return f"{percent.quantize(exponent, rounding=ROUND_HALF_UP):.{digits}f}%"
