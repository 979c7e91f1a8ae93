# backend/kabufolio/services/returns.py
"""
Return and yield ratios.

Both ratios are fractions (0.05 = 5%) and are defined as 0 when nothing has
been invested, so an empty portfolio never divides by zero.
"""

from decimal import Decimal

from kabufolio.services.money import to_decimal

ZERO = Decimal("0")


def investment_return(total_value: Decimal | int | float, total_investment: Decimal | int | float) -> Decimal:
    """
    (total_value - total_investment) / total_investment.

    Returns:
        The return as a fraction, or 0 when total_investment <= 0
    """
    total_value = to_decimal(total_value)
    total_investment = to_decimal(total_investment)
    if total_investment <= ZERO:
        return ZERO
    return (total_value - total_investment) / total_investment


def dividend_yield(total_dividends: Decimal | int | float, total_investment: Decimal | int | float) -> Decimal:
    """total_dividends / total_investment, or 0 when total_investment <= 0."""
    total_dividends = to_decimal(total_dividends)
    total_investment = to_decimal(total_investment)
    if total_investment <= ZERO:
        return ZERO
    return total_dividends / total_investment
