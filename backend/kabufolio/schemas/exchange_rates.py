# backend/kabufolio/schemas/exchange_rates.py
"""
Pydantic schemas for the USD/JPY exchange rate.

These schemas handle:
- Current snapshot with refresh flags
- Manual refresh results
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


class ExchangeRateResponse(BaseModel):
    """Current exchange-rate snapshot."""

    base_currency: str = Field(default="USD")
    quote_currency: str = Field(default="JPY")
    rate: Decimal = Field(..., description="1 USD = rate JPY")
    last_updated: dt.datetime
    state: str = Field(..., description="idle, refreshing or just_updated")
    is_refreshing: bool
    just_updated: bool


class ExchangeRateRefreshResponse(BaseModel):
    """Outcome of a manual refresh."""

    updated: bool = Field(
        ...,
        description="False if the fetch failed or another refresh was in flight"
    )
    exchange_rate: ExchangeRateResponse
    last_error: str | None = None
