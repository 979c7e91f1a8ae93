# backend/kabufolio/schemas/quotes.py
"""Pydantic schemas for price quote lookups."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class QuoteResponse(BaseModel):
    """Latest price for a stock or fund."""

    model_config = ConfigDict(from_attributes=True)

    symbol: str
    price: Decimal = Field(..., description="Price; funds are per 10,000 units")
    currency: str
    last_updated: dt.datetime | None = None
    name: str | None = None
    net_assets: Decimal | None = Field(default=None, description="Fund net assets in millions of yen")
    provider: str
