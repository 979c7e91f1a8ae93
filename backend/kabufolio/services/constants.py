# backend/kabufolio/services/constants.py
"""
Centralized constants for the valuation services.

Usage:
    from kabufolio.services.constants import (
        FUND_UNIT_DIVISOR,
        REBALANCE_THRESHOLD,
    )
"""

from decimal import Decimal


# =============================================================================
# VALUATION
# =============================================================================

# Fund prices (基準価額) are quoted per 10,000 units
FUND_UNIT_DIVISOR: Decimal = Decimal("10000")

# Currency whose quotes are converted with the USD/JPY rate
USD: str = "USD"

# Every valuation is expressed in yen
BASE_CURRENCY: str = "JPY"


# =============================================================================
# REBALANCE
# =============================================================================

# Allocation gap (as a fraction of the total) at which a target is suggested
# 0.10 = 10 percentage points between the Japan and US shares
REBALANCE_THRESHOLD: Decimal = Decimal("0.10")

# Neutral split reported when there is nothing to compare
NEUTRAL_SHARE: Decimal = Decimal("0.5")


# =============================================================================
# EXCHANGE RATE
# =============================================================================

# USD/JPY used until the first successful fetch
DEFAULT_EXCHANGE_RATE: Decimal = Decimal("150")

# Polling interval of the state holder (10 minutes)
DEFAULT_REFRESH_INTERVAL_SECONDS: float = 600.0

# How long JUST_UPDATED is shown before falling back to IDLE
UPDATE_DISPLAY_WINDOW_SECONDS: float = 3.0

# Automatic refreshes reuse a cached rate younger than this
RATE_CACHE_MINUTES: float = 5.0

# yfinance ticker for USD/JPY
USDJPY_TICKER: str = "USDJPY=X"


# =============================================================================
# MARKET DATA
# =============================================================================

# Tokyo Stock Exchange suffix for numeric codes, and the fallback suffix
TSE_SUFFIX: str = ".T"
JP_FALLBACK_SUFFIX: str = ".JP"

# Fund NAV pages change once a day
FUND_PRICE_CACHE_SECONDS: int = 3600
