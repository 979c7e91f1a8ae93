# backend/kabufolio/services/market_data/yahoo.py
"""
Yahoo Finance provider for equities and the USD/JPY rate.

Uses the yfinance library. Symbol conventions:
- All-digit symbols are Tokyo Stock Exchange codes: "7203" -> "7203.T".
  When ".T" has no data the ".JP" suffix is tried once.
- Anything else is passed through unchanged ("AAPL", "VOO").
- USD/JPY is the "USDJPY=X" ticker.

Limitations:
- Data may be delayed (15-20 minutes for some markets)
- Unofficial rate limits exist; this provider does not retry
"""

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import yfinance as yf

from kabufolio.models import ExchangeRate, PriceQuote
from kabufolio.services.constants import JP_FALLBACK_SUFFIX, TSE_SUFFIX, USDJPY_TICKER
from kabufolio.services.exceptions import FXProviderError, ProviderUnavailableError
from kabufolio.services.market_data.base import PriceProvider, RateProvider

logger = logging.getLogger(__name__)


class YahooFinanceProvider(PriceProvider, RateProvider):
    """
    Yahoo Finance implementation of PriceProvider and RateProvider.

    Example:
        provider = YahooFinanceProvider()

        quote = provider.latest_quote("7203")   # Toyota, JPY
        rate = provider.fetch_rate()            # USD/JPY
    """

    # Keys tried, in order, for the current price in a yfinance info dict
    PRICE_KEYS: tuple[str, ...] = ("regularMarketPrice", "currentPrice", "previousClose")

    def __init__(self) -> None:
        logger.info("YahooFinanceProvider initialized")

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # EQUITY QUOTES
    # =========================================================================

    def latest_quote(self, symbol: str) -> PriceQuote | None:
        """
        Fetch the latest price for an equity.

        Args:
            symbol: Ticker or TSE code as stored on the holding

        Returns:
            PriceQuote keyed by the original symbol, or None if not found

        Raises:
            ProviderUnavailableError: If Yahoo Finance cannot be reached
        """
        symbol = symbol.strip().upper()
        if not symbol:
            return None

        candidates = [symbol]
        if symbol.isdigit():
            candidates = [f"{symbol}{TSE_SUFFIX}", f"{symbol}{JP_FALLBACK_SUFFIX}"]

        for yahoo_symbol in candidates:
            info = self._fetch_info(yahoo_symbol)
            price = self._extract_price(info)
            if price is not None:
                return PriceQuote(
                    symbol=symbol,
                    price=price,
                    currency=(info.get("currency") or "JPY").upper(),
                    last_updated=self._extract_time(info),
                    name=info.get("longName") or info.get("shortName"),
                )
            logger.debug(f"No price for {yahoo_symbol}")

        logger.warning(f"No price data for {symbol} on Yahoo Finance")
        return None

    # =========================================================================
    # EXCHANGE RATE
    # =========================================================================

    def fetch_rate(self, manual: bool = False) -> ExchangeRate:
        """
        Fetch the current USD/JPY rate.

        Raises:
            FXProviderError: If the rate is unavailable
        """
        try:
            info = self._fetch_info(USDJPY_TICKER)
        except ProviderUnavailableError as e:
            raise FXProviderError(provider=self.name, reason=e.reason) from e

        rate = self._extract_price(info)
        if rate is None or rate <= 0:
            raise FXProviderError(provider=self.name, reason="no USD/JPY price in response")

        logger.debug(f"Fetched USD/JPY {rate} (manual={manual})")
        return ExchangeRate(rate=rate, last_updated=datetime.now(timezone.utc))

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _fetch_info(self, yahoo_symbol: str) -> dict:
        try:
            info = yf.Ticker(yahoo_symbol).info
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str or "404" in error_str:
                return {}
            logger.error(f"Yahoo Finance error for {yahoo_symbol}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e)) from e
        return info or {}

    def _extract_price(self, info: dict) -> Decimal | None:
        for key in self.PRICE_KEYS:
            price = self._to_decimal(info.get(key))
            if price is not None and price > 0:
                return price
        return None

    @staticmethod
    def _extract_time(info: dict) -> datetime:
        market_time = info.get("regularMarketTime")
        if isinstance(market_time, (int, float)) and market_time > 0:
            return datetime.fromtimestamp(market_time, tz=timezone.utc)
        return datetime.now(timezone.utc)

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value))
        except (TypeError, ValueError):
            return None
