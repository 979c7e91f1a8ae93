# backend/kabufolio/services/market_data/base.py
"""
Abstract interfaces for price and exchange-rate providers.

The valuation engine never calls a provider itself. Callers resolve quotes
and the rate first, then hand the engine a fully materialized snapshot.

Design Principles:
- A missing price is None, never an exception
- An outage is a MarketDataError / FXProviderError, raised
- Batch lookups isolate per-symbol failures so one bad symbol does not
  sink the rest (degraded, partial computation)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from kabufolio.models import ExchangeRate, PriceQuote

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class BatchQuoteResult:
    """
    Result of a batch quote lookup.

    Attributes:
        quotes: Quotes keyed by the symbol that was asked for
        missing: Symbols the provider has no price for
        failed: Symbols whose lookup raised, with the exception
    """

    quotes: dict[str, PriceQuote] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)
    failed: dict[str, Exception] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.quotes)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def all_successful(self) -> bool:
        return not self.missing and not self.failed


# =============================================================================
# PRICE PROVIDER
# =============================================================================

class PriceProvider(ABC):
    """
    Abstract base class for price providers.

    Implementations:
        YahooFinanceProvider   - equities, via yfinance
        YahooJapanFundProvider - Japanese investment trusts, via the NAV page
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs and error messages."""
        pass

    @abstractmethod
    def latest_quote(self, symbol: str) -> PriceQuote | None:
        """
        Fetch the latest price for one symbol.

        Returns:
            PriceQuote, or None if the provider has no price for the symbol

        Raises:
            ProviderUnavailableError: If the provider cannot be reached
        """
        pass

    def latest_quotes(self, symbols: list[str]) -> BatchQuoteResult:
        """
        Fetch quotes for several symbols, one at a time.

        Failures are recorded per symbol instead of raised.
        """
        result = BatchQuoteResult()

        for symbol in dict.fromkeys(symbols):
            try:
                quote = self.latest_quote(symbol)
            except Exception as e:
                logger.warning(f"{self.name}: quote lookup failed for {symbol}: {e}")
                result.failed[symbol] = e
                continue

            if quote is None:
                result.missing.append(symbol)
            else:
                result.quotes[symbol] = quote

        return result


# =============================================================================
# RATE PROVIDER
# =============================================================================

class RateProvider(ABC):
    """Abstract base class for USD/JPY rate providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def fetch_rate(self, manual: bool = False) -> ExchangeRate:
        """
        Fetch the current USD/JPY rate.

        Args:
            manual: True for a user-triggered refresh (bypasses caches)

        Raises:
            FXProviderError: If no rate could be obtained
        """
        pass
