# backend/kabufolio/services/market_data/composite.py
"""
Routes quote lookups to the provider that can price a holding.

Funds go to the NAV provider, equities to Yahoo Finance.
"""

import logging
from typing import Iterable

from kabufolio.models import AssetType, Holding
from kabufolio.services.market_data.base import BatchQuoteResult, PriceProvider

logger = logging.getLogger(__name__)


class CompositePriceProvider:
    """
    Holding-aware front for an equity and a fund PriceProvider.

    Example:
        provider = CompositePriceProvider(
            equity_provider=YahooFinanceProvider(),
            fund_provider=YahooJapanFundProvider(),
        )
        result = provider.quotes_for(holdings)
    """

    def __init__(self, equity_provider: PriceProvider, fund_provider: PriceProvider) -> None:
        self._providers: dict[AssetType, PriceProvider] = {
            AssetType.EQUITY: equity_provider,
            AssetType.FUND: fund_provider,
        }

    def provider_for(self, asset_type: AssetType) -> PriceProvider:
        return self._providers[asset_type]

    def quotes_for(self, holdings: Iterable[Holding]) -> BatchQuoteResult:
        """
        Quotes for several holdings, grouped per provider.

        Failures are collected in the result, never raised.
        """
        symbols_by_type: dict[AssetType, list[str]] = {}
        for holding in holdings:
            symbols_by_type.setdefault(holding.asset_type, []).append(holding.symbol)

        result = BatchQuoteResult()
        for asset_type, symbols in symbols_by_type.items():
            partial = self.provider_for(asset_type).latest_quotes(symbols)
            result.quotes.update(partial.quotes)
            result.missing.extend(partial.missing)
            result.failed.update(partial.failed)

        if result.failure_count:
            logger.warning(f"{result.failure_count} quote lookup(s) failed: {', '.join(result.failed)}")
        return result
