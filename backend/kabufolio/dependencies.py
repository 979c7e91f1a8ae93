# backend/kabufolio/dependencies.py
"""
Dependency injection module for FastAPI services.

Providers, the exchange-rate state holder and the valuation service are
process-wide singletons: the holder owns the polling timers and the providers
own their caches, so every request must see the same instances.

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from kabufolio.dependencies import get_valuation_service, get_exchange_rate_holder

    @router.post("/portfolio")
    def value_portfolio(
        service: ValuationService = Depends(get_valuation_service),
        holder: ExchangeRateStateHolder = Depends(get_exchange_rate_holder),
    ):
        ...

Tests replace them with app.dependency_overrides.
"""

import logging
from functools import lru_cache

from kabufolio.config import settings
from kabufolio.services.exchange_rate_state import ExchangeRateStateHolder
from kabufolio.services.market_data import (
    CachedRateProvider,
    CompositePriceProvider,
    YahooFinanceProvider,
    YahooJapanFundProvider,
)
from kabufolio.services.valuation import ValuationService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_equity_provider, get_fund_provider (no deps)
# 2. get_price_provider (both providers)
# 3. get_rate_provider (equity provider doubles as the USD/JPY source)
# 4. get_exchange_rate_holder (rate provider)
# 5. get_valuation_service (price provider)


@lru_cache(maxsize=1)
def get_equity_provider() -> YahooFinanceProvider:
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider()


@lru_cache(maxsize=1)
def get_fund_provider() -> YahooJapanFundProvider:
    """Fund NAV scraper; its one-hour cache is shared by all requests."""
    logger.debug("Initializing singleton YahooJapanFundProvider")
    return YahooJapanFundProvider(
        base_url=settings.fund_quote_base_url,
        cache_seconds=settings.fund_price_cache_seconds,
        timeout=settings.provider_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_price_provider() -> CompositePriceProvider:
    return CompositePriceProvider(
        equity_provider=get_equity_provider(),
        fund_provider=get_fund_provider(),
    )


@lru_cache(maxsize=1)
def get_rate_provider() -> CachedRateProvider:
    """USD/JPY source with the five-minute cache in front of Yahoo Finance."""
    return CachedRateProvider(
        upstream=get_equity_provider(),
        cache_minutes=settings.exchange_rate_cache_minutes,
    )


@lru_cache(maxsize=1)
def get_exchange_rate_holder() -> ExchangeRateStateHolder:
    """
    Get the singleton exchange-rate state holder.

    main.py starts it on application startup and stops it on shutdown.
    """
    logger.debug("Initializing singleton ExchangeRateStateHolder")
    return ExchangeRateStateHolder(
        fetcher=get_rate_provider(),
        refresh_interval=settings.exchange_rate_refresh_interval_seconds,
        auto_update_on_load=settings.exchange_rate_auto_update_on_load,
        update_display_window=settings.exchange_rate_update_display_seconds,
        default_rate=settings.default_exchange_rate,
    )


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    logger.debug("Initializing singleton ValuationService")
    return ValuationService(price_provider=get_price_provider())
