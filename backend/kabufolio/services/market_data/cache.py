# backend/kabufolio/services/market_data/cache.py
"""
Short-lived cache in front of a rate provider.

Automatic refreshes reuse a rate younger than the cache window (5 minutes)
instead of hitting the upstream again; manual refreshes always go upstream.
If the upstream fails and any rate was ever cached, that rate is returned
(stale but known good); only a failure with an empty cache propagates.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from kabufolio.models import ExchangeRate
from kabufolio.services.constants import RATE_CACHE_MINUTES
from kabufolio.services.exceptions import FXRateError, FXProviderError
from kabufolio.services.market_data.base import RateProvider

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CachedRateProvider(RateProvider):
    """
    RateProvider decorator with an expiry window and stale fallback.

    Example:
        provider = CachedRateProvider(YahooFinanceProvider(), cache_minutes=5)
        provider.fetch_rate()             # upstream
        provider.fetch_rate()             # cached
        provider.fetch_rate(manual=True)  # upstream
    """

    def __init__(
            self,
            upstream: RateProvider,
            cache_minutes: float = RATE_CACHE_MINUTES,
            clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._upstream = upstream
        self._ttl = timedelta(minutes=cache_minutes)
        self._clock = clock
        self._cached: ExchangeRate | None = None
        self._cached_at: datetime | None = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return f"cached:{self._upstream.name}"

    @property
    def cached_rate(self) -> ExchangeRate | None:
        with self._lock:
            return self._cached

    def is_expired(self) -> bool:
        with self._lock:
            return self._is_expired()

    def fetch_rate(self, manual: bool = False) -> ExchangeRate:
        """
        Return a cached or freshly fetched USD/JPY rate.

        Raises:
            FXProviderError: If the upstream fails and nothing is cached
        """
        with self._lock:
            if not manual and not self._is_expired():
                logger.debug(f"Using cached exchange rate {self._cached.rate}")
                return self._cached

        try:
            rate = self._upstream.fetch_rate(manual=manual)
        except Exception as e:
            with self._lock:
                fallback = self._cached
            if fallback is None:
                if isinstance(e, FXRateError):
                    raise
                raise FXProviderError(provider=self._upstream.name, reason=str(e)) from e
            logger.warning(f"Rate provider failed, serving cached rate {fallback.rate}: {e}")
            return fallback

        with self._lock:
            self._cached = rate
            self._cached_at = self._clock()
        return rate

    def _is_expired(self) -> bool:
        if self._cached is None or self._cached_at is None:
            return True
        return self._clock() - self._cached_at >= self._ttl
