# backend/kabufolio/services/market_data/fund.py
"""
Japanese investment trust (投資信託) NAV provider.

Yahoo! Finance Japan has no API for fund NAVs, so the quote page is fetched
with httpx and the price is pulled out of the markup. The page layout has
changed several times; every known price pattern is tried in order.

The NAV is per 10,000 units and always in JPY, dated by the base date the
page shows (the year is inferred). Results are cached in memory for an hour
since NAVs are published once a day.
"""

import logging
import re
import threading
import time
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable

import httpx

from kabufolio.models import PriceQuote
from kabufolio.services.constants import FUND_PRICE_CACHE_SECONDS
from kabufolio.services.exceptions import ProviderUnavailableError
from kabufolio.services.market_data.base import PriceProvider

logger = logging.getLogger(__name__)

PRICE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r'<span class="number__3BGK">([0-9,]+)</span>'),
    re.compile(r'<span class="_3rXVJKdX">([0-9,]+)</span>'),
    re.compile(r'<span class="price">([0-9,]+)</span>'),
    re.compile(r'<span class="StyledNumber__value__3rXW[^"]*">([0-9,]+)</span>'),
)

NAME_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r'<h2 class="name__cj4y">(.+?)</h2>'),
    re.compile(r'<h1 class="_1zPjGMXE">(.+?)</h1>'),
    re.compile(r'<h2 class="PriceBoardMain__name__[^"]*">(.+?)</h2>'),
)

# NAV base date, shown as MM/DD without a year
NAV_DATE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r'<p class="updateDate__r1Qf">(\d{2})/(\d{2})</p>'),
    re.compile(r'(\d{2})/(\d{2}) 現在'),
    re.compile(r'<li class="PriceBoardMain__time__[^"]*"><time>(\d{1,2})/(\d{1,2})</time></li>'),
)

# 純資産総額, in millions of yen
NET_ASSETS_PATTERN = re.compile(r'<span class="number__3BGK">([0-9,]+)</span></span><span>百万円</span>')

JST = timezone(timedelta(hours=9))

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "ja,en-US;q=0.9,en;q=0.8",
    "Referer": "https://finance.yahoo.co.jp/",
}


def _now_jst() -> datetime:
    return datetime.now(JST)


def _parse_number(text: str) -> Decimal | None:
    try:
        return Decimal(text.replace(",", ""))
    except InvalidOperation:
        return None


def parse_nav_date(html: str, today: date) -> date | None:
    """
    Base date of the NAV on the page.

    The page omits the year. A month later than today's belongs to last
    year (a December NAV read in January).
    """
    for pattern in NAV_DATE_PATTERNS:
        match = pattern.search(html)
        if match is None:
            continue
        month, day = int(match.group(1)), int(match.group(2))
        year = today.year - 1 if month > today.month else today.year
        try:
            return date(year, month, day)
        except ValueError:
            logger.debug(f"Ignoring invalid NAV date {month:02d}/{day:02d}")
            return None
    return None


def parse_fund_page(code: str, html: str, now: datetime | None = None) -> PriceQuote | None:
    """
    Extract the NAV, fund name, base date and net assets from a quote page.

    last_updated is midnight JST of the NAV base date, or `now` when the
    page shows no date.

    Returns:
        PriceQuote in JPY, or None if no price pattern matched
    """
    now = now or _now_jst()

    price = None
    for pattern in PRICE_PATTERNS:
        match = pattern.search(html)
        if match:
            price = _parse_number(match.group(1))
            if price is not None and price > 0:
                break
            price = None

    if price is None:
        return None

    name = f"投資信託 {code}"
    for pattern in NAME_PATTERNS:
        match = pattern.search(html)
        if match:
            name = match.group(1)
            break

    nav_date = parse_nav_date(html, now.astimezone(JST).date())
    if nav_date is not None:
        last_updated = datetime(nav_date.year, nav_date.month, nav_date.day, tzinfo=JST)
    else:
        last_updated = now

    match = NET_ASSETS_PATTERN.search(html)
    net_assets = _parse_number(match.group(1)) if match else None

    return PriceQuote(
        symbol=code,
        price=price,
        currency="JPY",
        last_updated=last_updated,
        name=name,
        net_assets=net_assets,
    )


class YahooJapanFundProvider(PriceProvider):
    """
    Fund NAV provider backed by the Yahoo! Finance Japan quote page.

    Attributes:
        base_url: Quote page prefix; the fund code is appended
        cache_seconds: How long a fetched NAV is reused (0 disables caching)

    Example:
        with httpx.Client(timeout=10) as client:
            provider = YahooJapanFundProvider(client=client)
            quote = provider.latest_quote("0331418A")
    """

    def __init__(
            self,
            client: httpx.Client | None = None,
            base_url: str = "https://finance.yahoo.co.jp/quote",
            cache_seconds: int = FUND_PRICE_CACHE_SECONDS,
            timeout: int = 10,
            clock: Callable[[], datetime] = _now_jst,
    ) -> None:
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._base_url = base_url.rstrip("/")
        self._cache_seconds = cache_seconds
        self._cache: dict[str, tuple[PriceQuote, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        logger.info(f"YahooJapanFundProvider initialized (cache={cache_seconds}s)")

    @property
    def name(self) -> str:
        return "yahoo_japan_fund"

    def latest_quote(self, symbol: str) -> PriceQuote | None:
        """
        Fetch the NAV of a fund.

        Args:
            symbol: Fund code as used in the quote page URL (e.g. "0331418A")

        Returns:
            PriceQuote in JPY, or None if the page has no NAV

        Raises:
            ProviderUnavailableError: On network errors or HTTP 5xx
        """
        code = symbol.strip()
        if not code:
            return None

        cached = self._get_cached(code)
        if cached is not None:
            logger.debug(f"Fund cache hit: {code}")
            return cached

        url = f"{self._base_url}/{code}"
        try:
            response = self._client.get(url, headers=DEFAULT_HEADERS)
        except httpx.HTTPError as e:
            logger.error(f"Fund page request failed for {code}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e)) from e

        if response.status_code == 404:
            logger.warning(f"Fund page not found: {code}")
            return None
        if response.status_code >= 400:
            raise ProviderUnavailableError(
                provider=self.name,
                reason=f"HTTP {response.status_code} for {code}",
            )

        quote = parse_fund_page(code, response.text, now=self._clock())
        if quote is None:
            logger.warning(f"No NAV found on fund page for {code} ({len(response.text)} chars)")
            return None

        self._put_cached(code, quote)
        logger.debug(f"Fetched NAV for {code}: {quote.price}")
        return quote

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        self._client.close()

    def _get_cached(self, code: str) -> PriceQuote | None:
        if self._cache_seconds <= 0:
            return None
        with self._lock:
            entry = self._cache.get(code)
            if entry is None:
                return None
            quote, fetched_at = entry
            if time.monotonic() - fetched_at >= self._cache_seconds:
                del self._cache[code]
                return None
            return quote

    def _put_cached(self, code: str, quote: PriceQuote) -> None:
        if self._cache_seconds <= 0:
            return
        with self._lock:
            self._cache[code] = (quote, time.monotonic())
