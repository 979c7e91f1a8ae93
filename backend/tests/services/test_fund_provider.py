# backend/tests/services/test_fund_provider.py
"""
Tests for the fund NAV provider.

HTTP is served by httpx.MockTransport; no network access.

This module tests:
- Price, name, NAV base date and net assets for each known page layout
- HTTP status handling (404 -> no price, 5xx -> unavailable)
- The in-memory cache
"""

from datetime import date, datetime
from decimal import Decimal

import httpx
import pytest

from kabufolio.services.exceptions import ProviderUnavailableError
from kabufolio.services.market_data.fund import (
    JST,
    YahooJapanFundProvider,
    parse_fund_page,
    parse_nav_date,
)

BASE_URL = "https://funds.example.test/quote"

CURRENT_PAGE = """
<html><body>
<h2 class="name__cj4y">eMAXIS Slim 全世界株式(オール・カントリー)</h2>
<span class="StyledNumber__value__3rXW DataListItem__value__11kV">24,512</span>
</body></html>
"""


class RecordingTransport:
    """Callable handler for httpx.MockTransport that records requests."""

    def __init__(self, status_code: int = 200, text: str = CURRENT_PAGE, error: Exception | None = None):
        self.status_code = status_code
        self.text = text
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.text)


def _provider(handler: RecordingTransport, cache_seconds: int = 3600, **kwargs) -> YahooJapanFundProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return YahooJapanFundProvider(client=client, base_url=BASE_URL, cache_seconds=cache_seconds, **kwargs)


# =============================================================================
# PAGE PARSING
# =============================================================================

class TestParseFundPage:

    @pytest.mark.parametrize("markup", [
        '<span class="number__3BGK">18,250</span>',
        '<span class="_3rXVJKdX">18,250</span>',
        '<span class="price">18,250</span>',
        '<span class="StyledNumber__value__3rXW">18,250</span>',
    ])
    def test_known_layouts(self, markup):
        quote = parse_fund_page("0331418A", f"<html>{markup}</html>")

        assert quote.price == Decimal("18250")
        assert quote.currency == "JPY"
        assert quote.symbol == "0331418A"

    def test_name_extracted(self):
        quote = parse_fund_page("0331418A", CURRENT_PAGE)
        assert quote.name == "eMAXIS Slim 全世界株式(オール・カントリー)"

    def test_default_name(self):
        quote = parse_fund_page("0331418A", '<span class="price">100</span>')
        assert quote.name == "投資信託 0331418A"

    def test_no_price(self):
        assert parse_fund_page("0331418A", "<html>maintenance</html>") is None

    def test_zero_price_is_no_price(self):
        assert parse_fund_page("0331418A", '<span class="price">0</span>') is None

    @pytest.mark.parametrize("markup", [
        '<h2 class="name__cj4y">Fund A</h2>',
        '<h1 class="_1zPjGMXE">Fund A</h1>',
        '<h2 class="PriceBoardMain__name__6uDh">Fund A</h2>',
    ])
    def test_name_layouts(self, markup):
        quote = parse_fund_page("0331418A", f'{markup}<span class="price">100</span>')
        assert quote.name == "Fund A"

    def test_last_updated_from_nav_date(self):
        html = '<span class="price">100</span><p class="updateDate__r1Qf">03/14</p>'

        quote = parse_fund_page("0331418A", html, now=datetime(2024, 3, 15, 10, 0, tzinfo=JST))

        assert quote.last_updated == datetime(2024, 3, 14, tzinfo=JST)

    def test_last_updated_without_nav_date(self):
        now = datetime(2024, 3, 15, 10, 0, tzinfo=JST)
        quote = parse_fund_page("0331418A", '<span class="price">100</span>', now=now)

        assert quote.last_updated == now

    def test_net_assets(self):
        html = (
            '<span class="number__3BGK">24,512</span>'
            '<span><span class="number__3BGK">4,321,098</span></span><span>百万円</span>'
        )

        quote = parse_fund_page("0331418A", html)

        assert quote.price == Decimal("24512")
        assert quote.net_assets == Decimal("4321098")

    def test_net_assets_absent(self):
        assert parse_fund_page("0331418A", CURRENT_PAGE).net_assets is None


class TestParseNavDate:

    @pytest.mark.parametrize("markup", [
        '<p class="updateDate__r1Qf">06/07</p>',
        "06/07 現在",
        '<li class="PriceBoardMain__time__2J2Y"><time>6/7</time></li>',
    ])
    def test_known_layouts(self, markup):
        assert parse_nav_date(f"<div>{markup}</div>", date(2024, 6, 10)) == date(2024, 6, 7)

    def test_later_month_is_previous_year(self):
        """A December date read in January belongs to last year."""
        assert parse_nav_date("12/30 現在", date(2025, 1, 6)) == date(2024, 12, 30)

    def test_same_month_is_current_year(self):
        assert parse_nav_date("01/06 現在", date(2025, 1, 6)) == date(2025, 1, 6)

    def test_invalid_date(self):
        assert parse_nav_date("02/30 現在", date(2024, 6, 10)) is None

    def test_no_date(self):
        assert parse_nav_date("<html></html>", date(2024, 6, 10)) is None


# =============================================================================
# PROVIDER
# =============================================================================

class TestYahooJapanFundProvider:

    def test_name(self):
        assert _provider(RecordingTransport()).name == "yahoo_japan_fund"

    def test_latest_quote(self):
        handler = RecordingTransport()
        quote = _provider(handler).latest_quote("0331418A")

        assert quote.price == Decimal("24512")
        assert str(handler.requests[0].url) == f"{BASE_URL}/0331418A"
        assert "Mozilla" in handler.requests[0].headers["User-Agent"]

    def test_not_found_returns_none(self):
        assert _provider(RecordingTransport(status_code=404)).latest_quote("NOPE") is None

    def test_server_error_raises(self):
        with pytest.raises(ProviderUnavailableError) as exc_info:
            _provider(RecordingTransport(status_code=503)).latest_quote("0331418A")

        assert "HTTP 503" in exc_info.value.reason

    def test_network_error_raises(self):
        handler = RecordingTransport(error=httpx.ConnectError("connection refused"))

        with pytest.raises(ProviderUnavailableError):
            _provider(handler).latest_quote("0331418A")

    def test_unparseable_page_returns_none(self):
        assert _provider(RecordingTransport(text="<html></html>")).latest_quote("0331418A") is None

    def test_blank_code(self):
        handler = RecordingTransport()
        assert _provider(handler).latest_quote("   ") is None
        assert handler.requests == []

    def test_cache_hit(self):
        handler = RecordingTransport()
        provider = _provider(handler)

        provider.latest_quote("0331418A")
        provider.latest_quote("0331418A")

        assert len(handler.requests) == 1

    def test_clear_cache(self):
        handler = RecordingTransport()
        provider = _provider(handler)

        provider.latest_quote("0331418A")
        provider.clear_cache()
        provider.latest_quote("0331418A")

        assert len(handler.requests) == 2

    def test_cache_disabled(self):
        handler = RecordingTransport()
        provider = _provider(handler, cache_seconds=0)

        provider.latest_quote("0331418A")
        provider.latest_quote("0331418A")

        assert len(handler.requests) == 2

    def test_missing_price_not_cached(self):
        handler = RecordingTransport(text="<html></html>")
        provider = _provider(handler)

        provider.latest_quote("0331418A")
        provider.latest_quote("0331418A")

        assert len(handler.requests) == 2

    def test_nav_date_uses_clock(self):
        page = CURRENT_PAGE.replace("</body>", "<p>12/30 現在</p></body>")
        handler = RecordingTransport(text=page)
        provider = _provider(handler, clock=lambda: datetime(2025, 1, 6, 9, 0, tzinfo=JST))

        quote = provider.latest_quote("0331418A")

        assert quote.last_updated == datetime(2024, 12, 30, tzinfo=JST)
        assert quote.name == "eMAXIS Slim 全世界株式(オール・カントリー)"
