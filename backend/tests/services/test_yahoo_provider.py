# backend/tests/services/test_yahoo_provider.py
"""
Tests for the YahooFinanceProvider.

This module tests:
- Symbol building (TSE codes, .JP fallback, pass-through tickers)
- Price extraction from the yfinance info dict
- USD/JPY rate fetching
- Error handling and classification

Note: These tests mock the yfinance library to avoid actual API calls.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, PropertyMock, patch

import pytest

from kabufolio.services.exceptions import FXProviderError, ProviderUnavailableError
from kabufolio.services.market_data.yahoo import YahooFinanceProvider

TICKER_PATH = "kabufolio.services.market_data.yahoo.yf.Ticker"


def _ticker_factory(infos: dict[str, dict | Exception]):
    """Build a yf.Ticker replacement returning canned info dicts per symbol."""
    def make(symbol):
        ticker = MagicMock()
        info = infos.get(symbol, {})
        if isinstance(info, Exception):
            type(ticker).info = PropertyMock(side_effect=info)
        else:
            ticker.info = info
        return ticker
    return make


@pytest.fixture
def provider() -> YahooFinanceProvider:
    return YahooFinanceProvider()


# =============================================================================
# PROVIDER INITIALIZATION
# =============================================================================

class TestYahooProviderInit:

    def test_provider_name(self, provider):
        """Provider name should be 'yahoo'."""
        assert provider.name == "yahoo"


# =============================================================================
# EQUITY QUOTES
# =============================================================================

class TestLatestQuote:

    def test_us_ticker_passed_through(self, provider):
        infos = {"AAPL": {"regularMarketPrice": 189.5, "currency": "USD", "longName": "Apple Inc."}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)) as mock_ticker:
            quote = provider.latest_quote("aapl")

        mock_ticker.assert_called_once_with("AAPL")
        assert quote.symbol == "AAPL"
        assert quote.price == Decimal("189.5")
        assert quote.currency == "USD"
        assert quote.name == "Apple Inc."

    def test_tse_code_gets_t_suffix(self, provider):
        infos = {"7203.T": {"regularMarketPrice": 3000, "currency": "JPY", "shortName": "TOYOTA"}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)) as mock_ticker:
            quote = provider.latest_quote("7203")

        mock_ticker.assert_called_once_with("7203.T")
        assert quote.symbol == "7203"
        assert quote.price == Decimal("3000")
        assert quote.name == "TOYOTA"

    def test_tse_code_falls_back_to_jp_suffix(self, provider):
        infos = {"7203.T": {}, "7203.JP": {"currentPrice": 2999}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)) as mock_ticker:
            quote = provider.latest_quote("7203")

        assert [c.args[0] for c in mock_ticker.call_args_list] == ["7203.T", "7203.JP"]
        assert quote.price == Decimal("2999")

    def test_currency_defaults_to_jpy(self, provider):
        infos = {"7203.T": {"regularMarketPrice": 3000}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            quote = provider.latest_quote("7203")

        assert quote.currency == "JPY"

    def test_price_key_precedence(self, provider):
        infos = {"VOO": {"regularMarketPrice": None, "currentPrice": float("nan"), "previousClose": 410.2}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            quote = provider.latest_quote("VOO")

        assert quote.price == Decimal("410.2")

    def test_market_time_used_as_last_updated(self, provider):
        infos = {"VOO": {"regularMarketPrice": 410, "regularMarketTime": 1700000000}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            quote = provider.latest_quote("VOO")

        assert quote.last_updated == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_no_price_returns_none(self, provider):
        with patch(TICKER_PATH, side_effect=_ticker_factory({})):
            assert provider.latest_quote("NOPE") is None

    def test_blank_symbol_returns_none(self, provider):
        with patch(TICKER_PATH) as mock_ticker:
            assert provider.latest_quote("  ") is None
        mock_ticker.assert_not_called()

    def test_not_found_error_is_missing_price(self, provider):
        infos = {"NOPE": Exception("404 Client Error: Not Found")}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            assert provider.latest_quote("NOPE") is None

    def test_other_errors_raise_unavailable(self, provider):
        infos = {"AAPL": Exception("Connection reset by peer")}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            with pytest.raises(ProviderUnavailableError) as exc_info:
                provider.latest_quote("AAPL")

        assert exc_info.value.provider == "yahoo"
        assert "Connection reset" in exc_info.value.reason

    def test_batch_isolates_failures(self, provider):
        infos = {
            "AAPL": {"regularMarketPrice": 189.5, "currency": "USD"},
            "MSFT": Exception("Connection reset by peer"),
        }
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            result = provider.latest_quotes(["AAPL", "MSFT", "NOPE", "AAPL"])

        assert list(result.quotes) == ["AAPL"]
        assert list(result.failed) == ["MSFT"]
        assert result.missing == ["NOPE"]
        assert not result.all_successful


# =============================================================================
# EXCHANGE RATE
# =============================================================================

class TestFetchRate:

    def test_fetch_rate(self, provider):
        infos = {"USDJPY=X": {"regularMarketPrice": 149.87}}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)) as mock_ticker:
            rate = provider.fetch_rate()

        mock_ticker.assert_called_once_with("USDJPY=X")
        assert rate.rate == Decimal("149.87")
        assert rate.last_updated.tzinfo is not None

    def test_no_rate_raises(self, provider):
        with patch(TICKER_PATH, side_effect=_ticker_factory({})):
            with pytest.raises(FXProviderError):
                provider.fetch_rate(manual=True)

    def test_outage_raises_fx_provider_error(self, provider):
        infos = {"USDJPY=X": Exception("Read timed out")}
        with patch(TICKER_PATH, side_effect=_ticker_factory(infos)):
            with pytest.raises(FXProviderError) as exc_info:
                provider.fetch_rate()

        assert exc_info.value.provider == "yahoo"
        assert "Read timed out" in exc_info.value.reason
