# backend/tests/services/test_rebalance.py
"""
Tests for the rebalance advisor.

Covers both modes:
- Percentage threshold: silent below a 10-point gap
- Yen gap: always names the country with the smaller total
"""

from decimal import Decimal

import pytest

from kabufolio.models import Country
from kabufolio.services.rebalance import suggest_rebalance, suggest_rebalance_by_yen_gap
from kabufolio.services.valuation.types import CountryAggregate


def _aggregate(japan: str, us: str) -> CountryAggregate:
    japan_total = Decimal(japan)
    us_total = Decimal(us)
    return CountryAggregate(japan_total=japan_total, us_total=us_total, total=japan_total + us_total)


# =============================================================================
# PERCENTAGE THRESHOLD MODE
# =============================================================================

class TestSuggestRebalance:

    def test_empty_portfolio_is_neutral(self):
        suggestion = suggest_rebalance(_aggregate("0", "0"))

        assert suggestion.jp_percent == Decimal("0.5")
        assert suggestion.us_percent == Decimal("0.5")
        assert suggestion.difference == Decimal("0")
        assert suggestion.target_country is None
        assert suggestion.is_balanced

    def test_us_heavy_suggests_japan(self):
        suggestion = suggest_rebalance(_aggregate("300000", "700000"))

        assert suggestion.jp_percent == Decimal("0.3")
        assert suggestion.us_percent == Decimal("0.7")
        assert suggestion.difference == Decimal("0.4")
        assert suggestion.target_country == Country.JAPAN

    def test_japan_heavy_suggests_us(self):
        suggestion = suggest_rebalance(_aggregate("800000", "200000"))
        assert suggestion.target_country == Country.US

    def test_small_gap_has_no_target(self):
        """A 4-point gap measured on shares, not on yen, stays silent."""
        suggestion = suggest_rebalance(_aggregate("250030", "271592.1"))

        assert suggestion.difference < Decimal("0.10")
        assert suggestion.target_country is None

    def test_gap_exactly_at_threshold_suggests(self):
        # 45 / 55 -> difference exactly 0.10
        suggestion = suggest_rebalance(_aggregate("450", "550"))

        assert suggestion.difference == Decimal("0.1")
        assert suggestion.target_country == Country.JAPAN

    @pytest.mark.parametrize("japan,us", [
        ("460", "540"),
        ("540", "460"),
        ("500", "500"),
        ("1", "1.1"),
    ])
    def test_never_targets_below_threshold(self, japan, us):
        suggestion = suggest_rebalance(_aggregate(japan, us))
        assert suggestion.target_country is None

    def test_custom_threshold(self):
        suggestion = suggest_rebalance(_aggregate("460", "540"), threshold=Decimal("0.05"))
        assert suggestion.target_country == Country.JAPAN

    def test_single_country_portfolio(self):
        suggestion = suggest_rebalance(_aggregate("0", "1000"))

        assert suggestion.jp_percent == Decimal("0")
        assert suggestion.us_percent == Decimal("1")
        assert suggestion.target_country == Country.JAPAN


# =============================================================================
# YEN GAP MODE
# =============================================================================

class TestSuggestRebalanceByYenGap:

    def test_japan_smaller(self):
        suggestion = suggest_rebalance_by_yen_gap(_aggregate("250030", "271592.1"))

        assert suggestion.target_country == Country.JAPAN
        assert suggestion.difference == Decimal("21562.1")

    def test_us_smaller(self):
        suggestion = suggest_rebalance_by_yen_gap(_aggregate("500000", "100000"))

        assert suggestion.target_country == Country.US
        assert suggestion.difference == Decimal("400000")

    def test_tie_targets_us(self):
        suggestion = suggest_rebalance_by_yen_gap(_aggregate("1000", "1000"))

        assert suggestion.target_country == Country.US
        assert suggestion.difference == Decimal("0")

    def test_small_gap_still_suggests(self):
        suggestion = suggest_rebalance_by_yen_gap(_aggregate("999", "1000"))
        assert suggestion.target_country == Country.JAPAN

    def test_empty_portfolio(self):
        suggestion = suggest_rebalance_by_yen_gap(_aggregate("0", "0"))
        assert suggestion.target_country == Country.US
