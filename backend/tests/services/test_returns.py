# backend/tests/services/test_returns.py
"""Tests for investment return and dividend yield."""

from decimal import Decimal

import pytest

from kabufolio.services.returns import dividend_yield, investment_return


class TestInvestmentReturn:

    def test_gain(self):
        assert investment_return(Decimal("110000"), Decimal("100000")) == Decimal("0.1")

    def test_loss(self):
        assert investment_return(Decimal("90000"), Decimal("100000")) == Decimal("-0.1")

    @pytest.mark.parametrize("total_value", [Decimal("0"), Decimal("123456.7"), Decimal("-5")])
    def test_zero_investment_returns_zero(self, total_value):
        assert investment_return(total_value, Decimal("0")) == Decimal("0")

    def test_negative_investment_returns_zero(self):
        assert investment_return(Decimal("1000"), Decimal("-500")) == Decimal("0")

    def test_accepts_plain_numbers(self):
        assert investment_return(150, 100) == Decimal("0.5")


class TestDividendYield:

    def test_yield(self):
        assert dividend_yield(Decimal("3000"), Decimal("100000")) == Decimal("0.03")

    @pytest.mark.parametrize("dividends", [Decimal("0"), Decimal("5000")])
    def test_zero_investment_returns_zero(self, dividends):
        assert dividend_yield(dividends, Decimal("0")) == Decimal("0")

    def test_negative_investment_returns_zero(self):
        assert dividend_yield(Decimal("100"), Decimal("-1")) == Decimal("0")
