"""Tests for display formatting helpers."""

import pytest

from trading_journal.core.formatters import (
    format_compact_currency,
    format_currency,
    format_percent,
    format_percent_unsigned,
    format_pnl,
    format_price,
    format_quantity,
    format_win_rate,
)


@pytest.mark.parametrize("value,currency,text", [
    (1234.5, "USD", "$1,234.50"),
    (1234.5, "EUR", "€1.234,50"),
    (-1500000, "ID", "-Rp 1.500.000"),
    (1500000, "IDR", "Rp 1.500.000"),
    (10, "SGD", "S$10.00"),
    (99.9, "CRYPTO", "$99.90"),
    (-0.5, "USD", "-$0.50"),
    (12, "XYZ", "$12.00"),
])
def test_format_currency(value, currency, text):
    assert format_currency(value, currency) == text


@pytest.mark.parametrize("value,text", [
    (1_500_000, "$1.5M"),
    (-2_500, "-$2.5K"),
    (3_200_000_000, "$3.2B"),
    (999, "$999.00"),
])
def test_format_compact_currency(value, text):
    assert format_compact_currency(value) == text


class TestPercent:

    def test_signed(self):
        assert format_percent(12.5) == "+12.50%"
        assert format_percent(-3) == "-3.00%"
        assert format_percent(0) == "+0.00%"

    def test_unsigned_and_win_rate(self):
        assert format_percent_unsigned(7.123, 1) == "7.1%"
        assert format_win_rate(55.56) == "55.6%"


class TestPnl:

    @pytest.mark.parametrize("value,text", [
        (120, "+$120.00"),
        (-45.1, "-$45.10"),
        (0, "$0.00"),
    ])
    def test_signed_currency(self, value, text):
        assert format_pnl(value) == text


class TestQuantity:

    @pytest.mark.parametrize("value,market,text", [
        (0.001234, "CRYPTO", "0.001234"),
        (2.0, "CRYPTO", "2"),
        (0, "CRYPTO", "0"),
        (1500, "US", "1,500"),
        (2.5, "US", "2.50"),
    ])
    def test_quantity(self, value, market, text):
        assert format_quantity(value, market) == text


class TestPrice:

    @pytest.mark.parametrize("value,text", [
        (0.005, "$0.00500000"),
        (0.5, "$0.5000"),
        (-0.5, "-$0.5000"),
        (1234.5, "$1,234.50"),
    ])
    def test_precision_by_magnitude(self, value, text):
        assert format_price(value) == text

    def test_rupiah(self):
        assert format_price(15000, "IDR") == "Rp 15.000,00"
