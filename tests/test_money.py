"""Tests for cents arithmetic, formatting and parsing."""

from decimal import Decimal

import pytest

from zenith.money import divide_cents, format_cents, parse_amount, round_half_up, to_decimal


class TestRounding:

    def test_half_rounds_up(self):
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("3.5")) == 4

    def test_below_half_rounds_down(self):
        assert round_half_up(1.49) == 1

    def test_int_passes_through(self):
        assert round_half_up(7) == 7

    def test_non_numeric_raises(self):
        with pytest.raises(ValueError):
            round_half_up("abc")

    def test_divide_cents(self):
        assert divide_cents(10000, 3) == 3333
        assert divide_cents(10001, 2) == 5001

    def test_divide_by_fractional_quantity(self):
        assert divide_cents(38000000, 0.5) == 76000000

    def test_divide_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            divide_cents(100, 0)


class TestFormatting:

    def test_to_decimal(self):
        assert to_decimal(12345) == Decimal("123.45")

    def test_brl_format(self):
        assert format_cents(123456) == "R$ 1.234,56"

    def test_negative_brl(self):
        assert format_cents(-1000) == "-R$ 10,00"

    def test_usd_format(self):
        assert format_cents(123456, "USD") == "US$ 1,234.56"


class TestParsing:

    @pytest.mark.parametrize("text,expected", [
        ("1234.56", 123456),
        ("1,234.56", 123456),
        ("1.234,56", 123456),
        ("R$ 10,00", 1000),
        ("10,5", 1050),
        ("1,234", 123400),
    ])
    def test_strings(self, text, expected):
        assert parse_amount(text) == expected

    def test_numbers_are_currency_units(self):
        assert parse_amount(45.9) == 4590
        assert parse_amount(3) == 300

    def test_rejects_bool(self):
        with pytest.raises(ValueError):
            parse_amount(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_amount("ten reais")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            parse_amount("R$ ")
