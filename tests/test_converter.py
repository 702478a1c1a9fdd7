"""Tests for currency conversion and formatting."""

from decimal import Decimal

from budget_engine.currency import (
    SUPPORTED_CURRENCIES,
    convert,
    currency_symbol,
    format_currency,
    rate_for,
    round_for_display,
)


class TestConvert:
    """Tests for convert()."""

    def test_same_currency_is_unchanged(self):
        """Test that converting to the same code returns the amount as is."""
        assert convert(Decimal("12.34"), "USD", "usd", SUPPORTED_CURRENCIES) == Decimal("12.34")

    def test_converts_through_base(self):
        """Test USD -> EUR -> GBP goes via the base currency."""
        assert convert(Decimal("110"), "USD", "EUR", SUPPORTED_CURRENCIES) == Decimal("100")
        assert convert(Decimal("110"), "USD", "GBP", SUPPORTED_CURRENCIES) == Decimal("85")

    def test_accepts_plain_mapping(self):
        """Test that a {code: rate} mapping works as a rate table."""
        assert convert(10, "EUR", "USD", {"usd": "1.1"}) == Decimal("11")

    def test_unknown_code_uses_rate_one(self):
        """Test the silent fallback for codes missing from the table."""
        assert rate_for("XYZ", SUPPORTED_CURRENCIES) == Decimal("1")
        assert convert(Decimal("10"), "XYZ", "EUR", SUPPORTED_CURRENCIES) == Decimal("10")

    def test_zero_or_negative_rate_uses_rate_one(self):
        """Test that unusable mapping rates never divide by zero."""
        assert convert(10, "XYZ", "EUR", {"EUR": 1, "XYZ": 0}) == Decimal("10")
        assert convert(10, "EUR", "XYZ", {"EUR": 1, "XYZ": "-2"}) == Decimal("10")
        assert rate_for("XYZ", {"XYZ": 0}) == Decimal("1")

    def test_round_trip_every_pair(self):
        """Test that converting there and back returns the original amount."""
        amount = Decimal("1234.56")
        codes = [rate.code for rate in SUPPORTED_CURRENCIES]
        for source in codes:
            for target in codes:
                there = convert(amount, source, target, SUPPORTED_CURRENCIES)
                back = convert(there, target, source, SUPPORTED_CURRENCIES)
                assert abs(back - amount) < Decimal("1e-18")


class TestFormatting:
    """Tests for display helpers."""

    def test_round_for_display_half_up(self):
        """Test two-decimal rounding with halves going up."""
        assert round_for_display(Decimal("2.345")) == Decimal("2.35")
        assert round_for_display("2.344") == Decimal("2.34")

    def test_currency_symbol_falls_back_to_code(self):
        """Test symbol lookup with and without a known code."""
        assert currency_symbol("gbp", SUPPORTED_CURRENCIES) == "£"
        assert currency_symbol("XYZ", SUPPORTED_CURRENCIES) == "XYZ"

    def test_format_currency(self):
        """Test symbol, thousands separator and sign."""
        assert format_currency(Decimal("1234.5"), "EUR") == "€1,234.50"
        assert format_currency(Decimal("-12"), "USD") == "-$12.00"
