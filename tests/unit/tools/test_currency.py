"""
Unit tests for the Currency Conversion Layer.

Tests:
- Identity and round-trip conversion
- Cross rates through the base currency
- Unknown codes default to rate 1.0
- Code normalization and formatting
"""

from decimal import Decimal

import pytest

from spendwise.schemas.extraction import MonetaryAmount
from spendwise.tools.currency import (
    DEFAULT_RATE_TABLE,
    SUPPORTED_CURRENCIES,
    CurrencyError,
    RateTable,
    convert,
    exchange_rate,
    format_amount,
    is_supported_currency,
    normalize_currency_code,
    resolve_default_currency,
    round_money,
    to_decimal,
)


# ─────────────────────────────────────────────────────────────────────────────
# Conversion
# ─────────────────────────────────────────────────────────────────────────────


class TestConvert:
    """Tests for convert()."""

    @pytest.mark.parametrize("currency", SUPPORTED_CURRENCIES)
    def test_identity_conversion(self, currency):
        """Converting to the same currency returns the amount unchanged."""
        assert convert(Decimal("123.45"), currency, currency) == Decimal("123.45")

    @pytest.mark.parametrize(
        "source,target",
        [("USD", "MYR"), ("SGD", "JPY"), ("EUR", "GBP"), ("CNY", "SGD")],
    )
    def test_round_trip_within_a_cent(self, source, target):
        """A -> B -> A returns the original amount up to rounding."""
        amount = Decimal("87.65")
        there = convert(amount, source, target)
        back = convert(there, target, source)
        assert round_money(back) == amount

    def test_usd_to_myr(self):
        """Base to quote uses the quote rate."""
        assert convert(Decimal("100"), "USD", "MYR") == Decimal("447")

    def test_unrounded_result_repr(self):
        """Conversion does not quantize; rounding happens once, later."""
        assert repr(convert(Decimal("100"), "USD", "MYR")) == "Decimal('447.0')"
        table = RateTable().with_rates(EUR=Decimal("0.95"))
        assert repr(table.convert(Decimal("10"), "USD", "EUR")) == "Decimal('9.5')"

    def test_cross_rate_through_base(self):
        """SGD -> MYR goes through USD."""
        result = convert(Decimal("134"), "SGD", "MYR")
        assert round_money(result) == Decimal("447.00")

    def test_unknown_currency_treated_as_base(self):
        """Unknown codes convert at 1.0."""
        assert convert(Decimal("10"), "XYZ", "USD") == Decimal("10")
        assert round_money(convert(Decimal("10"), "XYZ", "MYR")) == Decimal("44.70")

    def test_symbols_are_normalized(self):
        """Symbols resolve to their ISO codes."""
        assert convert(Decimal("1"), "RM", "MYR") == Decimal("1")
        assert round_money(convert(Decimal("1"), "$", "RM")) == Decimal("4.47")

    def test_result_not_rounded(self):
        """Rounding is left to the caller after aggregation."""
        result = convert(Decimal("1"), "JPY", "USD")
        assert result != round_money(result)

    def test_exchange_rate(self):
        """Units of target per unit of source."""
        assert exchange_rate("USD", "EUR") == Decimal("0.92")
        assert exchange_rate("MYR", "MYR") == Decimal("1")


class TestRateTable:
    """Tests for RateTable overrides."""

    def test_with_rates_returns_new_table(self):
        """Overrides do not touch the default table."""
        table = DEFAULT_RATE_TABLE.with_rates(EUR="0.5")

        assert table.convert(Decimal("10"), "USD", "EUR") == Decimal("5.0")
        assert DEFAULT_RATE_TABLE.rate("EUR") == Decimal("0.92")

    def test_custom_base_amounts(self):
        """A table with only some codes still converts those codes."""
        table = RateTable(rates={"USD": Decimal("1"), "MYR": Decimal("4")})
        assert table.convert(Decimal("8"), "MYR", "USD") == Decimal("2")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


class TestCurrencyHelpers:
    """Tests for normalization, validation and formatting."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("usd", "USD"), (" myr ", "MYR"), ("RM", "MYR"), ("S$", "SGD"), ("€", "EUR"), ("rmb", "CNY")],
    )
    def test_normalize(self, raw, expected):
        assert normalize_currency_code(raw) == expected

    def test_normalize_blank_uses_default(self):
        assert normalize_currency_code("", default="SGD") == "SGD"
        assert normalize_currency_code(None, default="MYR") == "MYR"

    @pytest.mark.parametrize("raw,expected", [("myr", "MYR"), ("RM", "MYR"), ("AUD", "USD"), (None, "USD")])
    def test_resolve_default_currency(self, raw, expected):
        assert resolve_default_currency(raw) == expected

    def test_is_supported(self):
        assert is_supported_currency("sgd")
        assert not is_supported_currency("XYZ")
        assert not is_supported_currency(None)

    def test_to_decimal_avoids_float_artefacts(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_rejects_bool(self):
        with pytest.raises(CurrencyError):
            to_decimal(True)

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")

    def test_format_amount(self):
        assert format_amount(Decimal("1250.5"), "MYR") == "RM 1,250.50"
        assert format_amount(1500, "JPY") == "¥ 1,500"
        assert format_amount(5, "USD") == "$ 5.00"


class TestMonetaryAmount:
    """Tests for MonetaryAmount conversion."""

    def test_to_converts_and_keeps_original(self):
        amount = MonetaryAmount(value=Decimal("100"), currency="USD")
        converted = amount.to("MYR")

        assert converted.currency == "MYR"
        assert converted.value == Decimal("447")
        assert amount.value == Decimal("100")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            MonetaryAmount(value=Decimal("-1"), currency="USD")
