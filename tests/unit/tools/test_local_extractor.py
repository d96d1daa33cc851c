"""
Unit tests for the local Extraction Engine.

Tests:
- Amount, currency, date and description extraction
- Keyword categorization, tie-breaking and misses
- Confidence and method reporting
- Income source classification
"""

from datetime import date
from decimal import Decimal

import pytest

from spendwise.tools.extraction import (
    categorize_by_keywords,
    classify_income_source,
    extract,
    extract_income,
)
from spendwise.tools.extraction.categorizer import score_keywords
from spendwise.tools.extraction.local_extractor import clean_description

TODAY = date(2024, 3, 15)


# ─────────────────────────────────────────────────────────────────────────────
# Expense Extraction
# ─────────────────────────────────────────────────────────────────────────────


class TestExtract:
    """Tests for extract()."""

    def test_coffee_dollar(self):
        result = extract("Coffee $5", default_currency="USD", today=TODAY)

        assert result.amount.value == Decimal("5")
        assert result.amount.currency == "USD"
        assert result.cleaned_description == "Coffee"
        assert result.category == "Food & Dining"
        assert result.confidence == "high"
        assert result.method == "keyword"
        assert result.kind == "expense"

    def test_explicit_symbol_overrides_default_currency(self):
        result = extract("Lunch RM30", default_currency="SGD", today=TODAY)

        assert result.amount.value == Decimal("30")
        assert result.amount.currency == "MYR"
        assert result.cleaned_description == "Lunch"

    def test_relative_date_and_bare_amount(self):
        result = extract("2 days ago groceries 40", default_currency="USD", today=TODAY)

        assert result.date == date(2024, 3, 13)
        assert result.amount.value == Decimal("40")
        assert result.amount.currency == "USD"
        assert result.cleaned_description == "Groceries"
        assert result.category == "Groceries"

    def test_filler_words_removed(self):
        result = extract("Paid 45 for haircut yesterday", today=TODAY)

        assert result.cleaned_description == "Haircut"
        assert result.category == "Personal Care"
        assert result.date == date(2024, 3, 14)

    def test_no_amount_is_medium_confidence(self):
        result = extract("dinner with friends", today=TODAY)

        assert result.amount is None
        assert result.category == "Food & Dining"
        assert result.confidence == "medium"

    def test_unrecognized_text_is_low_confidence_default(self):
        result = extract("xyzzy 12", today=TODAY)

        assert result.category is None
        assert result.method == "default"
        assert result.confidence == "low"
        assert result.amount.value == Decimal("12")

    def test_empty_text_never_raises(self):
        result = extract("", today=TODAY)

        assert result.amount is None
        assert result.date is None
        assert result.category is None
        assert result.confidence == "low"

    def test_out_of_range_days_ago_is_no_date(self):
        result = extract("taxi 1000000 days ago 12", "USD", today=TODAY)

        assert result.date is None
        assert result.amount.value == Decimal("12")
        assert result.category == "Transportation"

    def test_unsupported_default_currency_uses_base(self):
        """A bare $ with an unsupported default falls back to USD."""
        result = extract("Coffee $5", default_currency="AUD", today=TODAY)

        assert result.amount.value == Decimal("5")
        assert result.amount.currency == "USD"

    def test_with_date_fills_missing_date(self):
        result = extract("Coffee $5", today=TODAY).with_date(TODAY)
        assert result.date == TODAY

    def test_clean_description_title_cases(self):
        assert clean_description("  bought new shoes at mall ") == "New Shoes Mall"


# ─────────────────────────────────────────────────────────────────────────────
# Categorizer
# ─────────────────────────────────────────────────────────────────────────────


class TestCategorizer:
    """Tests for keyword scoring."""

    def test_whole_word_beats_substring(self):
        assert score_keywords("coffee", ("coffee",)) == 10
        assert score_keywords("coffeehouse", ("coffee",)) == 5

    def test_scores_accumulate(self):
        assert score_keywords("lunch and coffee", ("lunch", "coffee", "tea")) == 20

    @pytest.mark.parametrize(
        "text,expected",
        [
            # "subway" is listed under both; the first declared category wins
            ("subway", "Food & Dining"),
            ("gas", "Transportation"),
            ("uber to office", "Transportation"),
            ("netflix", "Entertainment"),
            ("electricity bill", "Utilities"),
        ],
    )
    def test_categorize(self, text, expected):
        assert categorize_by_keywords(text) == expected

    @pytest.mark.parametrize("text", ["qwerty", "", "   ", None])
    def test_no_match_returns_none(self, text):
        assert categorize_by_keywords(text) is None


# ─────────────────────────────────────────────────────────────────────────────
# Income
# ─────────────────────────────────────────────────────────────────────────────


class TestIncome:
    """Tests for income extraction."""

    def test_salary(self):
        result = extract_income("Salary 3000", default_currency="USD", today=TODAY)

        assert result.kind == "income"
        assert result.category == "Salary"
        assert result.method == "keyword"
        assert result.amount.value == Decimal("3000")

    def test_unmatched_source_is_other(self):
        result = extract_income("random 50", today=TODAY)

        assert result.category == "Other"
        assert result.method == "default"
        assert result.confidence == "low"

    def test_classify_income_source(self):
        assert classify_income_source("client invoice paid") == "Freelance"
        assert classify_income_source("dividends from stocks") == "Investment"
        assert classify_income_source("nothing") is None
