"""
Local, deterministic Extraction Engine.

Turns one line of free text into an ``ExtractionResult`` without any network
call. This is also the fallback path of the AI Delegate Client.
"""

import re
from datetime import date

from spendwise.logging_config import get_logger
from spendwise.schemas.extraction import (
    DEFAULT_INCOME_SOURCE,
    ExtractionResult,
    MonetaryAmount,
)
from spendwise.tools.currency import resolve_default_currency
from spendwise.tools.extraction.amount_parser import find_amount
from spendwise.tools.extraction.categorizer import (
    categorize_by_keywords,
    classify_income_source,
)
from spendwise.tools.extraction.date_parser import parse_date, strip_temporal_phrases

logger = get_logger(__name__)

# Prepositions, action verbs and subject fillers that carry no description value
FILLER_WORDS: tuple[str, ...] = (
    "for", "at", "on", "cost", "costs", "paid", "pay", "spent", "spend",
    "purchase", "purchased", "buying", "bought", "i", "we", "had",
)

_FILLER_PATTERN = re.compile(r"\b(?:" + "|".join(FILLER_WORDS) + r")\b", re.IGNORECASE)
_SPACES = re.compile(r"\s+")
_EDGE_PUNCTUATION = " ,.;:-"


def capitalize_first(text: str) -> str:
    """Upper-case the first character, leave the rest untouched."""
    return text[:1].upper() + text[1:] if text else text


def title_case(text: str) -> str:
    """Title Case that keeps the rest of each word as typed ("McDonald's")."""
    return " ".join(capitalize_first(word) for word in text.split(" "))


def clean_description(text: str) -> str:
    """Strip filler words and collapse whitespace; Title Case the remainder."""
    cleaned = _FILLER_PATTERN.sub(" ", text)
    cleaned = _SPACES.sub(" ", cleaned).strip(_EDGE_PUNCTUATION)
    return title_case(cleaned)


def extract(
    text: str,
    default_currency: str = "USD",
    today: date | None = None,
) -> ExtractionResult:
    """
    Extract amount, currency, date, category and a clean description.

    Never raises on unrecognized input: anything not found stays None and the
    result is marked ``method="default"``, ``confidence="low"``.

    Args:
        text: Free text such as "Lunch RM30 yesterday"
        default_currency: Currency for a bare ``$`` or bare number
        today: Reference date for relative phrases

    Returns:
        ExtractionResult

    Example:
        >>> extract("Coffee $5", default_currency="USD").cleaned_description
        'Coffee'
    """
    original = (text or "").strip()
    default_currency = resolve_default_currency(default_currency)

    extracted_date = parse_date(original, today=today)
    remaining = strip_temporal_phrases(original)

    amount: MonetaryAmount | None = None
    amount_match = find_amount(remaining, default_currency)
    if amount_match is not None:
        amount = MonetaryAmount(value=amount_match.value, currency=amount_match.currency)
        remaining = amount_match.remove_from(remaining)

    cleaned = clean_description(remaining) or capitalize_first(original)
    category = categorize_by_keywords(cleaned)

    if category is None:
        logger.debug(
            "extraction_miss",
            has_amount=amount is not None,
            has_date=extracted_date is not None,
        )
        return ExtractionResult(
            amount=amount,
            date=extracted_date,
            category=None,
            cleaned_description=cleaned,
            confidence="low",
            method="default",
        )

    return ExtractionResult(
        amount=amount,
        date=extracted_date,
        category=category,
        cleaned_description=cleaned,
        confidence="high" if amount is not None else "medium",
        method="keyword",
    )


def extract_income(
    text: str,
    default_currency: str = "USD",
    today: date | None = None,
) -> ExtractionResult:
    """
    Local income extraction: same amount/date handling, keyword-scored source.

    The source lands in ``category``; unmatched text falls back to "Other".
    """
    base = extract(text, default_currency=default_currency, today=today)
    source = classify_income_source(text)
    return base.model_copy(
        update={
            "category": source or DEFAULT_INCOME_SOURCE,
            "method": "keyword" if source else "default",
            "confidence": "medium" if source else "low",
            "kind": "income",
        }
    )
