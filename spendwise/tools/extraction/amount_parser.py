"""
Amount and currency detection for free-text transactions.

Patterns are tried in strict priority order and the first one that matches
wins; later patterns are never consulted once an earlier one has matched:

1. Two-character symbols reserved for one currency (``S$`` -> SGD, ``RM`` -> MYR)
2. Symbol or code prefix (``$5``, ``€12``, ``USD 40``); a bare ``$`` resolves
   to the caller's default currency
3. Amount followed by a currency word (``30 dollars``, ``50 ringgit``)
4. Bare number inside the plausible window 0.01 - 999,999
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from spendwise.tools.currency import normalize_currency_code

_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"

MIN_BARE_AMOUNT = Decimal("0.01")
MAX_BARE_AMOUNT = Decimal("999999")

# A letter right before "RM"/"S$" means it is part of a word ("farm 3", "US$")
_MINOR_SYMBOL_PATTERN = re.compile(r"(?<![A-Za-z])(S\$|RM)\s*" + _NUMBER, re.IGNORECASE)

_PREFIX_PATTERN = re.compile(
    r"(US\$|[$€£¥]|\b(?:USD|EUR|GBP|JPY|CNY|SGD|MYR|RMB))\s*" + _NUMBER,
    re.IGNORECASE,
)

_CURRENCY_WORDS: dict[str, str] = {
    "singapore dollar": "SGD",
    "singapore dollars": "SGD",
    "dollar": "USD",
    "dollars": "USD",
    "usd": "USD",
    "euro": "EUR",
    "euros": "EUR",
    "eur": "EUR",
    "pound": "GBP",
    "pounds": "GBP",
    "gbp": "GBP",
    "yen": "JPY",
    "jpy": "JPY",
    "yuan": "CNY",
    "cny": "CNY",
    "rmb": "CNY",
    "ringgit": "MYR",
    "myr": "MYR",
    "rm": "MYR",
    "sgd": "SGD",
}

# Longest alternatives first so "singapore dollars" beats "dollars"
_SUFFIX_PATTERN = re.compile(
    _NUMBER
    + r"\s*("
    + "|".join(re.escape(w) for w in sorted(_CURRENCY_WORDS, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)

_BARE_NUMBER_PATTERN = re.compile(r"(?<![\w.,])" + _NUMBER + r"(?!\w)(?!\.\d)")


@dataclass(frozen=True)
class AmountMatch:
    """Amount found in the text plus the span it occupied."""

    value: Decimal
    currency: str
    start: int
    end: int
    pattern: str

    def remove_from(self, text: str) -> str:
        """Text with the matched amount cut out."""
        return f"{text[: self.start]} {text[self.end :]}"


def _to_amount(raw: str) -> Decimal | None:
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None


def _symbol_currency(symbol: str, default_currency: str) -> str:
    if symbol == "$":
        return default_currency
    return normalize_currency_code(symbol, default=default_currency)


def find_amount(text: str, default_currency: str = "USD") -> AmountMatch | None:
    """
    Find the first monetary amount in ``text``.

    Args:
        text: Free text with temporal phrases already masked
        default_currency: Currency for a bare ``$`` or a bare number

    Returns:
        AmountMatch, or None when no pattern matched
    """
    default_currency = normalize_currency_code(default_currency)

    match = _MINOR_SYMBOL_PATTERN.search(text)
    if match:
        value = _to_amount(match.group(2))
        if value is not None:
            return AmountMatch(
                value=value,
                currency=normalize_currency_code(match.group(1)),
                start=match.start(),
                end=match.end(),
                pattern="minor_symbol",
            )

    match = _PREFIX_PATTERN.search(text)
    if match:
        value = _to_amount(match.group(2))
        if value is not None:
            return AmountMatch(
                value=value,
                currency=_symbol_currency(match.group(1), default_currency),
                start=match.start(),
                end=match.end(),
                pattern="prefix",
            )

    match = _SUFFIX_PATTERN.search(text)
    if match:
        value = _to_amount(match.group(1))
        if value is not None:
            return AmountMatch(
                value=value,
                currency=_CURRENCY_WORDS[match.group(2).lower()],
                start=match.start(),
                end=match.end(),
                pattern="currency_word",
            )

    for match in _BARE_NUMBER_PATTERN.finditer(text):
        value = _to_amount(match.group(1))
        if value is not None and MIN_BARE_AMOUNT <= value <= MAX_BARE_AMOUNT:
            return AmountMatch(
                value=value,
                currency=default_currency,
                start=match.start(),
                end=match.end(),
                pattern="bare_number",
            )

    return None
