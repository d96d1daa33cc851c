"""
Relative and numeric date parsing for transaction text.

All rules are evaluated against an injectable ``today`` so results are
deterministic in tests. Rules run in a fixed order and the first hit wins.
"""

import re
from datetime import date, timedelta

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

_TODAY_PATTERN = re.compile(r"\b(?:today|this\s+(?:morning|afternoon|evening))\b", re.IGNORECASE)
_YESTERDAY_PATTERN = re.compile(r"\b(?:yesterday|last\s+night)\b", re.IGNORECASE)
_DAYS_AGO_PATTERN = re.compile(r"\b(\d+)\s*days?\s+ago\b", re.IGNORECASE)
_LAST_WEEK_PATTERN = re.compile(r"\blast\s+week\b", re.IGNORECASE)
_WEEKDAY_PATTERN = re.compile(
    r"\b(last\s+)?(" + "|".join(WEEKDAYS) + r")\b",
    re.IGNORECASE,
)
# Day first: 25/12, 25-12-24, 25/12/2024
_NUMERIC_DATE_PATTERN = re.compile(r"(?<![\d.,])(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?(?![\d.])")

# Phrases masked out of the text before amount search and description cleaning
TEMPORAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    _DAYS_AGO_PATTERN,
    _TODAY_PATTERN,
    _YESTERDAY_PATTERN,
    _LAST_WEEK_PATTERN,
    _WEEKDAY_PATTERN,
    _NUMERIC_DATE_PATTERN,
)


def _weekday_date(today: date, weekday: int, qualified_last: bool) -> date:
    """
    Past occurrence of ``weekday``, counted in Sunday-first weeks.

    A day that has not come yet this week (or is today) resolves to last
    week's; "last" also moves an earlier day of this week back to last week.
    The extra week is added once, never twice.
    """
    days_back = (today.weekday() + 1) % 7 - (weekday + 1) % 7
    if days_back <= 0 or qualified_last:
        days_back += 7
    return today - timedelta(days=days_back)


def _numeric_date(match: re.Match[str], today: date) -> date | None:
    day, month, year_text = int(match.group(1)), int(match.group(2)), match.group(3)
    if year_text is None:
        year = today.year
    elif len(year_text) == 2:
        year = 2000 + int(year_text)
    else:
        year = int(year_text)
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(text: str, today: date | None = None) -> date | None:
    """
    Parse the transaction date mentioned in ``text``.

    Args:
        text: Free text, e.g. "taxi 2 days ago"
        today: Reference date (defaults to the current local date)

    Returns:
        The resolved date, or None when no rule matches or the numeric
        day/month combination is invalid

    Example:
        >>> parse_date("dinner last night", today=date(2024, 3, 10))
        datetime.date(2024, 3, 9)
    """
    if not text:
        return None
    today = today or date.today()

    if _TODAY_PATTERN.search(text):
        return today
    if _YESTERDAY_PATTERN.search(text):
        return today - timedelta(days=1)

    match = _DAYS_AGO_PATTERN.search(text)
    if match:
        try:
            return today - timedelta(days=int(match.group(1)))
        except OverflowError:
            return None

    if _LAST_WEEK_PATTERN.search(text):
        return today - timedelta(days=7)

    match = _WEEKDAY_PATTERN.search(text)
    if match:
        weekday = WEEKDAYS.index(match.group(2).lower())
        return _weekday_date(today, weekday, qualified_last=bool(match.group(1)))

    match = _NUMERIC_DATE_PATTERN.search(text)
    if match:
        return _numeric_date(match, today)

    return None


def strip_temporal_phrases(text: str) -> str:
    """Replace every recognized temporal phrase with a single space."""
    for pattern in TEMPORAL_PATTERNS:
        text = pattern.sub(" ", text)
    return text
