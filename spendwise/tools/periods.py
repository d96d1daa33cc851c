"""
Reporting period helpers.

Resolves named periods ("this_month", "last_month", ...) and explicit
``YYYY-MM`` months to inclusive date ranges. Every helper takes the reference
date explicitly; nothing here reads the wall clock.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Literal

PeriodName = Literal["today", "this_week", "this_month", "last_month", "this_year", "all_time"]

NAMED_PERIODS: tuple[str, ...] = (
    "today",
    "this_week",
    "this_month",
    "last_month",
    "this_year",
    "all_time",
)

# Lower bound used for "all_time"
ALL_TIME_START = date(2020, 1, 1)

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def is_month(value: str | None) -> bool:
    """Check whether ``value`` looks like ``YYYY-MM`` with a valid month."""
    if not value:
        return False
    match = _MONTH_PATTERN.match(value.strip())
    return bool(match) and 1 <= int(match.group(2)) <= 12


def parse_month(value: str) -> date:
    """
    Parse ``YYYY-MM`` into the first day of that month.

    Raises:
        ValueError: If the value is not a valid month
    """
    if not is_month(value):
        raise ValueError(f"Invalid month {value!r}, expected YYYY-MM")
    year, month = value.strip().split("-")
    return date(int(year), int(month), 1)


def format_month(day: date) -> str:
    """``YYYY-MM`` of the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing ``day``."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def shift_month(day: date, months: int) -> date:
    """First day of the month ``months`` away from the one containing ``day``."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def period_dates(period: str | None, today: date) -> tuple[date, date]:
    """
    Inclusive date range of a named period or explicit month.

    Unknown names resolve to the current month. Weeks start on Monday.

    Example:
        >>> period_dates("last_month", date(2024, 3, 15))
        (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29))
    """
    period = (period or "this_month").strip()

    if is_month(period):
        return month_bounds(parse_month(period))
    if period == "today":
        return today, today
    if period == "this_week":
        return today - timedelta(days=today.weekday()), today
    if period == "last_month":
        return month_bounds(shift_month(today, -1))
    if period == "this_year":
        return date(today.year, 1, 1), today
    if period == "all_time":
        return ALL_TIME_START, today
    # this_month and anything unrecognized
    return today.replace(day=1), today


def previous_period_dates(period: str | None, today: date) -> tuple[date, date] | None:
    """
    Range of the period preceding ``period``, for comparisons.

    Returns:
        The previous range, or None for "all_time"
    """
    period = (period or "this_month").strip()

    if is_month(period):
        return month_bounds(shift_month(parse_month(period), -1))
    if period == "today":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == "this_week":
        start = today - timedelta(days=today.weekday() + 7)
        return start, start + timedelta(days=6)
    if period == "last_month":
        return month_bounds(shift_month(today, -2))
    if period == "this_year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    if period == "all_time":
        return None
    return month_bounds(shift_month(today, -1))
