"""Helpers shared by the assistant tool handlers."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any

from spendwise.agents.assistant.tools.registry import ToolContext
from spendwise.models import Expense, Income
from spendwise.tools.currency import round_money
from spendwise.tools.periods import format_month, is_month, period_dates

ZERO = Decimal("0")


def money(value: Decimal | float | int) -> float:
    """Round to cents and return a JSON-friendly float."""
    return float(round_money(value))


def percent(part: Decimal, whole: Decimal, digits: int = 1) -> float:
    """``part`` as a percentage of ``whole``; 0 when ``whole`` is not positive."""
    if whole <= 0:
        return 0.0
    return round(float(part / whole * 100), digits)


def converted(ctx: ToolContext, amount: Decimal, currency: str, target: str) -> Decimal:
    return ctx.rates.convert(amount, currency, target)


def converted_total(ctx: ToolContext, records: Iterable[Expense | Income], target: str) -> Decimal:
    """Sum of ``records`` after converting each amount into ``target``."""
    return sum((converted(ctx, r.amount, r.currency, target) for r in records), ZERO)


def record_row(ctx: ToolContext, record: Expense | Income, target: str) -> dict[str, Any]:
    """One expense or income record with its native and converted amounts."""
    row = {
        "id": str(record.id),
        "date": record.date.isoformat(),
        "description": record.description,
        "amount": money(record.amount),
        "currency": record.currency,
        "converted_amount": money(converted(ctx, record.amount, record.currency, target)),
        "display_currency": target,
    }
    if isinstance(record, Expense):
        row["category"] = record.category
    else:
        row["source"] = record.source
    return row


def within_amounts(
    value: Decimal, min_amount: float | None, max_amount: float | None
) -> bool:
    """Amount bounds are compared against converted amounts."""
    if min_amount is not None and value < Decimal(str(min_amount)):
        return False
    if max_amount is not None and value > Decimal(str(max_amount)):
        return False
    return True


def resolve_period(ctx: ToolContext, period: str | None) -> tuple[str, date, date]:
    """Explicit period, else the conversation's context period, else this month."""
    name = period or ctx.context_period or "this_month"
    start, end = period_dates(name, ctx.today)
    return name, start, end


def context_month(ctx: ToolContext, month: str | None = None) -> str:
    """
    ``YYYY-MM`` a month-scoped tool works on.

    An explicit argument wins; otherwise the month of the conversation's
    context period.
    """
    if month:
        return month
    if is_month(ctx.context_period):
        return ctx.context_period.strip()
    _, start, _ = resolve_period(ctx, None)
    return format_month(start)
