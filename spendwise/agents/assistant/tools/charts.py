"""
Chart tool.

Builds a ``ChartPayload`` from the user's records and hands it back as a
side effect; the model only sees a short description of what was plotted.
"""

from collections import defaultdict
from decimal import Decimal

from spendwise.agents.assistant.tools.common import (
    ZERO,
    context_month,
    converted,
    money,
    resolve_period,
)
from spendwise.agents.assistant.tools.params import GenerateChartParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec
from spendwise.schemas.conversation import ChartPayload, ChartSeries, SideEffect
from spendwise.storage.financial_store import RecordFilter
from spendwise.tools.periods import month_bounds, parse_month

# Ranges longer than this are plotted per month instead of per day
DAILY_POINTS_LIMIT = 62

_DEFAULT_TITLES = {
    "spending_by_category": "Spending by category",
    "spending_over_time": "Spending over time",
    "budget_vs_actual": "Budget vs actual",
}


async def _spending_by_category(params, ctx, target, start, end):
    expenses = await ctx.store.list_expenses(
        ctx.user_id, RecordFilter(start_date=start, end_date=end, limit=None)
    )
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[expense.category] += converted(ctx, expense.amount, expense.currency, target)

    data = [
        {"category": category, "amount": money(total)}
        for category, total in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]
    return data, [ChartSeries(key="amount", label="Spent")]


async def _spending_over_time(params, ctx, target, start, end):
    expenses = await ctx.store.list_expenses(
        ctx.user_id,
        RecordFilter(start_date=start, end_date=end, sort_by="date", ascending=True, limit=None),
    )
    monthly = (end - start).days > DAILY_POINTS_LIMIT
    label = "month" if monthly else "date"

    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        key = expense.date.strftime("%Y-%m") if monthly else expense.date.isoformat()
        totals[key] += converted(ctx, expense.amount, expense.currency, target)

    data = [{label: key, "amount": money(total)} for key, total in sorted(totals.items())]
    return data, [ChartSeries(key="amount", label="Spent")]


async def _budget_vs_actual(params, ctx, target, start, end):
    start, end = month_bounds(parse_month(context_month(ctx)))
    budgets = await ctx.store.list_budgets(ctx.user_id)
    expenses = await ctx.store.list_expenses(
        ctx.user_id, RecordFilter(start_date=start, end_date=end, limit=None)
    )
    spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        spent[expense.category] += converted(ctx, expense.amount, expense.currency, target)

    data = [
        {
            "category": budget.category,
            "budget": money(converted(ctx, budget.allocated_amount, budget.currency, target)),
            "spent": money(spent[budget.category]),
        }
        for budget in budgets
    ]
    return data, [ChartSeries(key="budget", label="Budget"), ChartSeries(key="spent", label="Spent")]


_BUILDERS = {
    "spending_by_category": _spending_by_category,
    "spending_over_time": _spending_over_time,
    "budget_vs_actual": _budget_vs_actual,
}


async def generate_chart(params: GenerateChartParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    period, start, end = resolve_period(ctx, params.period)

    data, series = await _BUILDERS[params.data_source](params, ctx, target, start, end)
    chart = ChartPayload(
        type=params.chart_type,
        title=params.title or _DEFAULT_TITLES[params.data_source],
        currency=target,
        series=series,
        data=data,
    )

    return ToolOutput(
        payload={
            "chart_generated": True,
            "chart_type": chart.type,
            "title": chart.title,
            "data_source": params.data_source,
            "period": period,
            "points": len(data),
            "data": data,
            "display_currency": target,
        },
        side_effect=SideEffect(kind="chart", tool="generate_chart", data=chart.model_dump()),
    )


TOOLS = (
    ToolSpec(
        name="generate_chart",
        description=(
            "Render a chart of the user's spending (by category, over time, or budget vs "
            "actual). The chart is shown to the user next to your reply."
        ),
        params_model=GenerateChartParams,
        handler=generate_chart,
    ),
)
