"""
Budget tools.

Budgets are monthly allocations per category. The month they are evaluated
against comes from the call's ``month`` argument, else from the
conversation's context period.
"""

from collections import defaultdict
from decimal import Decimal

from spendwise.agents.assistant.tools.common import (
    ZERO,
    context_month,
    converted,
    money,
    percent,
)
from spendwise.agents.assistant.tools.params import CreateBudgetParams, GetBudgetParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec
from spendwise.schemas.conversation import SideEffect
from spendwise.storage.financial_store import RecordFilter
from spendwise.tools.currency import format_amount
from spendwise.tools.periods import month_bounds, parse_month

# Share of the allocation at which a budget is flagged
WARNING_THRESHOLD = 80


def _status(percent_used: float) -> str:
    if percent_used > 100:
        return "over"
    if percent_used >= WARNING_THRESHOLD:
        return "warning"
    return "ok"


async def get_budget(params: GetBudgetParams, ctx: ToolContext) -> ToolOutput:
    """
    Budgets with allocated, spent and remaining amounts for one month.

    Each expense is converted straight into the target currency, so no
    figure is converted twice.
    """
    target = ctx.target_currency(params.display_currency)
    budgets = await ctx.store.list_budgets(ctx.user_id, category=params.category)

    if not params.include_spent:
        return ToolOutput(
            payload={
                "budgets": [
                    {
                        "category": b.category,
                        "name": b.name,
                        "native_currency": b.currency,
                        "native_allocated": money(b.allocated_amount),
                        "allocated_amount": money(
                            converted(ctx, b.allocated_amount, b.currency, target)
                        ),
                        "currency": target,
                    }
                    for b in budgets
                ],
                "display_currency": target,
            }
        )

    month = context_month(ctx, params.month)
    start, end = month_bounds(parse_month(month))

    spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    if budgets:
        expenses = await ctx.store.list_expenses(
            ctx.user_id,
            RecordFilter(category=params.category, start_date=start, end_date=end, limit=None),
        )
        for expense in expenses:
            spent[expense.category] += converted(ctx, expense.amount, expense.currency, target)
            counts[expense.category] += 1

    rows = []
    for budget in budgets:
        allocated = converted(ctx, budget.allocated_amount, budget.currency, target)
        used = spent[budget.category]
        percent_used = percent(used, allocated, digits=0)
        rows.append(
            {
                "category": budget.category,
                "name": budget.name,
                "native_currency": budget.currency,
                "native_allocated": money(budget.allocated_amount),
                "allocated_amount": money(allocated),
                "spent": money(used),
                "remaining": money(allocated - used),
                "percent_used": percent_used,
                "status": _status(percent_used),
                "expense_count": counts[budget.category],
                "currency": target,
                "month": month,
            }
        )

    return ToolOutput(
        payload={
            "budgets": rows,
            "month": month,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "display_currency": target,
            "note": f"Spent amounts calculated for {month}",
        }
    )


async def create_budget(params: CreateBudgetParams, ctx: ToolContext) -> ToolOutput:
    currency = params.currency or ctx.display_currency
    amount = Decimal(str(params.amount))
    budget, created = await ctx.store.upsert_budget(
        ctx.user_id, category=params.category, amount=amount, currency=currency
    )

    data = {
        "category": budget.category,
        "allocated_amount": money(budget.allocated_amount),
        "currency": budget.currency,
        "created": created,
    }
    verb = "Created" if created else "Updated"
    return ToolOutput(
        payload={
            "success": True,
            "budget": data,
            "message": f"{verb} budget: {budget.category} - {format_amount(amount, currency)}",
        },
        side_effect=SideEffect(kind="budget_saved", tool="create_budget", data=data),
    )


TOOLS = (
    ToolSpec(
        name="get_budget",
        description=(
            "Get budget information for one category or all budgets, with the amount spent "
            "in a month. Always pass the month (YYYY-MM) the user is asking about. "
            "Can return data in a specific currency."
        ),
        params_model=GetBudgetParams,
        handler=get_budget,
    ),
    ToolSpec(
        name="create_budget",
        description="Create or update the monthly budget for a category",
        params_model=CreateBudgetParams,
        handler=create_budget,
    ),
)
