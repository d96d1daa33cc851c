"""Savings goal tool."""

from spendwise.agents.assistant.tools.common import ZERO, converted, money, percent
from spendwise.agents.assistant.tools.params import GetGoalsParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec


async def get_goals(params: GetGoalsParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    goals = await ctx.store.list_goals(ctx.user_id, include_completed=params.include_completed)

    rows = []
    total_target = ZERO
    total_saved = ZERO
    for goal in goals:
        target_amount = converted(ctx, goal.target_amount, goal.currency, target)
        saved = converted(ctx, goal.current_amount, goal.currency, target)
        total_target += target_amount
        total_saved += saved
        rows.append(
            {
                "id": str(goal.id),
                "title": goal.title,
                "category": goal.category,
                "native_currency": goal.currency,
                "target_amount": money(target_amount),
                "current_amount": money(saved),
                "remaining": money(max(target_amount - saved, ZERO)),
                "progress_percent": percent(saved, target_amount),
                "target_date": goal.target_date.isoformat() if goal.target_date else None,
                "days_left": (goal.target_date - ctx.today).days if goal.target_date else None,
                "is_completed": goal.is_completed,
                "display_currency": target,
            }
        )

    return ToolOutput(
        payload={
            "goals": rows,
            "count": len(rows),
            "total_target": money(total_target),
            "total_saved": money(total_saved),
            "currency": target,
            "display_currency": target,
        }
    )


TOOLS = (
    ToolSpec(
        name="get_goals",
        description=(
            "Get savings goals with progress towards each target. "
            "Can return data in a specific currency."
        ),
        params_model=GetGoalsParams,
        handler=get_goals,
    ),
)
