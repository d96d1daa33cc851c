"""Income tool."""

from spendwise.agents.assistant.tools.common import converted_total, money, record_row
from spendwise.agents.assistant.tools.params import GetIncomeParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec
from spendwise.storage.financial_store import RecordFilter


async def get_income(params: GetIncomeParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    income = await ctx.store.list_income(
        ctx.user_id,
        RecordFilter(start_date=params.start_date, end_date=params.end_date, limit=params.limit),
        source=params.source,
    )
    return ToolOutput(
        payload={
            "income": [record_row(ctx, i, target) for i in income],
            "count": len(income),
            "total": money(converted_total(ctx, income, target)),
            "currency": target,
            "display_currency": target,
        }
    )


TOOLS = (
    ToolSpec(
        name="get_income",
        description=(
            "Retrieve user income records with optional source and date filters. "
            "Can return data in a specific currency."
        ),
        params_model=GetIncomeParams,
        handler=get_income,
    ),
)
