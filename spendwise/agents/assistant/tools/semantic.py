"""Semantic search tool over stored expense embeddings."""

from spendwise.agents.assistant.tools.common import converted, converted_total, money
from spendwise.agents.assistant.tools.params import SemanticSearchParams
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec


async def semantic_search(params: SemanticSearchParams, ctx: ToolContext) -> ToolOutput:
    if ctx.semantic_search is None:
        raise RuntimeError("semantic search is not configured")

    target = ctx.target_currency(params.display_currency)
    result = await ctx.semantic_search.search(
        ctx.user_id,
        params.query,
        category=params.category,
        start_date=params.start_date,
        end_date=params.end_date,
        limit=params.limit,
        deadline=ctx.deadline,
    )

    payload = result.to_dict()
    for match, row in zip(result.matches, payload["matches"]):
        amount = converted(ctx, match.expense.amount, match.expense.currency, target)
        row["converted_amount"] = money(amount)
        row["display_currency"] = target
    expenses = [match.expense for match in result.matches]
    payload["total"] = money(converted_total(ctx, expenses, target))
    payload["display_currency"] = target
    return ToolOutput(payload=payload)


TOOLS = (
    ToolSpec(
        name="semantic_search",
        description=(
            "Find expenses by meaning rather than exact words, e.g. 'that fancy dinner' or "
            "'ride to the airport'. Use it when search_transactions finds nothing."
        ),
        params_model=SemanticSearchParams,
        handler=semantic_search,
    ),
)
