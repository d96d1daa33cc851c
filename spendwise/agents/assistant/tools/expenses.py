"""
Expense tools: listing, search, spending summary, creation and deletion.

Every figure is converted into the call's target currency before it is
summed. Deletion is two-phase: an unconfirmed call returns a preview and
mutates nothing; a confirmed call re-derives the matching set with the same
selection and deletes exactly those records.
"""

from collections import defaultdict
from decimal import Decimal

from spendwise.agents.assistant.tools.common import (
    ZERO,
    converted,
    converted_total,
    money,
    percent,
    record_row,
    resolve_period,
    within_amounts,
)
from spendwise.agents.assistant.tools.params import (
    CreateExpenseParams,
    DeleteExpensesParams,
    GetExpensesParams,
    SearchTransactionsParams,
    SpendingSummaryParams,
)
from spendwise.agents.assistant.tools.registry import ToolContext, ToolOutput, ToolSpec
from spendwise.logging_config import get_logger
from spendwise.models import Expense
from spendwise.schemas.conversation import SideEffect
from spendwise.storage.financial_store import RecordFilter
from spendwise.tools.currency import format_amount
from spendwise.tools.periods import previous_period_dates

logger = get_logger(__name__)


# =============================================================================
# get_expenses
# =============================================================================


async def get_expenses(params: GetExpensesParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)

    start, end = params.start_date, params.end_date
    if params.period and start is None and end is None:
        _, start, end = resolve_period(ctx, params.period)

    # Amount filters and amount ordering work on converted values, so those
    # are applied here rather than in the store.
    by_amount = params.sort_by == "amount"
    needs_local = by_amount or params.min_amount is not None or params.max_amount is not None
    expenses = await ctx.store.list_expenses(
        ctx.user_id,
        RecordFilter(
            category=params.category,
            start_date=start,
            end_date=end,
            sort_by="date" if by_amount else params.sort_by,
            ascending=params.sort_order == "asc",
            limit=None if needs_local else params.limit,
        ),
    )

    if needs_local:
        expenses = [
            e
            for e in expenses
            if within_amounts(
                converted(ctx, e.amount, e.currency, target), params.min_amount, params.max_amount
            )
        ]
        if by_amount:
            expenses.sort(
                key=lambda e: converted(ctx, e.amount, e.currency, target),
                reverse=params.sort_order == "desc",
            )
        expenses = expenses[: params.limit]

    return ToolOutput(
        payload={
            "expenses": [record_row(ctx, e, target) for e in expenses],
            "count": len(expenses),
            "total": money(converted_total(ctx, expenses, target)),
            "currency": target,
            "display_currency": target,
        }
    )


# =============================================================================
# search_transactions
# =============================================================================


async def search_transactions(params: SearchTransactionsParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    text_filter = RecordFilter(text=params.query.strip(), limit=params.limit)

    expenses = []
    income = []
    if params.type != "income":
        expenses = await ctx.store.list_expenses(ctx.user_id, text_filter)
    if params.type != "expense":
        income = await ctx.store.list_income(ctx.user_id, text_filter)

    return ToolOutput(
        payload={
            "query": params.query,
            "results": {
                "expenses": [record_row(ctx, e, target) for e in expenses],
                "income": [record_row(ctx, i, target) for i in income],
            },
            "total_found": len(expenses) + len(income),
            "expense_total": money(converted_total(ctx, expenses, target)),
            "income_total": money(converted_total(ctx, income, target)),
            "display_currency": target,
        }
    )


# =============================================================================
# get_spending_summary
# =============================================================================


def _group(
    ctx: ToolContext, expenses: list[Expense], target: str, key
) -> dict[str, dict[str, float | int]]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        group = key(expense)
        totals[group] += converted(ctx, expense.amount, expense.currency, target)
        counts[group] += 1

    overall = sum(totals.values(), ZERO)
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return {
        group: {
            "total": money(total),
            "count": counts[group],
            "percentage": percent(total, overall),
        }
        for group, total in ordered
    }


async def get_spending_summary(params: SpendingSummaryParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    period, start, end = resolve_period(ctx, params.period)

    expenses = await ctx.store.list_expenses(
        ctx.user_id, RecordFilter(start_date=start, end_date=end, limit=None)
    )
    total = converted_total(ctx, expenses, target)

    summary: dict = {
        "period": period,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total": money(total),
        "count": len(expenses),
        "currency": target,
        "display_currency": target,
    }

    if params.group_by == "category":
        summary["by_category"] = _group(ctx, expenses, target, lambda e: e.category)
    elif params.group_by == "date":
        summary["by_date"] = _group(ctx, expenses, target, lambda e: e.date.isoformat())
    elif params.group_by == "month":
        summary["by_month"] = _group(ctx, expenses, target, lambda e: e.date.strftime("%Y-%m"))

    if params.include_comparison:
        previous = previous_period_dates(period, ctx.today)
        if previous is not None:
            prev_start, prev_end = previous
            prev_expenses = await ctx.store.list_expenses(
                ctx.user_id, RecordFilter(start_date=prev_start, end_date=prev_end, limit=None)
            )
            prev_total = converted_total(ctx, prev_expenses, target)
            change = total - prev_total
            summary["comparison"] = {
                "previous_start_date": prev_start.isoformat(),
                "previous_end_date": prev_end.isoformat(),
                "previous_total": money(prev_total),
                "change": money(change),
                "change_percent": percent(change, prev_total),
            }

    return ToolOutput(payload=summary)


# =============================================================================
# create_expense
# =============================================================================


async def create_expense(params: CreateExpenseParams, ctx: ToolContext) -> ToolOutput:
    currency = params.currency or ctx.display_currency
    expense = await ctx.store.add_expense(
        ctx.user_id,
        amount=Decimal(str(params.amount)),
        currency=currency,
        description=params.description.strip(),
        category=params.category,
        expense_date=params.date or ctx.today,
    )

    indexed = False
    if ctx.semantic_search is not None:
        indexed = await ctx.semantic_search.index_expense(expense, deadline=ctx.deadline)

    row = record_row(ctx, expense, ctx.display_currency)
    return ToolOutput(
        payload={
            "success": True,
            "expense": row,
            "indexed": indexed,
            "message": (
                f"Added expense: {expense.description} - "
                f"{format_amount(expense.amount, expense.currency)}"
            ),
        },
        side_effect=SideEffect(kind="record_created", tool="create_expense", data=row),
    )


# =============================================================================
# delete_expenses
# =============================================================================


async def _select_expenses(
    params: DeleteExpensesParams, ctx: ToolContext, target: str
) -> list[Expense]:
    """The exact set a delete call refers to; used by preview and confirm."""
    expenses = await ctx.store.list_expenses(
        ctx.user_id,
        RecordFilter(
            category=params.category,
            start_date=params.start_date,
            end_date=params.end_date,
            text=params.description_contains,
            limit=None,
        ),
    )
    return [
        e
        for e in expenses
        if within_amounts(
            converted(ctx, e.amount, e.currency, target), params.min_amount, params.max_amount
        )
    ]


async def delete_expenses(params: DeleteExpensesParams, ctx: ToolContext) -> ToolOutput:
    target = ctx.target_currency(params.display_currency)
    selected = await _select_expenses(params, ctx, target)
    rows = [record_row(ctx, e, target) for e in selected]
    total = money(converted_total(ctx, selected, target))

    if not params.confirm:
        logger.info(
            "destructive_tool_preview",
            tool="delete_expenses",
            user_id=ctx.user_id,
            count=len(selected),
        )
        return ToolOutput(
            payload={
                "preview": True,
                "confirm_required": True,
                "count": len(selected),
                "total": total,
                "expenses": rows,
                "display_currency": target,
                "message": (
                    f"{len(selected)} expenses match. Nothing was deleted; "
                    "call again with confirm=true once the user agrees."
                ),
            }
        )

    ids = [e.id for e in selected]
    deleted = await ctx.store.delete_expenses(ctx.user_id, ids)
    return ToolOutput(
        payload={
            "preview": False,
            "deleted": deleted,
            "count": len(selected),
            "total": total,
            "expenses": rows,
            "display_currency": target,
            "message": f"Deleted {deleted} expenses",
        },
        side_effect=SideEffect(
            kind="records_deleted",
            tool="delete_expenses",
            data={"ids": [str(i) for i in ids], "count": deleted},
        ),
    )


TOOLS = (
    ToolSpec(
        name="get_expenses",
        description=(
            "Retrieve user expenses with optional filters for category, date range, period "
            "or amount. Can return data in a specific currency."
        ),
        params_model=GetExpensesParams,
        handler=get_expenses,
    ),
    ToolSpec(
        name="search_transactions",
        description=(
            "Search expenses and income by description text. "
            "Can return data in a specific currency."
        ),
        params_model=SearchTransactionsParams,
        handler=search_transactions,
    ),
    ToolSpec(
        name="get_spending_summary",
        description=(
            "Get spending analysis with a breakdown by category and a comparison with the "
            "previous period. Use group_by 'category' and include_comparison true for "
            "complete insights. Can return data in a specific currency."
        ),
        params_model=SpendingSummaryParams,
        handler=get_spending_summary,
    ),
    ToolSpec(
        name="create_expense",
        description="Add a new expense to track spending",
        params_model=CreateExpenseParams,
        handler=create_expense,
    ),
    ToolSpec(
        name="delete_expenses",
        description=(
            "Delete expenses matching the given filters. Without confirm=true this only "
            "previews the matching expenses; show the preview to the user and ask before "
            "calling again with confirm=true."
        ),
        params_model=DeleteExpensesParams,
        handler=delete_expenses,
        destructive=True,
    ),
)
