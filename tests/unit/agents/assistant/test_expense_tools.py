"""
Unit tests for the expense tools.

Tests:
- Listing with currency conversion, filters and ordering
- Text search across expenses and income
- Spending summary with period comparison
- Expense creation
- Two-phase deletion (preview, then confirm)
"""

import uuid
from datetime import date

import pytest

from conftest import add_expense
from spendwise.agents.assistant.tools.expenses import (
    create_expense,
    delete_expenses,
    get_expenses,
    get_spending_summary,
    search_transactions,
)
from spendwise.agents.assistant.tools.params import (
    CreateExpenseParams,
    DeleteExpensesParams,
    GetExpensesParams,
    SearchTransactionsParams,
    SpendingSummaryParams,
)
from spendwise.storage.financial_store import RecordFilter

# March 2024 for user-1, in USD: 30 MYR + 5 USD + 40 USD + 20 SGD
MARCH_TOTAL_USD = 66.64


# ─────────────────────────────────────────────────────────────────────────────
# get_expenses
# ─────────────────────────────────────────────────────────────────────────────


class TestGetExpenses:
    """Tests for get_expenses."""

    @pytest.mark.asyncio
    async def test_all_expenses_converted(self, seeded_store, tool_context):
        output = await get_expenses(GetExpensesParams(), tool_context)
        payload = output.payload

        assert payload["count"] == 5
        assert payload["total"] == 166.64
        assert payload["display_currency"] == "USD"
        assert [e["description"] for e in payload["expenses"]][0] == "Lunch"
        assert output.side_effect is None

    @pytest.mark.asyncio
    async def test_row_keeps_native_amount(self, seeded_store, tool_context):
        output = await get_expenses(GetExpensesParams(period="this_month"), tool_context)
        lunch = output.payload["expenses"][0]

        assert lunch["amount"] == 30.0
        assert lunch["currency"] == "MYR"
        assert lunch["converted_amount"] == 6.71
        assert lunch["category"] == "Food & Dining"

    @pytest.mark.asyncio
    async def test_period(self, seeded_store, tool_context):
        output = await get_expenses(GetExpensesParams(period="this_month"), tool_context)

        assert output.payload["count"] == 4
        assert output.payload["total"] == MARCH_TOTAL_USD

    @pytest.mark.asyncio
    async def test_display_currency_override(self, seeded_store, tool_context):
        params = GetExpensesParams(category="Food & Dining", display_currency="MYR")
        output = await get_expenses(params, tool_context)

        # 30 MYR + 5 USD (22.35 MYR) + 100 USD (447 MYR)
        assert output.payload["total"] == 499.35
        assert output.payload["currency"] == "MYR"

    @pytest.mark.asyncio
    async def test_min_amount_uses_converted_values(self, seeded_store, tool_context):
        """20 SGD (14.93 USD) passes a 10 USD minimum; 30 MYR (6.71 USD) does not."""
        output = await get_expenses(GetExpensesParams(min_amount=10), tool_context)

        assert sorted(e["description"] for e in output.payload["expenses"]) == [
            "Dinner party",
            "Taxi to airport",
            "Weekly groceries",
        ]

    @pytest.mark.asyncio
    async def test_sort_by_converted_amount(self, seeded_store, tool_context):
        params = GetExpensesParams(sort_by="amount", sort_order="asc", limit=2)
        output = await get_expenses(params, tool_context)

        assert [e["description"] for e in output.payload["expenses"]] == ["Coffee", "Lunch"]

    @pytest.mark.asyncio
    async def test_explicit_dates(self, seeded_store, tool_context):
        params = GetExpensesParams(start_date=date(2024, 2, 1), end_date=date(2024, 2, 29))
        output = await get_expenses(params, tool_context)

        assert [e["description"] for e in output.payload["expenses"]] == ["Dinner party"]


# ─────────────────────────────────────────────────────────────────────────────
# search_transactions
# ─────────────────────────────────────────────────────────────────────────────


class TestSearchTransactions:
    """Tests for search_transactions."""

    @pytest.mark.asyncio
    async def test_searches_income_and_expenses(self, seeded_store, tool_context):
        output = await search_transactions(SearchTransactionsParams(query="design"), tool_context)
        payload = output.payload

        assert payload["total_found"] == 1
        assert payload["results"]["expenses"] == []
        assert payload["results"]["income"][0]["source"] == "Freelance"
        assert payload["income_total"] == 100.0

    @pytest.mark.asyncio
    async def test_type_filter(self, seeded_store, tool_context):
        params = SearchTransactionsParams(query="lunch", type="income")
        output = await search_transactions(params, tool_context)

        assert output.payload["total_found"] == 0

    @pytest.mark.asyncio
    async def test_never_returns_other_users(self, seeded_store, tool_context):
        output = await search_transactions(SearchTransactionsParams(query="lunch"), tool_context)

        assert output.payload["total_found"] == 1
        assert output.payload["expense_total"] == 6.71


# ─────────────────────────────────────────────────────────────────────────────
# get_spending_summary
# ─────────────────────────────────────────────────────────────────────────────


class TestSpendingSummary:
    """Tests for get_spending_summary."""

    @pytest.mark.asyncio
    async def test_defaults_to_context_month(self, seeded_store, tool_context):
        output = await get_spending_summary(SpendingSummaryParams(), tool_context)
        payload = output.payload

        assert payload["period"] == "2024-03"
        assert payload["start_date"] == "2024-03-01"
        assert payload["end_date"] == "2024-03-31"
        assert payload["total"] == MARCH_TOTAL_USD
        assert payload["count"] == 4

    @pytest.mark.asyncio
    async def test_by_category_sorted_with_percentages(self, seeded_store, tool_context):
        output = await get_spending_summary(SpendingSummaryParams(), tool_context)
        by_category = output.payload["by_category"]

        assert list(by_category) == ["Groceries", "Transportation", "Food & Dining"]
        assert by_category["Groceries"] == {"total": 40.0, "count": 1, "percentage": 60.0}
        assert by_category["Food & Dining"]["total"] == 11.71
        assert by_category["Food & Dining"]["count"] == 2

    @pytest.mark.asyncio
    async def test_comparison_with_previous_month(self, seeded_store, tool_context):
        output = await get_spending_summary(SpendingSummaryParams(), tool_context)
        comparison = output.payload["comparison"]

        assert comparison["previous_start_date"] == "2024-02-01"
        assert comparison["previous_end_date"] == "2024-02-29"
        assert comparison["previous_total"] == 100.0
        assert comparison["change"] == -33.36
        assert comparison["change_percent"] == -33.4

    @pytest.mark.asyncio
    async def test_all_time_has_no_comparison(self, seeded_store, tool_context):
        params = SpendingSummaryParams(period="all_time", group_by="month")
        output = await get_spending_summary(params, tool_context)

        assert "comparison" not in output.payload
        assert set(output.payload["by_month"]) == {"2024-03", "2024-02"}
        assert output.payload["by_month"]["2024-02"]["total"] == 100.0

    @pytest.mark.asyncio
    async def test_group_by_date(self, seeded_store, tool_context):
        params = SpendingSummaryParams(group_by="date", include_comparison=False)
        output = await get_spending_summary(params, tool_context)

        assert list(output.payload["by_date"])[0] == "2024-03-10"
        assert "comparison" not in output.payload


# ─────────────────────────────────────────────────────────────────────────────
# create_expense
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateExpense:
    """Tests for create_expense."""

    @pytest.mark.asyncio
    async def test_defaults_to_today_and_user_currency(self, store, tool_context):
        params = CreateExpenseParams(amount=12.5, description=" Paperback ", category="shopping")
        output = await create_expense(params, tool_context)

        expense = output.payload["expense"]
        assert output.payload["success"] is True
        assert output.payload["indexed"] is False
        assert expense["date"] == "2024-03-15"
        assert expense["currency"] == "USD"
        assert expense["category"] == "Shopping"
        assert expense["description"] == "Paperback"
        assert output.payload["message"] == "Added expense: Paperback - $ 12.50"

        assert output.side_effect.kind == "record_created"
        assert output.side_effect.data["id"] == expense["id"]
        assert await store.count_expenses("user-1") == 1

    @pytest.mark.asyncio
    async def test_explicit_currency_and_date(self, store, tool_context):
        params = CreateExpenseParams(
            amount=30, description="Lunch", category="Food & Dining", currency="RM", date="2024-03-01"
        )
        output = await create_expense(params, tool_context)

        expense = output.payload["expense"]
        assert expense["currency"] == "MYR"
        assert expense["date"] == "2024-03-01"
        assert expense["converted_amount"] == 6.71


# ─────────────────────────────────────────────────────────────────────────────
# delete_expenses
# ─────────────────────────────────────────────────────────────────────────────


class TestDeleteExpenses:
    """Tests for two-phase deletion."""

    @pytest.mark.asyncio
    async def test_preview_deletes_nothing(self, seeded_store, tool_context):
        params = DeleteExpensesParams(category="Food & Dining", start_date=date(2024, 3, 1))
        output = await delete_expenses(params, tool_context)

        assert output.payload["preview"] is True
        assert output.payload["confirm_required"] is True
        assert output.payload["count"] == 2
        assert output.payload["total"] == 11.71
        assert output.side_effect is None
        assert await seeded_store.count_expenses("user-1") == 5

    @pytest.mark.asyncio
    async def test_confirm_deletes_exactly_the_previewed_set(self, seeded_store, tool_context):
        selection = {"category": "Food & Dining", "start_date": date(2024, 3, 1)}
        preview = await delete_expenses(DeleteExpensesParams(**selection), tool_context)
        confirmed = await delete_expenses(
            DeleteExpensesParams(**selection, confirm=True), tool_context
        )

        previewed_ids = {e["id"] for e in preview.payload["expenses"]}
        assert confirmed.payload["deleted"] == 2
        assert set(confirmed.side_effect.data["ids"]) == previewed_ids
        assert confirmed.side_effect.kind == "records_deleted"

        remaining = await seeded_store.list_expenses("user-1", RecordFilter(limit=None))
        assert sorted(e.description for e in remaining) == [
            "Dinner party",
            "Taxi to airport",
            "Weekly groceries",
        ]
        # Other users' matching records are untouched
        assert await seeded_store.count_expenses("user-2") == 1

    @pytest.mark.asyncio
    async def test_confirm_includes_records_added_after_preview(self, seeded_store, tool_context):
        selection = {"category": "Food & Dining", "start_date": date(2024, 3, 1)}
        preview = await delete_expenses(DeleteExpensesParams(**selection), tool_context)
        late = await add_expense(
            seeded_store, "8", "USD", "Bagel", "Food & Dining", date(2024, 3, 15)
        )

        confirmed = await delete_expenses(
            DeleteExpensesParams(**selection, confirm=True), tool_context
        )

        assert preview.payload["count"] == 2
        assert confirmed.payload["deleted"] == 3
        assert str(late.id) in confirmed.side_effect.data["ids"]

    @pytest.mark.asyncio
    async def test_confirm_skips_records_removed_after_preview(self, seeded_store, tool_context):
        selection = {"category": "Food & Dining", "start_date": date(2024, 3, 1)}
        preview = await delete_expenses(DeleteExpensesParams(**selection), tool_context)
        [gone, kept] = sorted(preview.payload["expenses"], key=lambda e: e["description"])
        await seeded_store.delete_expenses("user-1", [uuid.UUID(gone["id"])])

        confirmed = await delete_expenses(
            DeleteExpensesParams(**selection, confirm=True), tool_context
        )

        assert confirmed.payload["deleted"] == 1
        assert confirmed.side_effect.data["ids"] == [kept["id"]]

    @pytest.mark.asyncio
    async def test_amount_bounds_use_converted_values(self, seeded_store, tool_context):
        params = DeleteExpensesParams(max_amount=10, confirm=True)
        output = await delete_expenses(params, tool_context)

        assert sorted(e["description"] for e in output.payload["expenses"]) == ["Coffee", "Lunch"]
        assert output.payload["deleted"] == 2

    @pytest.mark.asyncio
    async def test_description_filter(self, seeded_store, tool_context):
        params = DeleteExpensesParams(description_contains="taxi")
        output = await delete_expenses(params, tool_context)

        assert [e["description"] for e in output.payload["expenses"]] == ["Taxi to airport"]

    def test_selection_required(self):
        with pytest.raises(ValueError):
            DeleteExpensesParams(confirm=True)
