"""
Unit tests for SqlFinancialStore.

Tests:
- Per-user isolation of every read
- Expense filters, ordering and deletion by id set
- Budget and monthly-stat upserts
- Subscriptions, holdings and goals
- Embedding storage and nearest-neighbour search
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.schema import CreateTable

from spendwise.models import ExpenseEmbedding
from spendwise.storage.financial_store import (
    RecordFilter,
    cosine_similarity,
    distance_ranked_query,
)


class TestExpenses:
    """Tests for expense reads and writes."""

    @pytest.mark.asyncio
    async def test_user_isolation(self, seeded_store):
        mine = await seeded_store.list_expenses("user-1", RecordFilter(limit=None))
        theirs = await seeded_store.list_expenses("user-2", RecordFilter(limit=None))

        assert len(mine) == 5
        assert [e.amount for e in theirs] == [Decimal("999")]

    @pytest.mark.asyncio
    async def test_date_range_and_default_ordering(self, seeded_store):
        expenses = await seeded_store.list_expenses(
            "user-1",
            RecordFilter(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31)),
        )

        assert [e.description for e in expenses] == [
            "Lunch",
            "Coffee",
            "Weekly groceries",
            "Taxi to airport",
        ]

    @pytest.mark.asyncio
    async def test_text_filter_is_case_insensitive(self, seeded_store):
        expenses = await seeded_store.list_expenses("user-1", RecordFilter(text="GROCER"))
        assert [e.description for e in expenses] == ["Weekly groceries"]

    @pytest.mark.asyncio
    async def test_category_and_native_amount_filters(self, seeded_store):
        expenses = await seeded_store.list_expenses(
            "user-1",
            RecordFilter(category="Food & Dining", min_amount=Decimal("10")),
        )
        assert sorted(e.description for e in expenses) == ["Dinner party", "Lunch"]

    @pytest.mark.asyncio
    async def test_sort_by_amount_ascending(self, seeded_store):
        expenses = await seeded_store.list_expenses(
            "user-1", RecordFilter(sort_by="amount", ascending=True, limit=2)
        )
        assert [e.amount for e in expenses] == [Decimal("5"), Decimal("20")]

    @pytest.mark.asyncio
    async def test_count(self, seeded_store):
        assert await seeded_store.count_expenses("user-1") == 5
        assert await seeded_store.count_expenses("user-1", RecordFilter(category="Groceries")) == 1

    @pytest.mark.asyncio
    async def test_delete_only_owned_ids(self, seeded_store):
        [theirs] = await seeded_store.list_expenses("user-2", RecordFilter())
        [coffee] = await seeded_store.list_expenses("user-1", RecordFilter(text="Coffee"))

        deleted = await seeded_store.delete_expenses("user-1", [theirs.id, coffee.id, uuid.uuid4()])

        assert deleted == 1
        assert await seeded_store.count_expenses("user-1") == 4
        assert await seeded_store.count_expenses("user-2") == 1

    @pytest.mark.asyncio
    async def test_delete_nothing(self, seeded_store):
        assert await seeded_store.delete_expenses("user-1", []) == 0


class TestIncomeAndBudgets:
    """Tests for income, budgets and user settings."""

    @pytest.mark.asyncio
    async def test_income_source_filter(self, seeded_store):
        income = await seeded_store.list_income("user-1", RecordFilter(), source="Freelance")
        assert [i.description for i in income] == ["Logo design client"]

    @pytest.mark.asyncio
    async def test_upsert_budget(self, seeded_store):
        budget, created = await seeded_store.upsert_budget(
            "user-1", "Groceries", Decimal("300"), "USD"
        )
        assert created is True

        budget, created = await seeded_store.upsert_budget(
            "user-1", "Groceries", Decimal("250"), "MYR"
        )
        assert created is False

        [stored] = await seeded_store.list_budgets("user-1", category="Groceries")
        assert stored.id == budget.id
        assert stored.allocated_amount == Decimal("250")
        assert stored.currency == "MYR"

    @pytest.mark.asyncio
    async def test_budgets_sorted_by_category(self, seeded_store):
        budgets = await seeded_store.list_budgets("user-1")
        assert [b.category for b in budgets] == ["Food & Dining", "Transportation"]

    @pytest.mark.asyncio
    async def test_user_currency(self, store):
        assert await store.get_user_currency("user-9") is None

        await store.set_user_currency("user-9", "MYR")
        await store.set_user_currency("user-9", "SGD")

        assert await store.get_user_currency("user-9") == "SGD"


class TestOtherRecords:
    """Tests for subscriptions, holdings and goals."""

    @pytest.mark.asyncio
    async def test_active_subscriptions_by_next_billing(self, seeded_store):
        subscriptions = await seeded_store.list_subscriptions("user-1", is_active=True)
        assert [s.name for s in subscriptions] == ["Netflix", "Cloud storage"]

    @pytest.mark.asyncio
    async def test_subscriptions_billing_window(self, seeded_store):
        subscriptions = await seeded_store.list_subscriptions(
            "user-1", billing_from=date(2024, 3, 15), billing_to=date(2024, 3, 31)
        )
        assert [s.name for s in subscriptions] == ["Netflix"]

    @pytest.mark.asyncio
    async def test_holdings_symbol_is_upper_cased(self, seeded_store):
        [holding] = await seeded_store.list_holdings("user-1", symbol="aapl")

        assert holding.symbol == "AAPL"
        assert holding.effective_price == Decimal("180")

    @pytest.mark.asyncio
    async def test_holding_without_quote_uses_average_price(self, seeded_store):
        [holding] = await seeded_store.list_holdings("user-1", asset_class="crypto")
        assert holding.effective_price == Decimal("40000")

    @pytest.mark.asyncio
    async def test_goals(self, seeded_store):
        open_goals = await seeded_store.list_goals("user-1", include_completed=False)
        all_goals = await seeded_store.list_goals("user-1")

        assert [g.title for g in open_goals] == ["Emergency fund"]
        assert len(all_goals) == 2


class TestEmbeddings:
    """Tests for embedding storage and nearest-neighbour search."""

    def test_cosine_similarity(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0], [1.0, 0.0]) == 0.0
        assert cosine_similarity([], []) == 0.0

    @pytest.mark.asyncio
    async def test_nearest_expenses(self, seeded_store):
        expenses = {
            e.description: e
            for e in await seeded_store.list_expenses("user-1", RecordFilter(limit=None))
        }
        await seeded_store.store_expense_embedding(
            expenses["Coffee"].id, "user-1", [1.0, 0.0], model="test"
        )
        await seeded_store.store_expense_embedding(
            expenses["Lunch"].id, "user-1", [0.8, 0.6], model="test"
        )
        await seeded_store.store_expense_embedding(
            expenses["Weekly groceries"].id, "user-1", [0.0, 1.0], model="test"
        )

        rows = await seeded_store.nearest_expenses("user-1", [1.0, 0.0], threshold=0.5, limit=5)

        assert [(e.description, round(score, 2)) for e, score in rows] == [
            ("Coffee", 1.0),
            ("Lunch", 0.8),
        ]

    def test_postgres_ranks_by_vector_distance(self):
        query = distance_ranked_query(
            "user-1", [1.0, 0.0], threshold=0.75, limit=3, category="Food & Dining"
        )
        compiled = query.compile(dialect=postgresql.dialect())
        sql = str(compiled)

        assert "<=>" in sql
        assert "ORDER BY" in sql
        assert "LIMIT" in sql
        assert "expenses.category" in sql
        assert {"user-1", 0.25, 3} <= set(compiled.params.values())

    def test_vector_column_type_per_dialect(self):
        table = ExpenseEmbedding.__table__

        assert "VECTOR" in str(CreateTable(table).compile(dialect=postgresql.dialect()))
        assert "VECTOR" not in str(CreateTable(table).compile(dialect=sqlite.dialect()))

    @pytest.mark.asyncio
    async def test_embedding_replaced_and_removed_with_expense(self, seeded_store):
        [coffee] = await seeded_store.list_expenses("user-1", RecordFilter(text="Coffee"))
        await seeded_store.store_expense_embedding(coffee.id, "user-1", [0.0, 1.0], model="a")
        await seeded_store.store_expense_embedding(coffee.id, "user-1", [1.0, 0.0], model="b")

        [(match, _)] = await seeded_store.nearest_expenses(
            "user-1", [1.0, 0.0], threshold=0.9, limit=5
        )
        assert match.id == coffee.id

        await seeded_store.delete_expenses("user-1", [coffee.id])
        assert await seeded_store.nearest_expenses("user-1", [1.0, 0.0], 0.0, 5) == []
