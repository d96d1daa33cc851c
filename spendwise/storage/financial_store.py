"""
Financial record store.

``FinancialStore`` is the contract the tools and services depend on;
``SqlFinancialStore`` implements it over SQLAlchemy async sessions. Every
operation opens its own session, so concurrent tool calls never share one.
A single insert, upsert or delete-by-id-set is atomic; nothing here spans
more than one operation.
"""

import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from pgvector.sqlalchemy import Vector
from sqlalchemy import Select, delete, func, select, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from spendwise.logging_config import get_logger
from spendwise.models import (
    Budget,
    Expense,
    ExpenseEmbedding,
    Goal,
    Holding,
    Income,
    MonthlyStat,
    Subscription,
    UserSettings,
)

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 50

# Columns the caller may order by
_EXPENSE_SORT_COLUMNS = {
    "date": Expense.date,
    "amount": Expense.amount,
    "category": Expense.category,
    "created_at": Expense.created_at,
}
_INCOME_SORT_COLUMNS = {
    "date": Income.date,
    "amount": Income.amount,
    "source": Income.source,
}


@dataclass(frozen=True)
class RecordFilter:
    """
    Filters shared by expense and income reads.

    ``min_amount``/``max_amount`` compare against the stored (native) amount.
    ``text`` is a case-insensitive substring match on the description.
    """

    category: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    text: str | None = None
    sort_by: str = "date"
    ascending: bool = False
    limit: int | None = DEFAULT_LIST_LIMIT


class FinancialStore(Protocol):
    """Data-store operations used by the tools and services."""

    async def get_user_currency(self, user_id: str) -> str | None: ...

    async def list_expenses(self, user_id: str, filters: RecordFilter) -> list[Expense]: ...

    async def count_expenses(self, user_id: str, filters: RecordFilter | None = None) -> int: ...

    async def add_expense(
        self,
        user_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        category: str,
        expense_date: date,
    ) -> Expense: ...

    async def delete_expenses(self, user_id: str, expense_ids: Sequence[uuid.UUID]) -> int: ...

    async def list_income(
        self, user_id: str, filters: RecordFilter, source: str | None = None
    ) -> list[Income]: ...

    async def add_income(
        self,
        user_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        source: str,
        income_date: date,
    ) -> Income: ...

    async def list_budgets(self, user_id: str, category: str | None = None) -> list[Budget]: ...

    async def upsert_budget(
        self, user_id: str, category: str, amount: Decimal, currency: str
    ) -> tuple[Budget, bool]: ...

    async def list_subscriptions(
        self,
        user_id: str,
        is_active: bool | None = None,
        billing_from: date | None = None,
        billing_to: date | None = None,
    ) -> list[Subscription]: ...

    async def list_holdings(
        self, user_id: str, symbol: str | None = None, asset_class: str | None = None
    ) -> list[Holding]: ...

    async def list_goals(self, user_id: str, include_completed: bool = True) -> list[Goal]: ...

    async def upsert_monthly_stat(
        self,
        user_id: str,
        month: date,
        currency: str,
        total_spending: Decimal,
        total_income: Decimal,
        total_portfolio_value: Decimal,
    ) -> MonthlyStat: ...

    async def store_expense_embedding(
        self, expense_id: uuid.UUID, user_id: str, vector: Sequence[float], model: str
    ) -> None: ...

    async def nearest_expenses(
        self,
        user_id: str,
        vector: Sequence[float],
        threshold: float,
        limit: int,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[tuple[Expense, float]]: ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity clamped to [-1, 1]; mismatched or empty vectors score 0."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a)) or 1.0
    norm_b = math.sqrt(sum(y * y for y in b)) or 1.0
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


def _embedding_filters(
    query: Select,
    user_id: str,
    category: str | None,
    start_date: date | None,
    end_date: date | None,
) -> Select:
    query = query.join(ExpenseEmbedding, ExpenseEmbedding.expense_id == Expense.id).where(
        Expense.user_id == user_id
    )
    if category:
        query = query.where(Expense.category == category)
    if start_date:
        query = query.where(Expense.date >= start_date)
    if end_date:
        query = query.where(Expense.date <= end_date)
    return query


def distance_ranked_query(
    user_id: str,
    vector: Sequence[float],
    threshold: float,
    limit: int,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Select:
    """pgvector query for the nearest expenses by cosine distance (PostgreSQL only)."""
    distance = type_coerce(ExpenseEmbedding.vector, Vector()).cosine_distance(list(vector))
    query = select(Expense, distance.label("distance"))
    return (
        _embedding_filters(query, user_id, category, start_date, end_date)
        .where(distance <= 1 - threshold)
        .order_by(distance)
        .limit(limit)
    )


class SqlFinancialStore:
    """
    SQLAlchemy implementation of ``FinancialStore``.

    Nearest-neighbour search runs in PostgreSQL through pgvector; on other
    backends it scores the stored JSON vectors in Python.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ─── Users ───────────────────────────────────────────────────────────────

    async def get_user_currency(self, user_id: str) -> str | None:
        async with self._session_factory() as session:
            row = await session.get(UserSettings, user_id)
            return row.currency if row else None

    async def set_user_currency(self, user_id: str, currency: str) -> None:
        async with self._session_factory() as session:
            row = await session.get(UserSettings, user_id)
            if row is None:
                session.add(UserSettings(user_id=user_id, currency=currency))
            else:
                row.currency = currency
            await session.commit()

    # ─── Expenses ────────────────────────────────────────────────────────────

    def _expense_query(self, user_id: str, filters: RecordFilter) -> Select:
        query = select(Expense).where(Expense.user_id == user_id)
        if filters.category:
            query = query.where(Expense.category == filters.category)
        if filters.start_date:
            query = query.where(Expense.date >= filters.start_date)
        if filters.end_date:
            query = query.where(Expense.date <= filters.end_date)
        if filters.min_amount is not None:
            query = query.where(Expense.amount >= filters.min_amount)
        if filters.max_amount is not None:
            query = query.where(Expense.amount <= filters.max_amount)
        if filters.text:
            query = query.where(Expense.description.ilike(f"%{filters.text}%"))
        return query

    async def list_expenses(self, user_id: str, filters: RecordFilter) -> list[Expense]:
        column = _EXPENSE_SORT_COLUMNS.get(filters.sort_by, Expense.date)
        query = self._expense_query(user_id, filters).order_by(
            column.asc() if filters.ascending else column.desc(),
            Expense.created_at.desc(),
        )
        if filters.limit:
            query = query.limit(filters.limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def count_expenses(self, user_id: str, filters: RecordFilter | None = None) -> int:
        subquery = self._expense_query(user_id, filters or RecordFilter()).subquery()
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(subquery))
            return int(result.scalar_one())

    async def add_expense(
        self,
        user_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        category: str,
        expense_date: date,
    ) -> Expense:
        expense = Expense(
            user_id=user_id,
            amount=amount,
            currency=currency,
            description=description,
            category=category,
            date=expense_date,
        )
        async with self._session_factory() as session:
            session.add(expense)
            await session.commit()
            await session.refresh(expense)

        logger.info(
            "expense_created",
            expense_id=str(expense.id),
            user_id=user_id,
            amount=str(amount),
            currency=currency,
            category=category,
        )
        return expense

    async def delete_expenses(self, user_id: str, expense_ids: Sequence[uuid.UUID]) -> int:
        """Delete the given expenses (and their embeddings) in one transaction."""
        if not expense_ids:
            return 0
        ids = list(expense_ids)
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    delete(ExpenseEmbedding).where(
                        ExpenseEmbedding.user_id == user_id,
                        ExpenseEmbedding.expense_id.in_(ids),
                    )
                )
                result = await session.execute(
                    delete(Expense).where(Expense.user_id == user_id, Expense.id.in_(ids))
                )
        deleted = result.rowcount or 0
        logger.info("expenses_deleted", user_id=user_id, requested=len(ids), deleted=deleted)
        return deleted

    # ─── Income ──────────────────────────────────────────────────────────────

    async def list_income(
        self, user_id: str, filters: RecordFilter, source: str | None = None
    ) -> list[Income]:
        query = select(Income).where(Income.user_id == user_id)
        if source:
            query = query.where(Income.source == source)
        if filters.start_date:
            query = query.where(Income.date >= filters.start_date)
        if filters.end_date:
            query = query.where(Income.date <= filters.end_date)
        if filters.min_amount is not None:
            query = query.where(Income.amount >= filters.min_amount)
        if filters.max_amount is not None:
            query = query.where(Income.amount <= filters.max_amount)
        if filters.text:
            query = query.where(Income.description.ilike(f"%{filters.text}%"))

        column = _INCOME_SORT_COLUMNS.get(filters.sort_by, Income.date)
        query = query.order_by(column.asc() if filters.ascending else column.desc())
        if filters.limit:
            query = query.limit(filters.limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def add_income(
        self,
        user_id: str,
        amount: Decimal,
        currency: str,
        description: str,
        source: str,
        income_date: date,
    ) -> Income:
        income = Income(
            user_id=user_id,
            amount=amount,
            currency=currency,
            description=description,
            source=source,
            date=income_date,
        )
        async with self._session_factory() as session:
            session.add(income)
            await session.commit()
            await session.refresh(income)

        logger.info("income_created", income_id=str(income.id), user_id=user_id, source=source)
        return income

    # ─── Budgets ─────────────────────────────────────────────────────────────

    async def list_budgets(self, user_id: str, category: str | None = None) -> list[Budget]:
        query = select(Budget).where(Budget.user_id == user_id)
        if category:
            query = query.where(Budget.category == category)
        query = query.order_by(Budget.category)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def upsert_budget(
        self, user_id: str, category: str, amount: Decimal, currency: str
    ) -> tuple[Budget, bool]:
        """
        Create or replace the budget for (user, category).

        Returns:
            (budget, created) where ``created`` is False for an update
        """
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(Budget).where(Budget.user_id == user_id, Budget.category == category)
                )
                budget = result.scalar_one_or_none()
                created = budget is None
                if created:
                    budget = Budget(
                        user_id=user_id,
                        category=category,
                        name=category,
                        allocated_amount=amount,
                        currency=currency,
                    )
                    session.add(budget)
                else:
                    budget.allocated_amount = amount
                    budget.currency = currency

        logger.info(
            "budget_saved",
            user_id=user_id,
            category=category,
            amount=str(amount),
            currency=currency,
            created=created,
        )
        return budget, created

    # ─── Subscriptions, holdings, goals ─────────────────────────────────────

    async def list_subscriptions(
        self,
        user_id: str,
        is_active: bool | None = None,
        billing_from: date | None = None,
        billing_to: date | None = None,
    ) -> list[Subscription]:
        query = select(Subscription).where(Subscription.user_id == user_id)
        if is_active is not None:
            query = query.where(Subscription.is_active == is_active)
        if billing_from:
            query = query.where(Subscription.next_billing_date >= billing_from)
        if billing_to:
            query = query.where(Subscription.next_billing_date <= billing_to)
        query = query.order_by(Subscription.next_billing_date.asc(), Subscription.name)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_holdings(
        self, user_id: str, symbol: str | None = None, asset_class: str | None = None
    ) -> list[Holding]:
        query = select(Holding).where(Holding.user_id == user_id)
        if symbol:
            query = query.where(Holding.symbol == symbol.upper())
        if asset_class:
            query = query.where(Holding.asset_class == asset_class)
        query = query.order_by(Holding.symbol.asc())

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_goals(self, user_id: str, include_completed: bool = True) -> list[Goal]:
        query = select(Goal).where(Goal.user_id == user_id)
        if not include_completed:
            query = query.where(Goal.is_completed.is_(False))
        query = query.order_by(Goal.target_date.asc(), Goal.title)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    # ─── Monthly statistics ──────────────────────────────────────────────────

    async def upsert_monthly_stat(
        self,
        user_id: str,
        month: date,
        currency: str,
        total_spending: Decimal,
        total_income: Decimal,
        total_portfolio_value: Decimal,
    ) -> MonthlyStat:
        """Insert or update the snapshot keyed by (user, first day of month)."""
        month = month.replace(day=1)
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(MonthlyStat).where(
                        MonthlyStat.user_id == user_id, MonthlyStat.month == month
                    )
                )
                stat = result.scalar_one_or_none()
                if stat is None:
                    stat = MonthlyStat(user_id=user_id, month=month)
                    session.add(stat)
                stat.currency = currency
                stat.total_spending = total_spending
                stat.total_income = total_income
                stat.total_portfolio_value = total_portfolio_value

        logger.info("monthly_stat_recorded", user_id=user_id, month=month.isoformat())
        return stat

    # ─── Embeddings ──────────────────────────────────────────────────────────

    async def store_expense_embedding(
        self, expense_id: uuid.UUID, user_id: str, vector: Sequence[float], model: str
    ) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(ExpenseEmbedding, expense_id)
                if row is None:
                    session.add(
                        ExpenseEmbedding(
                            expense_id=expense_id,
                            user_id=user_id,
                            vector=list(vector),
                            model=model,
                        )
                    )
                else:
                    row.vector = list(vector)
                    row.model = model

    async def nearest_expenses(
        self,
        user_id: str,
        vector: Sequence[float],
        threshold: float,
        limit: int,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[tuple[Expense, float]]:
        """
        Expenses whose stored embedding is at least ``threshold`` similar.

        PostgreSQL ranks by pgvector cosine distance in the query; other
        backends score the candidate rows here.

        Returns:
            Up to ``limit`` (expense, similarity) pairs, most similar first
        """
        async with self._session_factory() as session:
            if session.bind.dialect.name == "postgresql":
                query = distance_ranked_query(
                    user_id, vector, threshold, limit, category, start_date, end_date
                )
                result = await session.execute(query)
                return [(expense, 1 - float(distance)) for expense, distance in result.all()]

            query = _embedding_filters(
                select(Expense, ExpenseEmbedding.vector), user_id, category, start_date, end_date
            )
            result = await session.execute(query)
            rows = result.all()

        scored = [
            (expense, cosine_similarity(vector, stored))
            for expense, stored in rows
        ]
        matches = [pair for pair in scored if pair[1] >= threshold]
        matches.sort(key=lambda pair: pair[1], reverse=True)
        return matches[:limit]

