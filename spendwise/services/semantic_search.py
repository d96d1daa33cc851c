"""
Semantic Search Adapter.

Embeds a query through the AI Delegate Client and asks the store for the
nearest stored expenses above a similarity threshold. Rows below the
threshold are dropped, never merely ranked lower.

When the embedding service is unavailable the adapter either degrades to a
plain description search (``semantic_search_fallback="keyword"``) or raises
``RemoteServiceFailure`` (``"fail"``). Keyword results carry no similarity.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from spendwise.config import Settings
from spendwise.deadline import Deadline
from spendwise.errors import RemoteServiceFailure
from spendwise.logging_config import get_logger
from spendwise.models import Expense
from spendwise.services.ai_delegate import AIDelegateClient
from spendwise.storage.financial_store import FinancialStore, RecordFilter

logger = get_logger(__name__)

Relevance = Literal["high", "medium", "low", "keyword"]
SearchMode = Literal["semantic", "keyword"]

HIGH_RELEVANCE = 0.85
MEDIUM_RELEVANCE = 0.75

_STOP_WORDS = frozenset({"the", "and", "for", "that", "this", "with", "something", "like", "place"})


def relevance_band(similarity: float) -> Relevance:
    """Map a similarity score to its relevance band."""
    if similarity >= HIGH_RELEVANCE:
        return "high"
    if similarity >= MEDIUM_RELEVANCE:
        return "medium"
    return "low"


@dataclass
class SemanticMatch:
    """One matched expense."""

    expense: Expense
    similarity: float | None
    relevance: Relevance

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.expense.id),
            "description": self.expense.description,
            "category": self.expense.category,
            "date": self.expense.date.isoformat(),
            "amount": float(self.expense.amount),
            "currency": self.expense.currency,
            "similarity": round(self.similarity, 4) if self.similarity is not None else None,
            "relevance": self.relevance,
        }


@dataclass
class SemanticSearchResult:
    """Matches for one query plus how they were found."""

    query: str
    threshold: float
    search_mode: SearchMode
    matches: list[SemanticMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "threshold": self.threshold,
            "search_mode": self.search_mode,
            "count": len(self.matches),
            "matches": [m.to_dict() for m in self.matches],
        }


class SemanticSearchAdapter:
    """Nearest-neighbour search over stored expense embeddings."""

    def __init__(self, delegate: AIDelegateClient, store: FinancialStore, config: Settings):
        self.delegate = delegate
        self.store = store
        self.config = config

    async def search(
        self,
        user_id: str,
        query: str,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int | None = None,
        threshold: float | None = None,
        deadline: Deadline | None = None,
    ) -> SemanticSearchResult:
        """
        Find expenses semantically similar to ``query``.

        Args:
            user_id: Owner of the expenses
            query: Free-text description to match
            category: Optional category filter
            start_date: Optional inclusive lower date bound
            end_date: Optional inclusive upper date bound
            limit: Max results (defaults to ``semantic_search_limit``)
            threshold: Minimum similarity (defaults to
                ``semantic_similarity_threshold``)
            deadline: Caller deadline for the embedding call

        Returns:
            SemanticSearchResult; ``search_mode`` tells whether the keyword
            fallback was used

        Raises:
            RemoteServiceFailure: If embedding fails and the fallback is "fail"
        """
        limit = limit or self.config.semantic_search_limit
        threshold = self.config.semantic_similarity_threshold if threshold is None else threshold

        try:
            vector = await self.delegate.embed(query, deadline=deadline)
        except RemoteServiceFailure as e:
            if self.config.semantic_search_fallback != "keyword":
                logger.error(
                    "semantic_search_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    user_id=user_id,
                )
                raise
            logger.warning("semantic_search_keyword_fallback", error=str(e), user_id=user_id)
            return await self._keyword_search(
                user_id, query, category, start_date, end_date, limit, threshold
            )

        if deadline is not None:
            deadline.check()
        rows = await self.store.nearest_expenses(
            user_id,
            vector,
            threshold=threshold,
            limit=limit,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )
        matches = [
            SemanticMatch(expense=expense, similarity=score, relevance=relevance_band(score))
            for expense, score in rows
            if score >= threshold
        ]
        logger.info(
            "semantic_search_completed",
            user_id=user_id,
            candidates=len(rows),
            matches=len(matches),
            threshold=threshold,
        )
        return SemanticSearchResult(
            query=query, threshold=threshold, search_mode="semantic", matches=matches
        )

    async def _keyword_search(
        self,
        user_id: str,
        query: str,
        category: str | None,
        start_date: date | None,
        end_date: date | None,
        limit: int,
        threshold: float,
    ) -> SemanticSearchResult:
        # Whole query first, then its individual words
        terms = [query.strip()] + [
            word for word in query.split() if len(word) >= 3 and word.lower() not in _STOP_WORDS
        ]
        expenses: list[Expense] = []
        seen: set = set()
        for term in dict.fromkeys(terms):
            if not term or len(expenses) >= limit:
                continue
            found = await self.store.list_expenses(
                user_id,
                RecordFilter(
                    category=category,
                    start_date=start_date,
                    end_date=end_date,
                    text=term,
                    limit=limit,
                ),
            )
            for expense in found:
                if expense.id not in seen and len(expenses) < limit:
                    seen.add(expense.id)
                    expenses.append(expense)

        return SemanticSearchResult(
            query=query,
            threshold=threshold,
            search_mode="keyword",
            matches=[SemanticMatch(expense=e, similarity=None, relevance="keyword") for e in expenses],
        )

    async def index_expense(self, expense: Expense, deadline: Deadline | None = None) -> bool:
        """
        Store an embedding for ``expense``'s description.

        Returns:
            True when indexed; False when the embedding service was unavailable
            (the expense itself is already saved and stays searchable by text)
        """
        try:
            vector = await self.delegate.embed(expense.description, deadline=deadline)
        except RemoteServiceFailure as e:
            logger.warning(
                "expense_index_skipped",
                expense_id=str(expense.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        await self.store.store_expense_embedding(
            expense.id, expense.user_id, vector, model=self.delegate.embedding_model
        )
        logger.debug("expense_indexed", expense_id=str(expense.id), dims=len(vector))
        return True
