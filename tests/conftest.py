"""
Pytest configuration and fixtures for the Spendwise test suite.

Provides:
- Settings and a SQLite database per test (aiosqlite)
- Seeded financial records
- Fake chat models, embeddings and reasoning services
"""

import os
from collections.abc import Iterator, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatResult
from pydantic import Field

# Set test environment before importing spendwise modules
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from spendwise.agents.assistant.tools import ToolContext
from spendwise.config import Settings
from spendwise.database import create_engine_for, create_session_factory, init_db
from spendwise.models import Goal, Holding, Subscription
from spendwise.schemas.conversation import ConversationTurn, ModelResponse
from spendwise.storage.financial_store import SqlFinancialStore

# Friday
TODAY = date(2024, 3, 15)


# ─────────────────────────────────────────────────────────────────────────────
# Settings & Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'spendwise_test.db'}",
        openai_api_key="test-key",
        llm_provider="openai",
        default_currency="USD",
        log_format="console",
    )


@pytest_asyncio.fixture
async def engine(settings):
    """Async engine with every table created."""
    engine = create_engine_for(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory) -> SqlFinancialStore:
    return SqlFinancialStore(session_factory)


@pytest.fixture
def tool_context(store) -> ToolContext:
    """Tool context for user-1, USD default, viewing March 2024."""
    return ToolContext(
        user_id="user-1",
        display_currency="USD",
        today=TODAY,
        store=store,
        context_period="2024-03",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Seed Data
# ─────────────────────────────────────────────────────────────────────────────


async def add_expense(
    store: SqlFinancialStore,
    amount: str,
    currency: str,
    description: str,
    category: str,
    on: date,
    user_id: str = "user-1",
):
    """Helper to insert one expense."""
    return await store.add_expense(
        user_id,
        amount=Decimal(amount),
        currency=currency,
        description=description,
        category=category,
        expense_date=on,
    )


@pytest_asyncio.fixture
async def seeded_store(store, session_factory) -> SqlFinancialStore:
    """
    Store with a small, mixed-currency history for user-1.

    March 2024:  Lunch 30 MYR, Coffee 5 USD, Groceries 40 USD, Taxi 20 SGD
    February 2024: Dinner 100 USD
    user-2: one expense that must never leak into user-1 results
    """
    await add_expense(store, "30", "MYR", "Lunch", "Food & Dining", date(2024, 3, 14))
    await add_expense(store, "5", "USD", "Coffee", "Food & Dining", date(2024, 3, 12))
    await add_expense(store, "40", "USD", "Weekly groceries", "Groceries", date(2024, 3, 10))
    await add_expense(store, "20", "SGD", "Taxi to airport", "Transportation", date(2024, 3, 2))
    await add_expense(store, "100", "USD", "Dinner party", "Food & Dining", date(2024, 2, 20))
    await add_expense(store, "999", "USD", "Lunch", "Food & Dining", date(2024, 3, 14), "user-2")

    await store.add_income(
        "user-1",
        amount=Decimal("3000"),
        currency="USD",
        description="March salary",
        source="Salary",
        income_date=date(2024, 3, 1),
    )
    await store.add_income(
        "user-1",
        amount=Decimal("447"),
        currency="MYR",
        description="Logo design client",
        source="Freelance",
        income_date=date(2024, 3, 5),
    )

    await store.upsert_budget("user-1", "Food & Dining", Decimal("200"), "USD")
    await store.upsert_budget("user-1", "Transportation", Decimal("134"), "SGD")

    async with session_factory() as session:
        session.add_all(
            [
                Subscription(
                    user_id="user-1",
                    name="Netflix",
                    amount=Decimal("15.99"),
                    currency="USD",
                    billing_cycle="monthly",
                    next_billing_date=date(2024, 3, 20),
                ),
                Subscription(
                    user_id="user-1",
                    name="Cloud storage",
                    amount=Decimal("120"),
                    currency="USD",
                    billing_cycle="yearly",
                    next_billing_date=date(2024, 6, 1),
                ),
                Subscription(
                    user_id="user-1",
                    name="Old gym",
                    amount=Decimal("50"),
                    currency="USD",
                    billing_cycle="monthly",
                    is_active=False,
                ),
                Holding(
                    user_id="user-1",
                    symbol="AAPL",
                    asset_class="stock",
                    shares=Decimal("10"),
                    average_price=Decimal("150"),
                    current_price=Decimal("180"),
                    currency="USD",
                ),
                Holding(
                    user_id="user-1",
                    symbol="BTC-USD",
                    asset_class="crypto",
                    shares=Decimal("0.5"),
                    average_price=Decimal("40000"),
                    current_price=None,
                    currency="USD",
                ),
                Goal(
                    user_id="user-1",
                    title="Emergency fund",
                    target_amount=Decimal("1000"),
                    current_amount=Decimal("250"),
                    currency="USD",
                    target_date=date(2024, 12, 31),
                ),
                Goal(
                    user_id="user-1",
                    title="New laptop",
                    target_amount=Decimal("500"),
                    current_amount=Decimal("500"),
                    currency="USD",
                    is_completed=True,
                ),
            ]
        )
        await session.commit()

    return store


# ─────────────────────────────────────────────────────────────────────────────
# Fake Models
# ─────────────────────────────────────────────────────────────────────────────


class ToolCallingFakeChatModel(GenericFakeChatModel):
    """Scripted chat model that accepts ``bind_tools`` and records its inputs."""

    received: list[list[BaseMessage]] = Field(default_factory=list)
    bound_tools: list[Any] = Field(default_factory=list)

    def bind_tools(self, tools: Sequence[Any], **kwargs: Any) -> "ToolCallingFakeChatModel":
        self.bound_tools = list(tools)
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.received.append(list(messages))
        return super()._generate(messages, stop=stop, run_manager=run_manager, **kwargs)


def scripted_chat_model(*replies: AIMessage | str) -> ToolCallingFakeChatModel:
    return ToolCallingFakeChatModel(messages=iter(replies))


class FailingChatModel(BaseChatModel):
    """Chat model whose every call fails like an unreachable service."""

    calls: int = 0

    @property
    def _llm_type(self) -> str:
        return "failing-fake"

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        self.calls += 1
        raise ConnectionError("service unavailable")


class KeywordEmbeddings(Embeddings):
    """
    Deterministic embeddings: one dimension per vocabulary word.

    Texts sharing words get a high cosine similarity; unrelated texts score 0.
    """

    def __init__(self, vocabulary: Sequence[str]):
        self.vocabulary = [w.lower() for w in vocabulary]
        self.calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        words = text.lower().split()
        vector = [float(sum(1 for w in words if w.startswith(v))) for v in self.vocabulary]
        # Constant component keeps every vector non-zero
        return vector + [0.1]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return self._vector(text)


class FailingEmbeddings(Embeddings):
    """Embedding service that is always down."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise ConnectionError("embedding service unavailable")

    def embed_query(self, text: str) -> list[float]:
        raise ConnectionError("embedding service unavailable")


class ScriptedReasoning:
    """
    ``ReasoningService`` returning canned responses in order.

    Records every request so tests can inspect what the model was sent.
    """

    def __init__(self, *responses: ModelResponse | Exception):
        self._responses: Iterator[ModelResponse | Exception] = iter(responses)
        self.requests: list[dict[str, Any]] = []

    async def generate(
        self,
        user_message: str | None,
        history: Sequence[ConversationTurn],
        tool_schema: Sequence[dict[str, Any]],
        system_instructions: str,
        deadline=None,
    ) -> ModelResponse:
        self.requests.append(
            {
                "user_message": user_message,
                "history": tuple(history),
                "tool_names": [tool["name"] for tool in tool_schema],
                "system_instructions": system_instructions,
            }
        )
        response = next(self._responses)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def today() -> date:
    return TODAY
