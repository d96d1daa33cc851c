"""
Assistant Entry Point.

``AssistantOrchestrator.converse`` runs one user message through the
assistant graph and returns the reply text, side effects (charts, created or
deleted records, saved budgets) and the extended conversation history.
"""

import uuid
from collections.abc import Callable, Sequence
from datetime import date

from spendwise.agents.assistant.graph import build_assistant_graph
from spendwise.agents.assistant.state import AssistantState
from spendwise.agents.assistant.tools import ToolContext, ToolRegistry, build_default_registry
from spendwise.config import Settings
from spendwise.database import create_engine_for, create_session_factory
from spendwise.deadline import Deadline
from spendwise.errors import SpendwiseError
from spendwise.logging_config import configure_logging, get_logger, request_context
from spendwise.prompts.assistant import build_system_instructions
from spendwise.schemas.conversation import ConversationTurn, ConverseResult
from spendwise.services.ai_delegate import AIDelegateClient
from spendwise.services.llm import get_chat_model
from spendwise.services.reasoning import ChatModelReasoningService, ReasoningService
from spendwise.services.semantic_search import SemanticSearchAdapter
from spendwise.storage.financial_store import FinancialStore, SqlFinancialStore
from spendwise.tools.currency import (
    DEFAULT_RATE_TABLE,
    RateTable,
    is_supported_currency,
    normalize_currency_code,
)
from spendwise.tools.periods import format_month

logger = get_logger(__name__)


def window_history(
    history: Sequence[ConversationTurn], size: int
) -> tuple[ConversationTurn, ...]:
    """
    Last ``size`` turns of ``history`` (all of it when ``size`` is 0).

    The window never starts on a tool-result turn whose tool-call turn was
    cut off.
    """
    turns = tuple(history)
    if not size or len(turns) <= size:
        return turns
    start = len(turns) - size
    while start < len(turns) and turns[start].tool_results:
        start += 1
    return turns[start:]


class AssistantOrchestrator:
    """
    Tool Orchestrator.

    One conversation is processed by one caller at a time; tool calls within
    a turn run concurrently.

    Example:
        >>> assistant = build_assistant(settings)
        >>> result = await assistant.converse("How much did I spend on food?", user_id="u1")
        >>> result.text
        "You spent RM 450.50 on Food & Dining this month..."
    """

    def __init__(
        self,
        reasoning: ReasoningService,
        registry: ToolRegistry,
        store: FinancialStore,
        config: Settings,
        semantic_search: SemanticSearchAdapter | None = None,
        rates: RateTable = DEFAULT_RATE_TABLE,
        today: Callable[[], date] = date.today,
    ):
        self.reasoning = reasoning
        self.registry = registry
        self.store = store
        self.config = config
        self.semantic_search = semantic_search
        self.rates = rates
        self._today = today
        self._graph = build_assistant_graph(reasoning, registry, config)

    async def user_currency(self, user_id: str) -> str:
        """The user's stored currency, else the configured default."""
        stored = await self.store.get_user_currency(user_id)
        currency = normalize_currency_code(stored, default=self.config.default_currency)
        if not is_supported_currency(currency):
            logger.warning("user_currency_unsupported", user_id=user_id, currency=currency)
            return normalize_currency_code(self.config.default_currency)
        return currency

    async def converse(
        self,
        user_message: str,
        user_id: str,
        history: Sequence[ConversationTurn] = (),
        context_period: str | None = None,
        deadline: Deadline | None = None,
    ) -> ConverseResult:
        """
        Answer one user message.

        Args:
            user_message: What the user said
            user_id: Owner of the financial records
            history: Prior conversation turns (never modified)
            context_period: Month (YYYY-MM) or named period the user is
                looking at; defaults to the current month
            deadline: Caller deadline/cancellation for the whole turn

        Returns:
            ConverseResult with the text, side effects and updated history

        Raises:
            ToolExecutionFailure: If a tool fails under the "abort" policy
            RemoteServiceFailure: If the reasoning service fails
            OperationCancelled: On deadline expiry or caller cancellation
        """
        request_id = str(uuid.uuid4())
        with request_context(request_id, user_id):
            return await self._converse(
                request_id, user_message, user_id, history, context_period, deadline
            )

    async def _converse(
        self,
        request_id: str,
        user_message: str,
        user_id: str,
        history: Sequence[ConversationTurn],
        context_period: str | None,
        deadline: Deadline | None,
    ) -> ConverseResult:
        logger.info("assistant_request", message_length=len(user_message))

        if deadline is None and self.config.request_timeout_seconds:
            deadline = Deadline(seconds=self.config.request_timeout_seconds)

        today = self._today()
        context_period = context_period or format_month(today)
        currency = await self.user_currency(user_id)

        prior = tuple(history)
        sent = window_history(prior, self.config.history_window)

        initial: AssistantState = {
            "request_id": request_id,
            "user_id": user_id,
            "user_message": user_message,
            "history": sent,
            "pending_calls": (),
            "tool_rounds": 0,
            "phase": "awaiting_model_response",
        }
        runtime = {
            "system_instructions": build_system_instructions(today, currency, context_period),
            "tool_context": ToolContext(
                user_id=user_id,
                display_currency=currency,
                today=today,
                store=self.store,
                rates=self.rates,
                context_period=context_period,
                semantic_search=self.semantic_search,
                deadline=deadline,
            ),
            "tool_failure_policy": self.config.tool_failure_policy,
            "max_tool_rounds": self.config.max_tool_rounds,
            "deadline": deadline,
        }

        try:
            final = await self._graph.ainvoke(initial, config={"configurable": runtime})
        except SpendwiseError as e:
            logger.error("assistant_request_failed", error=str(e), error_type=type(e).__name__)
            raise

        new_turns = tuple(final.get("history", ()))[len(sent):]
        result = ConverseResult(
            text=final.get("response_text", ""),
            side_effects=tuple(final.get("side_effects", ())),
            updated_history=prior + new_turns,
            tools_called=tuple(final.get("tools_called", ())),
            request_id=request_id,
        )
        logger.info(
            "assistant_request_completed",
            tools_called=list(result.tools_called),
            side_effects=len(result.side_effects),
            response_length=len(result.text),
        )
        return result


def build_assistant(config: Settings) -> AssistantOrchestrator:
    """
    Wire the assistant from ``config``.

    Creates the database engine, store, AI delegate, semantic search and
    reasoning service, and configures logging. Call ``init_db`` separately in
    development.
    """
    configure_logging(config)
    store = SqlFinancialStore(create_session_factory(create_engine_for(config)))
    delegate = AIDelegateClient(config)
    return AssistantOrchestrator(
        reasoning=ChatModelReasoningService(get_chat_model(config, purpose="chat")),
        registry=build_default_registry(),
        store=store,
        config=config,
        semantic_search=SemanticSearchAdapter(delegate, store, config),
    )
