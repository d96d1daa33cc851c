"""Services for Spendwise: LLM access, delegate client, reasoning and search."""

from spendwise.services.ai_delegate import AIDelegateClient
from spendwise.services.llm import get_chat_model, get_embeddings
from spendwise.services.monthly_stats import record_monthly_stats
from spendwise.services.reasoning import ChatModelReasoningService, ReasoningService
from spendwise.services.semantic_search import (
    SemanticMatch,
    SemanticSearchAdapter,
    SemanticSearchResult,
)

__all__ = [
    "AIDelegateClient",
    "ChatModelReasoningService",
    "ReasoningService",
    "SemanticMatch",
    "SemanticSearchAdapter",
    "SemanticSearchResult",
    "get_chat_model",
    "get_embeddings",
    "record_monthly_stats",
]
