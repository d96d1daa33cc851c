"""Pydantic schemas shared across extraction, tools and the assistant."""

from spendwise.schemas.conversation import (
    MISSING_CONTINUATION_TOKEN,
    ChartPayload,
    ChartSeries,
    ConversationTurn,
    ConverseResult,
    ModelResponse,
    SideEffect,
    ToolCall,
    ToolResult,
)
from spendwise.schemas.extraction import (
    DEFAULT_CATEGORY,
    DEFAULT_INCOME_SOURCE,
    EXPENSE_CATEGORIES,
    INCOME_SOURCES,
    DelegateExtraction,
    ExtractionResult,
    MonetaryAmount,
)

__all__ = [
    "MISSING_CONTINUATION_TOKEN",
    "ChartPayload",
    "ChartSeries",
    "ConversationTurn",
    "ConverseResult",
    "ModelResponse",
    "SideEffect",
    "ToolCall",
    "ToolResult",
    "DEFAULT_CATEGORY",
    "DEFAULT_INCOME_SOURCE",
    "EXPENSE_CATEGORIES",
    "INCOME_SOURCES",
    "DelegateExtraction",
    "ExtractionResult",
    "MonetaryAmount",
]
