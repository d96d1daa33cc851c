"""
Pydantic schemas for the tool-calling conversation.

The conversation is an append-only tuple of frozen ``ConversationTurn`` values.
Tool results travel back to the reasoning service inside a ``user`` turn,
mirroring how function responses are returned to the model.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Echoed in place of a missing continuation token. Reasoning services that
# validate thought signatures accept this value as "no signature available".
MISSING_CONTINUATION_TOKEN = "skip_thought_signature_validator"


class ToolCall(BaseModel):
    """A request from the reasoning service to run one named tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    continuation_token: str | None = None

    @property
    def echo_token(self) -> str:
        """Token to send back with the result; never empty."""
        return self.continuation_token or MISSING_CONTINUATION_TOKEN


class ToolResult(BaseModel):
    """Outcome of one tool call, correlated by its continuation token."""

    model_config = ConfigDict(frozen=True)

    name: str
    continuation_token: str = MISSING_CONTINUATION_TOKEN
    payload: dict[str, Any] = Field(default_factory=dict)
    currency: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConversationTurn(BaseModel):
    """One entry of the conversation log."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()


class ModelResponse(BaseModel):
    """What the reasoning service returned for one request."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()


class ChartSeries(BaseModel):
    """One plotted series; ``key`` names the field in each data row."""

    key: str
    label: str


class ChartPayload(BaseModel):
    """Chart description handed to the rendering layer."""

    type: Literal["bar", "line", "pie"]
    title: str
    currency: str
    series: list[ChartSeries] = Field(default_factory=list)
    data: list[dict[str, Any]] = Field(default_factory=list)


SideEffectKind = Literal["chart", "record_created", "records_deleted", "budget_saved"]


class SideEffect(BaseModel):
    """Structured payload returned next to the assistant's text."""

    model_config = ConfigDict(frozen=True)

    kind: SideEffectKind
    tool: str
    data: dict[str, Any] = Field(default_factory=dict)


class ConverseResult(BaseModel):
    """Result of one ``converse`` call."""

    text: str
    side_effects: tuple[SideEffect, ...] = ()
    updated_history: tuple[ConversationTurn, ...] = ()
    tools_called: tuple[str, ...] = ()
    request_id: str | None = None
