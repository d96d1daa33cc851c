"""
Assistant State.

Defines the state schema for the LangGraph assistant. Conversation history,
side effects and the names of executed tools are append-only: nodes return
tuples that the ``operator.add`` reducer concatenates.
"""

import operator
from typing import Annotated, Literal, TypedDict

from spendwise.schemas.conversation import ConversationTurn, SideEffect, ToolCall

Phase = Literal[
    "idle",
    "awaiting_model_response",
    "executing_tools",
    "awaiting_followup_response",
]


class AssistantState(TypedDict, total=False):
    """State for one ``converse`` call."""

    # Request info
    request_id: str
    user_id: str
    user_message: str

    # Conversation log (append-only)
    history: Annotated[tuple[ConversationTurn, ...], operator.add]

    # Tool calls requested by the latest model response
    pending_calls: tuple[ToolCall, ...]
    tool_rounds: int

    # Outputs
    response_text: str
    side_effects: Annotated[tuple[SideEffect, ...], operator.add]
    tools_called: Annotated[tuple[str, ...], operator.add]

    # Status
    phase: Phase
