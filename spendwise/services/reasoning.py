"""
Reasoning service used by the Tool Orchestrator.

``ReasoningService`` is the contract; ``ChatModelReasoningService`` adapts any
LangChain chat model that supports ``bind_tools``. Conversation turns are
translated to LangChain messages on every call; a tool call's continuation
token travels as the LangChain ``tool_call`` id.
"""

import json
from collections.abc import Sequence
from typing import Any, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from spendwise.deadline import Deadline, run_with_deadline
from spendwise.errors import OperationCancelled, RemoteServiceFailure
from spendwise.logging_config import get_logger
from spendwise.schemas.conversation import ConversationTurn, ModelResponse, ToolCall
from spendwise.services.ai_delegate import message_text

logger = get_logger(__name__)


class ReasoningService(Protocol):
    """Remote model that answers or requests tool calls."""

    async def generate(
        self,
        user_message: str | None,
        history: Sequence[ConversationTurn],
        tool_schema: Sequence[dict[str, Any]],
        system_instructions: str,
        deadline: Deadline | None = None,
    ) -> ModelResponse:
        """
        Produce the next model response.

        ``user_message`` is None for follow-up calls whose history already ends
        with the tool-result turn.
        """
        ...


def to_openai_tools(tool_schema: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Wrap ``{name, description, parameters}`` entries as function tools."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool["description"],
                "parameters": tool["parameters"],
            },
        }
        for tool in tool_schema
    ]


def turns_to_messages(history: Sequence[ConversationTurn]) -> list[BaseMessage]:
    """Translate conversation turns into LangChain messages."""
    messages: list[BaseMessage] = []
    for turn in history:
        if turn.role == "assistant":
            messages.append(
                AIMessage(
                    content=turn.content,
                    tool_calls=[
                        {"name": call.name, "args": call.args, "id": call.echo_token}
                        for call in turn.tool_calls
                    ],
                )
            )
        elif turn.tool_results:
            for result in turn.tool_results:
                body = result.payload if result.ok else {"error": result.error}
                messages.append(
                    ToolMessage(
                        content=json.dumps(body, default=str),
                        tool_call_id=result.continuation_token,
                        name=result.name,
                    )
                )
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


class ChatModelReasoningService:
    """
    ``ReasoningService`` over a LangChain chat model with tool calling.

    Example:
        >>> service = ChatModelReasoningService(get_chat_model(settings))
        >>> response = await service.generate("How much on food?", (), registry.schema(), prompt)
    """

    def __init__(self, model: BaseChatModel):
        self.model = model

    async def generate(
        self,
        user_message: str | None,
        history: Sequence[ConversationTurn],
        tool_schema: Sequence[dict[str, Any]],
        system_instructions: str,
        deadline: Deadline | None = None,
    ) -> ModelResponse:
        messages: list[BaseMessage] = [SystemMessage(content=system_instructions)]
        messages.extend(turns_to_messages(history))
        if user_message is not None:
            messages.append(HumanMessage(content=user_message))

        try:
            bound = self.model.bind_tools(to_openai_tools(tool_schema)) if tool_schema else self.model
            reply = await run_with_deadline(bound.ainvoke(messages), deadline)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(
                "reasoning_call_failed",
                error=str(e),
                error_type=type(e).__name__,
                messages=len(messages),
            )
            raise RemoteServiceFailure(f"reasoning service call failed: {e}") from e

        tool_calls = tuple(
            ToolCall(
                name=call["name"],
                args=call.get("args") or {},
                continuation_token=call.get("id") or None,
            )
            for call in getattr(reply, "tool_calls", None) or []
        )
        text = message_text(reply)
        if not text.strip() and not tool_calls:
            raise RemoteServiceFailure("reasoning service returned an empty reply")

        logger.debug("reasoning_call_completed", tool_calls=len(tool_calls), text_length=len(text))
        return ModelResponse(text=text, tool_calls=tool_calls)
