"""
Assistant Graph.

LangGraph definition of the Tool Orchestrator.

Flow:
1. call_model: the reasoning service sees the user message, prior history and
   the tool schema; it answers or requests tool calls
2. execute_tools: every requested call runs concurrently
3. call_followup: the results go back as one turn; the model answers or (up
   to ``max_tool_rounds``) requests another round
4. finish: back to idle

Per-request values (tool context, system instructions, deadline) travel in
``config["configurable"]``; the compiled graph itself is reusable.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph

from spendwise.agents.assistant.state import AssistantState
from spendwise.agents.assistant.tools.registry import ToolContext, ToolExecution, ToolRegistry
from spendwise.config import Settings
from spendwise.deadline import run_with_deadline
from spendwise.errors import ToolExecutionFailure
from spendwise.logging_config import get_logger
from spendwise.schemas.conversation import ConversationTurn, ToolCall, ToolResult
from spendwise.services.reasoning import ReasoningService

logger = get_logger(__name__)


def _runtime(config: RunnableConfig) -> dict[str, Any]:
    return config.get("configurable", {})


async def run_tool_calls(
    registry: ToolRegistry,
    calls: Sequence[ToolCall],
    ctx: ToolContext,
    policy: str = "abort",
) -> list[ToolExecution]:
    """
    Run ``calls`` concurrently and return their executions in call order.

    Under ``"abort"`` the first failure cancels the sibling calls and
    propagates. Under ``"isolate"`` a failed call becomes an error result and
    the others complete normally. Cancellation and deadline expiry always
    propagate.
    """
    tasks = [
        asyncio.create_task(run_with_deadline(registry.execute(call, ctx), ctx.deadline))
        for call in calls
    ]

    if policy == "abort":
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    executions: list[ToolExecution] = []
    for call, outcome in zip(calls, outcomes):
        if isinstance(outcome, ToolExecution):
            executions.append(outcome)
        elif isinstance(outcome, ToolExecutionFailure):
            logger.warning(
                "tool_failure_isolated",
                tool=call.name,
                error=str(outcome),
                error_type=type(outcome).__name__,
            )
            executions.append(
                ToolExecution(
                    result=ToolResult(
                        name=call.name,
                        continuation_token=call.echo_token,
                        error=str(outcome),
                    )
                )
            )
        else:
            raise outcome
    return executions


def build_assistant_graph(
    reasoning: ReasoningService,
    registry: ToolRegistry,
    settings: Settings,
):
    """
    Create the assistant LangGraph.

    Args:
        reasoning: Reasoning service that answers or requests tools
        registry: Tools available to the model
        settings: Default failure policy and tool-round limit

    Returns:
        Compiled LangGraph
    """
    tool_schema = registry.schema()

    async def call_model(state: AssistantState, config: RunnableConfig) -> dict:
        """Send the user message with the prior history and tool schema."""
        runtime = _runtime(config)
        response = await reasoning.generate(
            state["user_message"],
            state.get("history", ()),
            tool_schema,
            runtime["system_instructions"],
            deadline=runtime.get("deadline"),
        )
        return {
            "history": (
                ConversationTurn(role="user", content=state["user_message"]),
                ConversationTurn(
                    role="assistant", content=response.text, tool_calls=response.tool_calls
                ),
            ),
            "pending_calls": response.tool_calls,
            "response_text": response.text,
            "phase": "executing_tools" if response.tool_calls else "idle",
        }

    async def execute_tools(state: AssistantState, config: RunnableConfig) -> dict:
        """Fan out every pending call and fan the results back into one turn."""
        runtime = _runtime(config)
        calls = state.get("pending_calls", ())
        policy = runtime.get("tool_failure_policy", settings.tool_failure_policy)
        executions = await run_tool_calls(registry, calls, runtime["tool_context"], policy=policy)
        logger.info(
            "tool_round_completed",
            request_id=state.get("request_id"),
            calls=len(calls),
            failed=sum(1 for e in executions if not e.result.ok),
        )
        return {
            "history": (
                ConversationTurn(
                    role="user", tool_results=tuple(e.result for e in executions)
                ),
            ),
            "side_effects": tuple(e.side_effect for e in executions if e.side_effect),
            "tools_called": tuple(call.name for call in calls),
            "pending_calls": (),
            "tool_rounds": state.get("tool_rounds", 0) + 1,
            "phase": "awaiting_followup_response",
        }

    async def call_followup(state: AssistantState, config: RunnableConfig) -> dict:
        """Return the tool results to the model; calls past the last round are dropped."""
        runtime = _runtime(config)
        max_rounds = runtime.get("max_tool_rounds", settings.max_tool_rounds)
        rounds_left = state.get("tool_rounds", 0) < max_rounds
        response = await reasoning.generate(
            None,
            state["history"],
            tool_schema,
            runtime["system_instructions"],
            deadline=runtime.get("deadline"),
        )
        calls = response.tool_calls if rounds_left else ()
        if response.tool_calls and not rounds_left:
            logger.warning(
                "tool_rounds_exhausted",
                request_id=state.get("request_id"),
                dropped=[call.name for call in response.tool_calls],
            )
        return {
            "history": (
                ConversationTurn(role="assistant", content=response.text, tool_calls=calls),
            ),
            "pending_calls": calls,
            "response_text": response.text,
            "phase": "executing_tools" if calls else "idle",
        }

    def finish(state: AssistantState) -> dict:
        return {"phase": "idle"}

    def route_after_model(state: AssistantState) -> str:
        return "execute_tools" if state.get("pending_calls") else "finish"

    # Build graph
    builder = StateGraph(AssistantState)

    # Add nodes
    builder.add_node("call_model", call_model)
    builder.add_node("execute_tools", execute_tools)
    builder.add_node("call_followup", call_followup)
    builder.add_node("finish", finish)

    # Add edges
    builder.add_edge(START, "call_model")
    builder.add_conditional_edges(
        "call_model", route_after_model, {"execute_tools": "execute_tools", "finish": "finish"}
    )
    builder.add_edge("execute_tools", "call_followup")
    builder.add_conditional_edges(
        "call_followup",
        route_after_model,
        {"execute_tools": "execute_tools", "finish": "finish"},
    )
    builder.add_edge("finish", END)

    return builder.compile()
