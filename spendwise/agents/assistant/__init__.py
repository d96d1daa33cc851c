"""
Assistant Agent.

Natural-language interface over the user's financial records: the reasoning
service picks tools, the orchestrator runs them and returns the reply.
"""

from spendwise.agents.assistant.agent import (
    AssistantOrchestrator,
    build_assistant,
    window_history,
)
from spendwise.agents.assistant.graph import build_assistant_graph, run_tool_calls
from spendwise.agents.assistant.tools import build_default_registry

__all__ = [
    "AssistantOrchestrator",
    "build_assistant",
    "build_assistant_graph",
    "build_default_registry",
    "run_tool_calls",
    "window_history",
]
