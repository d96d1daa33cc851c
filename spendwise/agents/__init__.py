"""
Agents module.

Contains the LangGraph-based assistant for the personal finance tracker.

Usage:
    from spendwise.agents import build_assistant

    assistant = build_assistant(settings)
    result = await assistant.converse("How much did I spend on food?", user_id="u1")
"""

from spendwise.agents.assistant import AssistantOrchestrator, build_assistant

__all__ = [
    "AssistantOrchestrator",
    "build_assistant",
]
