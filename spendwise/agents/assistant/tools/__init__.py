"""
Assistant tools.

``build_default_registry`` registers the fixed tool set in a stable order.
"""

from spendwise.agents.assistant.tools import (
    budgets,
    charts,
    expenses,
    goals,
    income,
    portfolio,
    semantic,
    subscriptions,
)
from spendwise.agents.assistant.tools.registry import (
    TOOL_SCHEMA_VERSION,
    ToolContext,
    ToolExecution,
    ToolOutput,
    ToolRegistry,
    ToolSpec,
)

_TOOL_MODULES = (expenses, budgets, income, subscriptions, portfolio, goals, charts, semantic)


def build_default_registry() -> ToolRegistry:
    """Registry with every assistant tool."""
    registry = ToolRegistry()
    for module in _TOOL_MODULES:
        for spec in module.TOOLS:
            registry.register(spec)
    return registry


__all__ = [
    "TOOL_SCHEMA_VERSION",
    "ToolContext",
    "ToolExecution",
    "ToolOutput",
    "ToolRegistry",
    "ToolSpec",
    "build_default_registry",
]
