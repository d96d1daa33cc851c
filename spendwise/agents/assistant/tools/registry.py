"""
Tool Registry.

Maps tool names to ``ToolSpec`` strategies. Each spec carries a pydantic
parameters model; arguments from the reasoning service are validated against
it before the handler runs, and the same model produces the JSON schema the
reasoning service sees.

Usage:
    >>> registry = build_default_registry()
    >>> result = await registry.execute(ToolCall(name="get_expenses"), ctx)
    >>> result.result.payload["total"]
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel, ValidationError

from spendwise.deadline import Deadline
from spendwise.errors import (
    OperationCancelled,
    ToolArgumentError,
    ToolExecutionFailure,
    UnknownToolError,
)
from spendwise.logging_config import get_logger
from spendwise.schemas.conversation import SideEffect, ToolCall, ToolResult
from spendwise.storage.financial_store import FinancialStore
from spendwise.tools.currency import (
    DEFAULT_RATE_TABLE,
    RateTable,
    normalize_currency_code,
)

logger = get_logger(__name__)

# Bumped whenever a tool is added, removed or changes its parameters
TOOL_SCHEMA_VERSION = "2024.11"


@dataclass(frozen=True)
class ToolContext:
    """
    Per-turn context handed to every handler.

    ``display_currency`` is the user's default currency; a call's
    ``display_currency`` argument overrides it through ``target_currency``.
    ``context_period`` is the month (or named period) the conversation is
    about; handlers never read the wall-clock month themselves.
    """

    user_id: str
    display_currency: str
    today: date
    store: FinancialStore
    rates: RateTable = DEFAULT_RATE_TABLE
    context_period: str | None = None
    semantic_search: Any = None
    deadline: Deadline | None = None

    def target_currency(self, override: str | None = None) -> str:
        """Currency the figures of one call are reported in."""
        return normalize_currency_code(override, default=self.display_currency)

    def check_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.check()


@dataclass
class ToolOutput:
    """What a handler returns: the payload plus an optional side effect."""

    payload: dict[str, Any]
    side_effect: SideEffect | None = None


Handler = Callable[[Any, ToolContext], Awaitable[ToolOutput]]


@dataclass(frozen=True)
class ToolSpec:
    """One registered tool."""

    name: str
    description: str
    params_model: type[BaseModel]
    handler: Handler
    destructive: bool = False

    def parameters(self) -> dict[str, Any]:
        """JSON schema of the parameters, without pydantic's titles."""
        return _clean_schema(self.params_model.model_json_schema())

    def declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters(),
        }


@dataclass
class ToolExecution:
    """Outcome of ``ToolRegistry.execute``."""

    result: ToolResult
    side_effect: SideEffect | None = None


def _clean_schema(schema: Any) -> Any:
    """
    Simplify a pydantic JSON schema for function-calling APIs.

    Drops ``title`` keys and collapses ``anyOf: [X, null]`` (from optional
    fields) into ``X``.
    """
    if isinstance(schema, list):
        return [_clean_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "title":
            continue
        if key == "properties" and isinstance(value, dict):
            cleaned[key] = {name: _clean_schema(prop) for name, prop in value.items()}
            continue
        cleaned[key] = _clean_schema(value)

    options = cleaned.get("anyOf")
    if isinstance(options, list):
        non_null = [opt for opt in options if opt.get("type") != "null"]
        if len(non_null) == 1:
            del cleaned["anyOf"]
            cleaned = {**non_null[0], **cleaned}
    if cleaned.get("default", ...) is None:
        del cleaned["default"]
    return cleaned


@dataclass
class ToolRegistry:
    """
    Name -> ``ToolSpec`` dispatch table.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(ToolSpec("ping", "Ping", PingParams, ping))
        >>> registry.schema()
        [{'name': 'ping', 'description': 'Ping', 'parameters': {...}}]
    """

    version: str = TOOL_SCHEMA_VERSION
    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, spec: ToolSpec) -> ToolSpec:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec
        return spec

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def schema(self) -> list[dict[str, Any]]:
        """Declarations of every registered tool, in registration order."""
        return [spec.declaration() for spec in self._tools.values()]

    async def execute(self, call: ToolCall, ctx: ToolContext) -> ToolExecution:
        """
        Validate the call's arguments and run its handler.

        Args:
            call: Tool call requested by the reasoning service
            ctx: Per-turn tool context

        Returns:
            ToolExecution whose result echoes the call's continuation token

        Raises:
            UnknownToolError: If the tool is not registered
            ToolArgumentError: If the arguments fail validation
            ToolExecutionFailure: If the handler or the store fails
            OperationCancelled: On deadline expiry or caller cancellation
        """
        spec = self.get(call.name)
        log = logger.bind(tool=call.name, user_id=ctx.user_id)

        try:
            params = spec.params_model.model_validate(call.args or {})
        except ValidationError as e:
            log.warning("tool_arguments_invalid", errors=e.error_count())
            raise ToolArgumentError(call.name, f"invalid arguments: {e}") from e

        ctx.check_deadline()
        try:
            output = await spec.handler(params, ctx)
        except (ToolExecutionFailure, OperationCancelled):
            raise
        except Exception as e:
            log.error("tool_failed", error=str(e), error_type=type(e).__name__)
            raise ToolExecutionFailure(call.name, str(e)) from e

        currency = output.payload.get("display_currency") or output.payload.get("currency")
        log.info(
            "tool_executed",
            destructive=spec.destructive,
            side_effect=output.side_effect.kind if output.side_effect else None,
        )
        return ToolExecution(
            result=ToolResult(
                name=call.name,
                continuation_token=call.echo_token,
                payload=output.payload,
                currency=currency,
            ),
            side_effect=output.side_effect,
        )
