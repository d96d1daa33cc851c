"""
Error taxonomy for the natural-language financial interface.

Only the conditions that must reach a caller are exceptions. Extraction misses,
out-of-set values coming back from the reasoning service and unconfirmed
destructive tool calls are absorbed where they happen:

- extraction miss       -> null fields, ``confidence="low"``
- validation failure    -> documented default value, ``confidence="low"``
- destructive guard     -> the call runs as a non-mutating preview
"""


class SpendwiseError(Exception):
    """Base exception for all Spendwise errors."""

    pass


class RemoteServiceFailure(SpendwiseError):
    """Raised when the reasoning or embedding service fails or returns nothing."""

    pass


class MalformedOutput(SpendwiseError):
    """Raised when structured output cannot be parsed even after repair."""

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


class ToolExecutionFailure(SpendwiseError):
    """Raised when a tool call fails; aborts the current assistant turn."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name


class UnknownToolError(ToolExecutionFailure):
    """Raised when the reasoning service requests a tool that is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, "unknown tool")


class ToolArgumentError(ToolExecutionFailure):
    """Raised when tool arguments fail schema validation."""

    pass


class OperationCancelled(SpendwiseError):
    """Raised when the caller cancels an in-flight operation."""

    pass


class DeadlineExceeded(OperationCancelled):
    """Raised when the caller-supplied deadline expires."""

    pass
