"""
Structured logging configuration using structlog.

Every module logs through ``get_logger(__name__)`` with snake_case event names
and keyword context. ``request_context`` binds the request id and user id for
the duration of one assistant turn, so tool, store and delegate events carry
them without passing a logger around.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from spendwise.config import Settings

# Client libraries that log every HTTP round-trip at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "aiosqlite")


def _add_environment(config: Settings):
    def processor(logger, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("environment", config.environment)
        return event_dict

    return processor


def configure_logging(config: Settings) -> None:
    """
    Configure structlog and the standard library root logger.

    JSON output in deployed environments, colored console output for local
    runs (``log_format="console"``).
    """
    if config.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_environment(config),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, config.log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


@contextmanager
def request_context(request_id: str, user_id: str) -> Iterator[None]:
    """Bind ``request_id`` and ``user_id`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(request_id=request_id, user_id=user_id):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("tool_executed", tool="get_budget", user_id=user_id)
    """
    return structlog.get_logger(name)
