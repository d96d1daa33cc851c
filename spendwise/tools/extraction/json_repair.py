"""
Resilient parser for structured text returned by the reasoning service.

Streamed model output is regularly cut off in the middle of an object. The
parser recovers every fully closed object it can and refuses to return an
empty result for non-empty input:

1. strict parse (after stripping Markdown code fences)
2. truncate after the last fully closed object and close the array
3. salvage every flat ``{...}`` that parses and carries the required fields
4. give up with ``MalformedOutput`` chained to the original error
"""

import json
import re
from collections.abc import Iterable
from typing import Any

from spendwise.errors import MalformedOutput
from spendwise.logging_config import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_FLAT_OBJECT = re.compile(r"\{[^{}]*\}")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    return _CODE_FENCE.sub("", text.strip()).strip()


def _as_list(value: Any) -> list[dict[str, Any]] | None:
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list) and all(isinstance(item, dict) for item in value):
        return value
    return None


def _close_array(fragment: str) -> str:
    start = fragment.find("[")
    body = fragment[start:] if start != -1 else "[" + fragment[fragment.find("{") :]
    return body + "]"


def _truncation_candidates(text: str) -> Iterable[str]:
    """Array text cut after the last closed object, most generous cut first."""
    last_brace = text.rfind("}")
    if last_brace != -1:
        yield _close_array(text[: last_brace + 1])
    last_boundary = text.rfind("},")
    if last_boundary != -1 and last_boundary != last_brace:
        yield _close_array(text[: last_boundary + 1])


def _salvage_objects(text: str, required_fields: tuple[str, ...]) -> list[dict[str, Any]]:
    salvaged: list[str] = []
    for fragment in _FLAT_OBJECT.findall(text):
        try:
            item = json.loads(fragment)
        except json.JSONDecodeError:
            continue
        if isinstance(item, dict) and all(field in item for field in required_fields):
            salvaged.append(fragment)
    if not salvaged:
        return []
    return json.loads("[" + ",".join(salvaged) + "]")


def parse_json_array(
    text: str | None,
    required_fields: tuple[str, ...] = (),
) -> list[dict[str, Any]]:
    """
    Parse a JSON array of objects, repairing truncated output.

    Args:
        text: Raw model output, expected to contain ``[{...}, ...]``
        required_fields: Keys an object needs to survive the salvage pass

    Returns:
        The parsed objects; a lone object is returned as a one-item list

    Raises:
        MalformedOutput: If the input is empty or nothing is salvageable

    Example:
        >>> parse_json_array('[{"a": 1}, {"a": 2}, {"a"')
        [{'a': 1}, {'a': 2}]
    """
    if text is None or not text.strip():
        raise MalformedOutput("empty structured output", raw_text=text)

    cleaned = strip_code_fences(text)
    try:
        parsed = _as_list(json.loads(cleaned))
        if parsed is not None:
            return parsed
        original_error: Exception = MalformedOutput("expected an array of objects")
    except json.JSONDecodeError as e:
        original_error = e

    for candidate in _truncation_candidates(cleaned):
        try:
            parsed = _as_list(json.loads(candidate))
        except json.JSONDecodeError:
            continue
        if parsed:
            logger.info("structured_output_repaired", strategy="truncate", items=len(parsed))
            return parsed

    salvaged = _salvage_objects(cleaned, required_fields)
    if salvaged:
        logger.info("structured_output_repaired", strategy="salvage", items=len(salvaged))
        return salvaged

    logger.warning(
        "structured_output_unrecoverable",
        error=str(original_error),
        text_preview=cleaned[:100],
    )
    raise MalformedOutput(
        f"could not parse structured output: {original_error}",
        raw_text=text,
    ) from original_error


def parse_json_object(text: str | None) -> dict[str, Any]:
    """
    Parse a single JSON object reply.

    Falls back to the first object salvageable from the text. A reply holding
    an array returns its first element.

    Raises:
        MalformedOutput: If no object can be recovered
    """
    items = parse_json_array(text)
    if not items:
        raise MalformedOutput("structured output contained no object", raw_text=text)
    return items[0]
