"""
Unit tests for the resilient structured-output parser.

Tests:
- Strict parsing and code fences
- Truncated output repair
- Salvage of flat objects with required fields
- Failure on empty or unrecoverable input
"""

import json

import pytest

from spendwise.errors import MalformedOutput
from spendwise.tools.extraction.json_repair import (
    parse_json_array,
    parse_json_object,
    strip_code_fences,
)


class TestParseJsonArray:
    """Tests for parse_json_array()."""

    def test_valid_array(self):
        assert parse_json_array('[{"a": 1}, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_single_object_becomes_list(self):
        assert parse_json_array('{"a": 1}') == [{"a": 1}]

    def test_code_fence_stripped(self):
        text = '```json\n[{"type": "expense"}]\n```'
        assert parse_json_array(text) == [{"type": "expense"}]

    def test_truncated_output_keeps_closed_objects(self):
        """An object cut off mid-key is dropped, the closed ones survive."""
        result = parse_json_array('[{"a":1},{"a":2},{"a"')
        assert result == [{"a": 1}, {"a": 2}]

    def test_truncated_mid_value(self):
        text = '[{"type": "expense", "cleanedDescription": "Lunch"}, {"type": "inc'
        assert parse_json_array(text) == [{"type": "expense", "cleanedDescription": "Lunch"}]

    def test_salvage_requires_fields(self):
        text = (
            'Here you go: {"type": "expense", "cleanedDescription": "Lunch"} '
            'and {"broken": } {"type": "income"}'
        )
        result = parse_json_array(text, required_fields=("type", "cleanedDescription"))
        assert result == [{"type": "expense", "cleanedDescription": "Lunch"}]

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_input_raises(self, text):
        with pytest.raises(MalformedOutput):
            parse_json_array(text)

    def test_unrecoverable_input_chains_original_error(self):
        with pytest.raises(MalformedOutput) as exc_info:
            parse_json_array("not json at all")

        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
        assert exc_info.value.raw_text == "not json at all"

    def test_array_of_scalars_raises(self):
        with pytest.raises(MalformedOutput):
            parse_json_array("[1, 2, 3]")


class TestParseJsonObject:
    """Tests for parse_json_object()."""

    def test_object(self):
        assert parse_json_object('{"category": "Groceries"}') == {"category": "Groceries"}

    def test_array_returns_first(self):
        assert parse_json_object('[{"a": 1}, {"a": 2}]') == {"a": 1}

    def test_prose_around_object(self):
        assert parse_json_object('Sure! {"category": "Shopping"} Hope that helps') == {
            "category": "Shopping"
        }

    def test_strip_code_fences(self):
        assert strip_code_fences("```\n{}\n```") == "{}"
