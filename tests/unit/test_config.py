"""Unit tests for Settings."""

import pytest
from pydantic import ValidationError

from spendwise.config import Settings


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_database_url_override(self, settings):
        assert settings.async_database_url.startswith("sqlite+aiosqlite:///")

    def test_postgres_url_from_parts(self):
        config = Settings(
            _env_file=None,
            database_url="",
            postgres_user="u",
            postgres_password="p",
            postgres_host="db",
            postgres_port=6543,
            postgres_db="money",
        )

        assert config.async_database_url == "postgresql+asyncpg://u:p@db:6543/money"

    def test_assistant_defaults(self):
        config = Settings(_env_file=None)

        assert config.tool_failure_policy == "abort"
        assert config.max_tool_rounds == 1
        assert config.history_window == 0
        assert config.semantic_similarity_threshold == 0.65
        assert config.semantic_search_fallback == "keyword"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TOOL_FAILURE_POLICY", "isolate")
        monkeypatch.setenv("DEFAULT_CURRENCY", "MYR")

        config = Settings(_env_file=None)

        assert config.tool_failure_policy == "isolate"
        assert config.default_currency == "MYR"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"tool_failure_policy": "retry"},
            {"max_tool_rounds": 0},
            {"semantic_similarity_threshold": 1.5},
            {"semantic_search_fallback": "ignore"},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)
