"""
Application configuration management using Pydantic Settings.
All settings are loaded from environment variables.

Components receive a ``Settings`` value through their constructors; the
module-level ``settings`` instance is only read at the composition root.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Database Configuration
    # =========================================================================
    postgres_user: str = Field(default="spendwise_user")
    postgres_password: str = Field(default="spendwise_password")
    postgres_db: str = Field(default="spendwise_db")
    postgres_host: str = Field(default="localhost")
    postgres_port: int = Field(default=5432)

    # Full SQLAlchemy URL; takes precedence over the postgres_* parts
    database_url: str = Field(default="")

    @property
    def async_database_url(self) -> str:
        """Construct async database connection URL."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # =========================================================================
    # LLM Provider Configuration
    # =========================================================================
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    google_api_key: str = Field(default="")
    llm_provider: Literal["openai", "anthropic", "google"] = Field(default="openai")

    # Model used for the tool-calling conversation
    chat_model_openai: str = Field(default="gpt-4o")
    chat_model_anthropic: str = Field(default="claude-3-5-sonnet-20241022")
    chat_model_google: str = Field(default="gemini-2.5-flash")
    chat_temperature: float = Field(default=0.3)

    # Extraction calls run colder for deterministic output
    extraction_temperature: float = Field(default=0.1)
    extraction_max_tokens: int = Field(default=1024)

    # =========================================================================
    # Embeddings Configuration
    # =========================================================================
    embedding_model_openai: str = Field(default="text-embedding-3-small")
    embedding_model_google: str = Field(default="models/text-embedding-004")
    embedding_dimension: int = Field(default=1536)

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="json")

    # =========================================================================
    # Currency Settings
    # =========================================================================
    default_currency: str = Field(default="USD")

    # =========================================================================
    # Assistant (Tool Orchestrator) Settings
    # =========================================================================
    # "abort": the first failing tool aborts the turn
    # "isolate": failed tools are reported back to the model as error results
    tool_failure_policy: Literal["abort", "isolate"] = Field(default="abort")
    max_tool_rounds: int = Field(default=1, ge=1, le=5)
    # Number of prior turns sent to the reasoning service (0 = all)
    history_window: int = Field(default=0, ge=0)
    request_timeout_seconds: float | None = Field(default=None)

    # =========================================================================
    # Semantic Search Settings
    # =========================================================================
    semantic_similarity_threshold: float = Field(default=0.65, ge=0.0, le=1.0)
    semantic_search_limit: int = Field(default=10, ge=1, le=100)
    semantic_search_fallback: Literal["keyword", "fail"] = Field(default="keyword")

    # =========================================================================
    # Application Settings
    # =========================================================================
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    @property
    def has_llm_credentials(self) -> bool:
        """Check if the configured provider has an API key."""
        return bool(
            {
                "openai": self.openai_api_key,
                "anthropic": self.anthropic_api_key,
                "google": self.google_api_key,
            }.get(self.llm_provider)
        )


# Global settings instance (composition root only)
settings = Settings()
