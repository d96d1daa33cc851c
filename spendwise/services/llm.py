"""
LLM and embedding model factories.

Selects the LangChain chat model and embeddings implementation for the
configured provider. Credentials come from the ``Settings`` passed in.
"""

from typing import Literal

from langchain_anthropic import ChatAnthropic
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from langchain_openai import ChatOpenAI, OpenAIEmbeddings

from spendwise.config import Settings
from spendwise.logging_config import get_logger

logger = get_logger(__name__)

ModelPurpose = Literal["chat", "extraction"]


def get_chat_model(config: Settings, purpose: ModelPurpose = "chat") -> BaseChatModel:
    """
    Get configured chat model based on settings.

    Args:
        config: Application settings
        purpose: "chat" for the tool-calling conversation, "extraction" for
            cold, short structured replies

    Returns:
        Configured LangChain chat model

    Raises:
        ValueError: If provider is not supported or API key missing
    """
    provider = config.llm_provider.lower()
    temperature = (
        config.extraction_temperature if purpose == "extraction" else config.chat_temperature
    )
    extra = {"max_tokens": config.extraction_max_tokens} if purpose == "extraction" else {}

    if provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OPENAI_API_KEY not configured")

        logger.debug("initializing_openai_llm", model=config.chat_model_openai, purpose=purpose)
        return ChatOpenAI(
            model=config.chat_model_openai,
            api_key=config.openai_api_key,
            temperature=temperature,
            **extra,
        )

    elif provider == "anthropic":
        if not config.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not configured")

        logger.debug(
            "initializing_anthropic_llm", model=config.chat_model_anthropic, purpose=purpose
        )
        return ChatAnthropic(
            model=config.chat_model_anthropic,
            api_key=config.anthropic_api_key,
            temperature=temperature,
            **extra,
        )

    elif provider == "google":
        if not config.google_api_key:
            raise ValueError("GOOGLE_API_KEY not configured")

        logger.debug("initializing_google_llm", model=config.chat_model_google, purpose=purpose)
        google_extra = (
            {"max_output_tokens": config.extraction_max_tokens} if purpose == "extraction" else {}
        )
        return ChatGoogleGenerativeAI(
            model=config.chat_model_google,
            google_api_key=config.google_api_key,
            temperature=temperature,
            **google_extra,
        )

    else:
        raise ValueError(
            f"Unsupported LLM provider: {provider}. "
            f"Supported: openai, anthropic, google"
        )


def get_embeddings(config: Settings) -> Embeddings:
    """
    Get configured embeddings model.

    Anthropic has no embeddings endpoint, so that provider embeds through
    OpenAI when an OpenAI key is configured.

    Raises:
        ValueError: If no embeddings-capable provider has credentials
    """
    provider = config.llm_provider.lower()

    if provider == "google":
        if not config.google_api_key:
            raise ValueError("GOOGLE_API_KEY not configured")
        logger.debug("initializing_google_embeddings", model=config.embedding_model_google)
        return GoogleGenerativeAIEmbeddings(
            model=config.embedding_model_google,
            google_api_key=config.google_api_key,
        )

    if not config.openai_api_key:
        raise ValueError("OPENAI_API_KEY not configured (required for embeddings)")

    logger.debug("initializing_openai_embeddings", model=config.embedding_model_openai)
    return OpenAIEmbeddings(
        model=config.embedding_model_openai,
        api_key=config.openai_api_key,
        dimensions=config.embedding_dimension,
    )


def embedding_model_name(config: Settings) -> str:
    """Name of the embedding model ``get_embeddings`` would build."""
    if config.llm_provider.lower() == "google":
        return config.embedding_model_google
    return config.embedding_model_openai
