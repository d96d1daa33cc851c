"""
AI Delegate Client.

Wraps the remote reasoning service for single-item categorization, multi-item
parsing, income classification, receipt images and embeddings.

Every extraction call has exactly one fallback hop: any remote failure
(exception, empty reply, reply the resilient parser rejects, schema mismatch)
falls back to the local Extraction Engine. Values outside the fixed sets are
coerced to their documented defaults with ``confidence="low"``. Deadline
expiry and cancellation are never absorbed by the fallback.
"""

import base64
import io
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from spendwise.config import Settings
from spendwise.deadline import Deadline, run_with_deadline
from spendwise.errors import MalformedOutput, OperationCancelled, RemoteServiceFailure
from spendwise.logging_config import get_logger
from spendwise.prompts.extraction import (
    CATEGORIZE_PROMPT,
    INCOME_PROMPT,
    MULTI_ITEM_PROMPT,
    RECEIPT_IMAGE_PROMPT,
    prompt_variables,
)
from spendwise.schemas.extraction import (
    DEFAULT_CATEGORY,
    DEFAULT_INCOME_SOURCE,
    DEFAULT_RECORD_KIND,
    EXPENSE_CATEGORIES,
    INCOME_SOURCES,
    DelegateExtraction,
    ExtractionResult,
    MonetaryAmount,
    RecordKind,
)
from spendwise.services.llm import embedding_model_name, get_chat_model, get_embeddings
from spendwise.tools.currency import (
    is_supported_currency,
    normalize_currency_code,
    resolve_default_currency,
)
from spendwise.tools.extraction.json_repair import parse_json_array, parse_json_object
from spendwise.tools.extraction.local_extractor import (
    capitalize_first,
    extract,
    extract_income,
)

logger = get_logger(__name__)

_CONFIDENCE_LEVELS = ("high", "medium", "low")
_RECORD_KINDS = ("expense", "income")

# Conditions that trigger the local fallback
_FALLBACK_ERRORS = (RemoteServiceFailure, MalformedOutput, ValidationError)


def detect_image_mime(image_bytes: bytes) -> str:
    """
    Verify ``image_bytes`` with Pillow and return its MIME type.

    Raises:
        ValueError: If the bytes are not a readable image
    """
    if not image_bytes:
        raise ValueError("empty image")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError(f"unsupported or corrupt image: {e}") from e
    return Image.MIME.get(image_format or "", "image/jpeg")


def message_text(message: BaseMessage | Any) -> str:
    """Plain text of a chat model reply (string or list-of-blocks content)."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


def _parse_iso_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class AIDelegateClient:
    """
    Client for the remote reasoning and embedding services.

    Models are created lazily from ``config`` unless injected; a model that
    cannot be created (e.g. missing credentials) counts as a remote failure.

    Example:
        >>> client = AIDelegateClient(settings)
        >>> result = await client.categorize("Lunch RM30", default_currency="SGD")
    """

    def __init__(
        self,
        config: Settings,
        chat_model: BaseChatModel | None = None,
        vision_model: BaseChatModel | None = None,
        embeddings: Embeddings | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.config = config
        self._chat_model = chat_model
        self._vision_model = vision_model
        self._embeddings = embeddings
        self._today = today

    # ─── Model access ────────────────────────────────────────────────────────

    def _get_chat_model(self) -> BaseChatModel:
        if self._chat_model is None:
            self._chat_model = get_chat_model(self.config, purpose="extraction")
        return self._chat_model

    def _get_vision_model(self) -> BaseChatModel:
        return self._vision_model or self._get_chat_model()

    def _get_embeddings(self) -> Embeddings:
        if self._embeddings is None:
            self._embeddings = get_embeddings(self.config)
        return self._embeddings

    @property
    def embedding_model(self) -> str:
        return embedding_model_name(self.config)

    def _variables(self, default_currency: str, **extra: str) -> dict[str, str]:
        today = self._today()
        return {
            **prompt_variables(
                default_currency=default_currency,
                today=today.isoformat(),
                yesterday=(today - timedelta(days=1)).isoformat(),
            ),
            **extra,
        }

    async def _complete(
        self,
        prompt: ChatPromptTemplate,
        variables: dict[str, str],
        deadline: Deadline | None,
        model: BaseChatModel | None = None,
    ) -> str:
        """
        Run ``prompt`` against the model and return the reply text.

        Raises:
            RemoteServiceFailure: On any model error or an empty reply
            OperationCancelled: On deadline expiry or caller cancellation
        """
        try:
            chain = prompt | (model or self._get_chat_model())
            reply = await run_with_deadline(chain.ainvoke(variables), deadline)
        except OperationCancelled:
            raise
        except Exception as e:
            raise RemoteServiceFailure(f"reasoning service call failed: {e}") from e

        text = message_text(reply)
        if not text.strip():
            raise RemoteServiceFailure("reasoning service returned an empty reply")
        return text

    # ─── Validation ──────────────────────────────────────────────────────────

    def _to_result(
        self,
        item: DelegateExtraction,
        default_currency: str,
        original_text: str,
        kind: RecordKind | None = None,
    ) -> ExtractionResult:
        """Validate one delegate item against the fixed sets."""
        coerced: list[str] = []

        confidence = (item.confidence or "").lower()
        if confidence not in _CONFIDENCE_LEVELS:
            confidence = "low"

        if kind is None:
            kind = (item.type or "").lower()
            if kind not in _RECORD_KINDS:
                coerced.append("type")
                kind = DEFAULT_RECORD_KIND

        if kind == "income":
            category = item.source if item.source in INCOME_SOURCES else None
            if category is None:
                coerced.append("source")
                category = DEFAULT_INCOME_SOURCE
        else:
            category = item.category if item.category in EXPENSE_CATEGORIES else None
            if category is None:
                coerced.append("category")
                category = DEFAULT_CATEGORY

        currency = normalize_currency_code(item.currency, default=default_currency)
        if not is_supported_currency(currency):
            coerced.append("currency")
            currency = default_currency

        if coerced:
            confidence = "low"
            logger.info("delegate_value_coerced", fields=coerced)

        amount = (
            MonetaryAmount(value=item.amount, currency=currency)
            if item.amount is not None
            else None
        )
        return ExtractionResult(
            amount=amount,
            date=_parse_iso_date(item.date),
            category=category,
            cleaned_description=(item.description or "").strip() or capitalize_first(original_text),
            confidence=confidence,
            method="delegate",
            kind=kind,
        )

    def _log_fallback(self, operation: str, error: Exception) -> None:
        logger.warning(
            "delegate_fallback",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )

    # ─── Operations ──────────────────────────────────────────────────────────

    async def categorize(
        self,
        text: str,
        default_currency: str = "USD",
        deadline: Deadline | None = None,
    ) -> ExtractionResult:
        """
        Categorize one expense and extract its fields.

        Falls back to the local Extraction Engine on any remote failure.
        """
        default_currency = resolve_default_currency(default_currency)
        try:
            raw = await self._complete(
                CATEGORIZE_PROMPT, self._variables(default_currency, text=text), deadline
            )
            item = DelegateExtraction.model_validate(parse_json_object(raw))
        except _FALLBACK_ERRORS as e:
            self._log_fallback("categorize", e)
            return extract(text, default_currency=default_currency, today=self._today())

        return self._to_result(item, default_currency, text, kind="expense")

    async def parse_multiple(
        self,
        text: str,
        default_currency: str = "USD",
        fallback_date: date | None = None,
        deadline: Deadline | None = None,
    ) -> list[ExtractionResult]:
        """
        Split a block of text into one result per transaction.

        Items without a date get ``fallback_date``. On failure the whole input
        is treated as a single item and extracted locally.
        """
        default_currency = resolve_default_currency(default_currency)
        try:
            raw = await self._complete(
                MULTI_ITEM_PROMPT, self._variables(default_currency, text=text), deadline
            )
            payloads = parse_json_array(raw, required_fields=("type", "cleanedDescription"))
            if not payloads:
                raise RemoteServiceFailure("reasoning service returned no items")
            items = [DelegateExtraction.model_validate(payload) for payload in payloads]
        except _FALLBACK_ERRORS as e:
            self._log_fallback("parse_multiple", e)
            single = extract(text, default_currency=default_currency, today=self._today())
            return [single.with_date(fallback_date)]

        results = [
            self._to_result(item, default_currency, text).with_date(fallback_date)
            for item in items
        ]
        logger.info("multiple_items_parsed", count=len(results))
        return results

    async def classify_income(
        self,
        text: str,
        default_currency: str = "USD",
        deadline: Deadline | None = None,
    ) -> ExtractionResult:
        """Classify an income entry; the source is returned in ``category``."""
        default_currency = resolve_default_currency(default_currency)
        try:
            raw = await self._complete(
                INCOME_PROMPT, self._variables(default_currency, text=text), deadline
            )
            item = DelegateExtraction.model_validate(parse_json_object(raw))
        except _FALLBACK_ERRORS as e:
            self._log_fallback("classify_income", e)
            return extract_income(text, default_currency=default_currency, today=self._today())

        return self._to_result(item, default_currency, text, kind="income")

    async def extract_from_image(
        self,
        image_bytes: bytes,
        default_currency: str = "USD",
        ocr_text: str | None = None,
        deadline: Deadline | None = None,
    ) -> ExtractionResult:
        """
        Extract a purchase from a receipt photo.

        Falls back to local extraction over ``ocr_text`` when given, otherwise
        to an empty low-confidence result.
        """
        default_currency = resolve_default_currency(default_currency)
        try:
            mime_type = detect_image_mime(image_bytes)
            variables = self._variables(
                default_currency,
                mime_type=mime_type,
                image_data=base64.b64encode(image_bytes).decode("ascii"),
            )
            raw = await self._complete(
                RECEIPT_IMAGE_PROMPT, variables, deadline, model=self._get_vision_model()
            )
            item = DelegateExtraction.model_validate(parse_json_object(raw))
        except (*_FALLBACK_ERRORS, ValueError) as e:
            self._log_fallback("extract_from_image", e)
            if ocr_text and ocr_text.strip():
                return extract(ocr_text, default_currency=default_currency, today=self._today())
            return ExtractionResult(confidence="low", method="default")

        return self._to_result(item, default_currency, ocr_text or "", kind="expense")

    async def embed(self, text: str, deadline: Deadline | None = None) -> list[float]:
        """
        Embed ``text`` into a fixed-length vector.

        Raises:
            RemoteServiceFailure: If the embedding service fails or returns nothing
            OperationCancelled: On deadline expiry or caller cancellation
        """
        try:
            vector = await run_with_deadline(self._get_embeddings().aembed_query(text), deadline)
        except OperationCancelled:
            raise
        except Exception as e:
            raise RemoteServiceFailure(f"embedding service call failed: {e}") from e

        if not vector:
            raise RemoteServiceFailure("embedding service returned an empty vector")
        return [float(x) for x in vector]
