"""
Pydantic schemas for transaction extraction from free text and images.
Used by the Extraction Engine and the AI Delegate Client.
"""

import datetime as dt
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendwise.tools.currency import (
    DEFAULT_RATE_TABLE,
    CurrencyCode,
    RateTable,
    normalize_currency_code,
)

Confidence = Literal["high", "medium", "low"]
ExtractionMethod = Literal["keyword", "delegate", "default"]
RecordKind = Literal["expense", "income"]

# Ordered: the first category wins keyword-score ties
EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Groceries",
    "Entertainment",
    "Shopping",
    "Utilities",
    "Healthcare",
    "Housing",
    "Personal Care",
    "Miscellaneous",
)
DEFAULT_CATEGORY = "Miscellaneous"

INCOME_SOURCES: tuple[str, ...] = (
    "Salary",
    "Freelance",
    "Business",
    "Investment",
    "Rental",
    "Gift",
    "Bonus",
    "Other",
)
DEFAULT_INCOME_SOURCE = "Other"

DEFAULT_RECORD_KIND: RecordKind = "expense"


class MonetaryAmount(BaseModel):
    """A non-negative amount in one of the supported currencies."""

    model_config = ConfigDict(frozen=True)

    value: Decimal = Field(..., ge=0, description="Amount as a decimal number")
    currency: CurrencyCode = Field(..., description="ISO 4217 currency code")

    @field_validator("currency", mode="before")
    @classmethod
    def currency_uppercase(cls, v: str) -> str:
        """Accept symbols and lower-case codes."""
        return normalize_currency_code(v)

    def to(self, currency: str, rates: RateTable = DEFAULT_RATE_TABLE) -> "MonetaryAmount":
        """Convert to another currency."""
        target = normalize_currency_code(currency)
        return MonetaryAmount(
            value=rates.convert(self.value, self.currency.value, target),
            currency=target,
        )


class ExtractionResult(BaseModel):
    """
    Structured transaction fields extracted from one piece of input.

    Produced by the Extraction Engine (``method`` keyword/default) or the AI
    Delegate Client (``method`` delegate). Never mutated after creation.
    """

    model_config = ConfigDict(frozen=True)

    amount: MonetaryAmount | None = None
    date: dt.date | None = None
    category: str | None = None
    cleaned_description: str = ""
    confidence: Confidence = "low"
    method: ExtractionMethod = "default"
    kind: RecordKind = DEFAULT_RECORD_KIND

    def with_date(self, fallback: dt.date | None) -> "ExtractionResult":
        """Copy with ``fallback`` filled in when no date was extracted."""
        if self.date is not None or fallback is None:
            return self
        return self.model_copy(update={"date": fallback})


class DelegateExtraction(BaseModel):
    """
    Loosely-typed item as returned by the reasoning service.

    Every field is optional because the service is probabilistic; values are
    validated against the fixed sets afterwards by the delegate client.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: str | None = None
    source: str | None = None
    type: str | None = None
    confidence: str | None = None
    amount: Decimal | None = Field(default=None, alias="extractedAmount")
    currency: str | None = Field(default=None, alias="extractedCurrency")
    date: str | None = Field(default=None, alias="extractedDate")
    description: str | None = Field(default=None, alias="cleanedDescription")

    @field_validator("amount", mode="before")
    @classmethod
    def drop_unusable_amount(cls, v: object) -> object:
        """Treat blanks, non-finite and negative numbers as missing."""
        if v in ("", None):
            return None
        try:
            value = Decimal(str(v).replace(",", ""))
            if not value.is_finite() or value < 0:
                return None
        except ArithmeticError:
            return None
        return value
