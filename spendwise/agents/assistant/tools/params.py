"""
Parameter models for the assistant tools.

Each model doubles as the JSON schema the reasoning service sees. Category
and currency values are matched case-insensitively against the fixed sets;
anything outside them fails validation.
"""

import datetime as dt
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    WithJsonSchema,
    model_validator,
)

from spendwise.schemas.extraction import EXPENSE_CATEGORIES, INCOME_SOURCES
from spendwise.tools.currency import (
    SUPPORTED_CURRENCIES,
    is_supported_currency,
    normalize_currency_code,
)
from spendwise.tools.periods import NAMED_PERIODS, is_month


def _canonical(value: str, allowed: tuple[str, ...], label: str) -> str:
    for option in allowed:
        if option.lower() == value.strip().lower():
            return option
    raise ValueError(f"unknown {label} {value!r}; expected one of {', '.join(allowed)}")


def _category(value: str) -> str:
    return _canonical(value, EXPENSE_CATEGORIES, "category")


def _income_source(value: str) -> str:
    return _canonical(value, INCOME_SOURCES, "income source")


def _currency(value: str) -> str:
    code = normalize_currency_code(value)
    if not is_supported_currency(code):
        raise ValueError(f"unsupported currency {value!r}")
    return code


def _period(value: str) -> str:
    value = value.strip()
    if value in NAMED_PERIODS or is_month(value):
        return value
    raise ValueError(f"unknown period {value!r}; use a named period or YYYY-MM")


def _month(value: str) -> str:
    if not is_month(value):
        raise ValueError(f"invalid month {value!r}, expected YYYY-MM")
    return value.strip()


Category = Annotated[
    str,
    AfterValidator(_category),
    WithJsonSchema({"type": "string", "enum": list(EXPENSE_CATEGORIES)}),
]
IncomeSource = Annotated[
    str,
    AfterValidator(_income_source),
    WithJsonSchema({"type": "string", "enum": list(INCOME_SOURCES)}),
]
CurrencyCode = Annotated[
    str,
    AfterValidator(_currency),
    WithJsonSchema({"type": "string", "enum": list(SUPPORTED_CURRENCIES)}),
]
Period = Annotated[str, AfterValidator(_period)]
Month = Annotated[str, AfterValidator(_month)]


class ToolParams(BaseModel):
    """Base parameters model; unknown arguments are ignored."""

    model_config = ConfigDict(extra="ignore")


class DisplayCurrencyParams(ToolParams):
    """Parameters shared by every tool that reports money."""

    display_currency: CurrencyCode | None = Field(
        default=None,
        description=(
            "Currency to display amounts in (e.g. USD, MYR, SGD). "
            "If provided, overrides the user's default currency."
        ),
    )


# =============================================================================
# Expenses
# =============================================================================


class GetExpensesParams(DisplayCurrencyParams):
    category: Category | None = Field(default=None, description="Filter by expense category")
    start_date: dt.date | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: dt.date | None = Field(default=None, description="End date (YYYY-MM-DD)")
    period: Period | None = Field(
        default=None, description="Period to list when no explicit dates are given"
    )
    min_amount: float | None = Field(
        default=None, ge=0, description="Minimum amount, in the display currency"
    )
    max_amount: float | None = Field(
        default=None, ge=0, description="Maximum amount, in the display currency"
    )
    sort_by: Literal["date", "amount", "category"] = Field(default="date")
    sort_order: Literal["asc", "desc"] = Field(default="desc")
    limit: int = Field(default=50, ge=1, le=200, description="Maximum expenses to return")


class SearchTransactionsParams(DisplayCurrencyParams):
    query: str = Field(..., min_length=1, description="Text to look for in descriptions")
    type: Literal["expense", "income", "both"] = Field(
        default="both", description="Transaction type to search"
    )
    limit: int = Field(default=20, ge=1, le=100, description="Maximum results per type")


class SpendingSummaryParams(DisplayCurrencyParams):
    period: Period | None = Field(
        default=None,
        description="Period to summarize; defaults to the period the user is viewing",
    )
    group_by: Literal["category", "date", "month"] | None = Field(
        default="category", description="Group the summary by field"
    )
    include_comparison: bool = Field(
        default=True, description="Include comparison with the previous period"
    )


class CreateExpenseParams(ToolParams):
    amount: float = Field(..., gt=0, description="Expense amount")
    description: str = Field(..., min_length=1, description="Description of the expense")
    category: Category = Field(..., description="Expense category")
    date: dt.date | None = Field(
        default=None, description="Date of the expense (YYYY-MM-DD, defaults to today)"
    )
    currency: CurrencyCode | None = Field(
        default=None, description="Currency code (defaults to the user's currency)"
    )


class DeleteExpensesParams(DisplayCurrencyParams):
    category: Category | None = Field(default=None, description="Only expenses in this category")
    start_date: dt.date | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: dt.date | None = Field(default=None, description="End date (YYYY-MM-DD)")
    description_contains: str | None = Field(
        default=None, description="Only expenses whose description contains this text"
    )
    min_amount: float | None = Field(default=None, ge=0)
    max_amount: float | None = Field(default=None, ge=0)
    confirm: bool = Field(
        default=False,
        description=(
            "False returns a preview of the matching expenses and deletes nothing. "
            "Only set true after the user confirmed the preview."
        ),
    )

    @model_validator(mode="after")
    def require_selection(self) -> "DeleteExpensesParams":
        if not any(
            value is not None
            for value in (
                self.category,
                self.start_date,
                self.end_date,
                self.description_contains,
                self.min_amount,
                self.max_amount,
            )
        ):
            raise ValueError("at least one selection criterion is required")
        return self


# =============================================================================
# Budgets
# =============================================================================


class GetBudgetParams(DisplayCurrencyParams):
    category: Category | None = Field(default=None, description="Specific budget category")
    include_spent: bool = Field(
        default=True, description="Include the amount spent against each budget"
    )
    month: Month | None = Field(
        default=None,
        description="Month to calculate spent amounts for (YYYY-MM). Always provide it.",
    )


class CreateBudgetParams(ToolParams):
    category: Category = Field(..., description="Budget category")
    amount: float = Field(..., gt=0, description="Monthly budget amount")
    currency: CurrencyCode | None = Field(
        default=None, description="Currency code (defaults to the user's currency)"
    )


# =============================================================================
# Income, subscriptions, portfolio, goals
# =============================================================================


class GetIncomeParams(DisplayCurrencyParams):
    source: IncomeSource | None = Field(
        default=None,
        description="Filter by income source",
    )
    start_date: dt.date | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: dt.date | None = Field(default=None, description="End date (YYYY-MM-DD)")
    limit: int = Field(default=50, ge=1, le=200)


class GetSubscriptionsParams(DisplayCurrencyParams):
    is_active: bool | None = Field(default=True, description="Filter by active status")
    upcoming_days: int | None = Field(
        default=None, ge=0, le=366, description="Only subscriptions due in the next N days"
    )


class GetPortfolioParams(DisplayCurrencyParams):
    pass


class GetHoldingsParams(DisplayCurrencyParams):
    symbol: str | None = Field(default=None, description="Symbol, e.g. AAPL or BTC-USD")
    asset_class: (
        Literal["stock", "crypto", "bond", "etf", "mutual_fund", "real_estate", "commodities"]
        | None
    ) = Field(default=None, description="Filter by asset class")


class GetGoalsParams(DisplayCurrencyParams):
    include_completed: bool = Field(default=False, description="Include completed goals")


# =============================================================================
# Charts and semantic search
# =============================================================================


class GenerateChartParams(DisplayCurrencyParams):
    chart_type: Literal["bar", "line", "pie"] = Field(default="bar")
    data_source: Literal["spending_by_category", "spending_over_time", "budget_vs_actual"] = Field(
        default="spending_by_category", description="Which figures to plot"
    )
    period: Period | None = Field(
        default=None, description="Period to plot; defaults to the period the user is viewing"
    )
    title: str | None = Field(default=None, description="Chart title")


class SemanticSearchParams(DisplayCurrencyParams):
    query: str = Field(
        ..., min_length=1, description="What the purchases were like, in natural language"
    )
    category: Category | None = Field(default=None)
    start_date: dt.date | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: dt.date | None = Field(default=None, description="End date (YYYY-MM-DD)")
    limit: int | None = Field(default=None, ge=1, le=50)
