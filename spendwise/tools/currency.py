"""
Currency Conversion Layer.

Stateless conversion over a fixed table of rates relative to one base unit
(USD). Every monetary aggregate in the assistant passes through ``convert``
exactly once before it is summed.

Unknown currency codes are treated as rate 1.0, i.e. as if they were the base
currency. This permissive default is intentional: a record with an unexpected
code still shows up in totals instead of failing the whole query. Each such
lookup is logged as ``unknown_currency_rate_defaulted``.

Usage:
    >>> convert(Decimal("100"), "USD", "MYR")
    Decimal('447.0')
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from spendwise.logging_config import get_logger

logger = get_logger(__name__)


class CurrencyCode(str, Enum):
    """Currencies supported by the tracker."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CNY = "CNY"
    SGD = "SGD"
    MYR = "MYR"


SUPPORTED_CURRENCIES: tuple[str, ...] = tuple(c.value for c in CurrencyCode)

BASE_CURRENCY = CurrencyCode.USD.value

# Units of each currency per 1 USD
DEFAULT_RATES: Mapping[str, Decimal] = MappingProxyType(
    {
        "USD": Decimal("1.0"),
        "EUR": Decimal("0.92"),
        "GBP": Decimal("0.79"),
        "JPY": Decimal("149.50"),
        "CNY": Decimal("7.24"),
        "SGD": Decimal("1.34"),
        "MYR": Decimal("4.47"),
    }
)

CURRENCY_SYMBOLS: Mapping[str, str] = MappingProxyType(
    {
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "¥",
        "CNY": "¥",
        "SGD": "S$",
        "MYR": "RM",
    }
)

# Symbols and loose spellings that show up in model output and user settings
_CODE_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "$": "USD",
        "US$": "USD",
        "€": "EUR",
        "£": "GBP",
        "¥": "JPY",
        "RM": "MYR",
        "S$": "SGD",
        "RMB": "CNY",
    }
)

ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "CNY"})

CENT = Decimal("0.01")


class CurrencyError(Exception):
    """Raised for amounts that cannot be interpreted as money."""

    pass


def normalize_currency_code(code: str | None, default: str = BASE_CURRENCY) -> str:
    """
    Normalize a currency code or symbol to an upper-case ISO code.

    Blank input resolves to ``default``. Codes outside the supported set are
    returned upper-cased as-is so the rate lookup can apply its permissive
    default.
    """
    if code is None or not str(code).strip():
        return default
    cleaned = str(code).strip().upper()
    return _CODE_ALIASES.get(cleaned, cleaned)


def is_supported_currency(code: str | None) -> bool:
    """Check whether ``code`` is one of the enumerated currencies."""
    return code is not None and code.strip().upper() in SUPPORTED_CURRENCIES


def resolve_default_currency(code: str | None) -> str:
    """
    Normalize a caller's default currency, falling back to the base currency.

    Unlike record currencies, a default is stamped onto new amounts, so it must
    be one of the supported codes.
    """
    currency = normalize_currency_code(code)
    if not is_supported_currency(currency):
        logger.warning("default_currency_unsupported", currency=currency, fallback=BASE_CURRENCY)
        return BASE_CURRENCY
    return currency


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a numeric value to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise CurrencyError(f"Not a monetary amount: {value!r}")
    try:
        return Decimal(str(value))
    except ArithmeticError as e:
        raise CurrencyError(f"Not a monetary amount: {value!r}") from e


def round_money(value: Decimal | float | int) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RateTable:
    """
    Immutable lookup table of rates relative to the base currency.

    Example:
        >>> table = RateTable().with_rates(EUR=Decimal("0.95"))
        >>> table.convert(Decimal("10"), "USD", "EUR")
        Decimal('9.5')
    """

    rates: Mapping[str, Decimal] = field(default_factory=lambda: DEFAULT_RATES)
    base_currency: str = BASE_CURRENCY

    def rate(self, code: str | None) -> Decimal:
        """Rate of ``code`` against the base; unknown codes count as 1.0."""
        normalized = normalize_currency_code(code, default=self.base_currency)
        rate = self.rates.get(normalized)
        if rate is None:
            logger.warning("unknown_currency_rate_defaulted", currency=normalized)
            return Decimal("1")
        return rate

    def exchange_rate(self, from_currency: str | None, to_currency: str | None) -> Decimal:
        """Units of ``to_currency`` per unit of ``from_currency``."""
        source = normalize_currency_code(from_currency, default=self.base_currency)
        target = normalize_currency_code(to_currency, default=self.base_currency)
        if source == target:
            return Decimal("1")
        return self.rate(target) / self.rate(source)

    def convert(
        self,
        amount: Decimal | float | int,
        from_currency: str | None,
        to_currency: str | None,
    ) -> Decimal:
        """
        Convert ``amount`` from one currency to another via the base currency.

        Same-currency conversion returns the amount unchanged. The result is
        not rounded; callers round once after aggregating.
        """
        value = to_decimal(amount)
        source = normalize_currency_code(from_currency, default=self.base_currency)
        target = normalize_currency_code(to_currency, default=self.base_currency)
        if source == target:
            return value
        in_base = value / self.rate(source)
        return in_base * self.rate(target)

    def with_rates(self, **rates: Decimal | float | str) -> "RateTable":
        """Return a new table with the given rates replaced or added."""
        merged = dict(self.rates)
        for code, rate in rates.items():
            merged[normalize_currency_code(code)] = to_decimal(rate)
        return RateTable(rates=MappingProxyType(merged), base_currency=self.base_currency)


DEFAULT_RATE_TABLE = RateTable()


def convert(
    amount: Decimal | float | int,
    from_currency: str | None,
    to_currency: str | None,
    rates: RateTable = DEFAULT_RATE_TABLE,
) -> Decimal:
    """Convert ``amount`` using ``rates`` (the built-in table by default)."""
    return rates.convert(amount, from_currency, to_currency)


def exchange_rate(
    from_currency: str | None,
    to_currency: str | None,
    rates: RateTable = DEFAULT_RATE_TABLE,
) -> Decimal:
    """Units of ``to_currency`` per unit of ``from_currency``."""
    return rates.exchange_rate(from_currency, to_currency)


def format_amount(amount: Decimal | float | int, currency: str | None = None) -> str:
    """
    Format an amount with its currency symbol, e.g. ``RM 1,250.50`` or ``¥ 1,500``.
    """
    code = normalize_currency_code(currency)
    symbol = CURRENCY_SYMBOLS.get(code, code)
    value = to_decimal(amount)
    if code in ZERO_DECIMAL_CURRENCIES:
        text = f"{value.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"
    else:
        text = f"{round_money(value):,}"
    return f"{symbol} {text}"
