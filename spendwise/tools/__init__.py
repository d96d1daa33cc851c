"""
Tools package for Spendwise.

Provides the deterministic building blocks used by the services and agents:
- Currency: fixed-rate conversion and formatting
- Extraction: local amount/date/category parsing and structured-output repair
"""

from spendwise.tools.currency import (
    DEFAULT_RATE_TABLE,
    SUPPORTED_CURRENCIES,
    CurrencyCode,
    CurrencyError,
    RateTable,
    convert,
    exchange_rate,
    format_amount,
    normalize_currency_code,
    round_money,
)

__all__ = [
    "DEFAULT_RATE_TABLE",
    "SUPPORTED_CURRENCIES",
    "CurrencyCode",
    "CurrencyError",
    "RateTable",
    "convert",
    "exchange_rate",
    "format_amount",
    "normalize_currency_code",
    "round_money",
]
