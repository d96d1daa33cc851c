"""
Storage layer for Spendwise.

Exposes the financial record store contract and its SQLAlchemy implementation.
"""

from spendwise.storage.financial_store import (
    DEFAULT_LIST_LIMIT,
    FinancialStore,
    RecordFilter,
    SqlFinancialStore,
    cosine_similarity,
)

__all__ = [
    "DEFAULT_LIST_LIMIT",
    "FinancialStore",
    "RecordFilter",
    "SqlFinancialStore",
    "cosine_similarity",
]
