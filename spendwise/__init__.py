"""
Spendwise: natural-language interface for a personal-finance tracker.

Extracts transactions from free text and receipts, and answers questions about
a user's finances through a tool-calling assistant.
"""

__version__ = "0.1.0"
