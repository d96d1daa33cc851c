"""
Centralized prompts for Spendwise.

All LLM prompts are defined in this package for easy maintenance and
versioning.
"""

from spendwise.prompts.assistant import ASSISTANT_SYSTEM_PROMPT, build_system_instructions
from spendwise.prompts.extraction import (
    CATEGORIZE_PROMPT,
    INCOME_PROMPT,
    MULTI_ITEM_PROMPT,
    RECEIPT_IMAGE_PROMPT,
    prompt_variables,
)

__all__ = [
    # Assistant
    "ASSISTANT_SYSTEM_PROMPT",
    "build_system_instructions",
    # Extraction
    "CATEGORIZE_PROMPT",
    "INCOME_PROMPT",
    "MULTI_ITEM_PROMPT",
    "RECEIPT_IMAGE_PROMPT",
    "prompt_variables",
]
