"""
Prompts for transaction extraction delegated to the reasoning service.
Replies are raw JSON text; they go through the resilient parser, not
``with_structured_output``, because truncated replies must be repaired.
"""

from langchain_core.prompts import ChatPromptTemplate

from spendwise.schemas.extraction import EXPENSE_CATEGORIES, INCOME_SOURCES

CATEGORY_LIST = ", ".join(EXPENSE_CATEGORIES)
INCOME_SOURCE_LIST = ", ".join(INCOME_SOURCES)

_SHARED_RULES = """Rules:
- extractedAmount: number only (30 from "$30" or "30 dollars"), or null
- extractedCurrency: ISO code; $ means {default_currency}, RM→MYR, S$→SGD, €→EUR, £→GBP, ¥→JPY; null if absent
- extractedDate: YYYY-MM-DD; "today" → {today}, "yesterday"/"last night" → {yesterday}; null if absent
- cleanedDescription: only the item or service; drop amount, currency, date and the words
  "for", "cost", "costs", "paid", "pay", "spent", "spend", "purchase", "purchased", "buying", "bought", "at"
- Reply with JSON only, no Markdown"""

# =============================================================================
# Single expense categorization
# =============================================================================

CATEGORIZE_SYSTEM = (
    """You are an expense categorization assistant. Analyze one expense description and extract every relevant field.

Available categories: {categories}

Respond with one JSON object:
{{"category": "...", "confidence": "high|medium|low", "extractedAmount": 30, "extractedCurrency": "USD", "extractedDate": "YYYY-MM-DD", "cleanedDescription": "..."}}

"""
    + _SHARED_RULES
    + """

Example:
Input: "uber to office today RM25"
Output: {{"category": "Transportation", "confidence": "high", "extractedAmount": 25, "extractedCurrency": "MYR", "extractedDate": "{today}", "cleanedDescription": "uber to office"}}"""
)

CATEGORIZE_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", CATEGORIZE_SYSTEM),
        ("user", 'Description: "{text}"'),
    ]
)

# =============================================================================
# Multi-item parsing
# =============================================================================

MULTI_ITEM_SYSTEM = (
    """You split a block of text that may describe several transactions into separate items.

Expense categories: {categories}
Income sources: {income_sources}

Respond with a JSON array, one object per transaction:
[{{"type": "expense|income", "category": "...", "source": "...", "confidence": "high|medium|low", "extractedAmount": 12.5, "extractedCurrency": "USD", "extractedDate": "YYYY-MM-DD", "cleanedDescription": "..."}}]

- "category" is required for expenses; "source" is required for income
- Dates that are not mentioned stay null
"""
    + _SHARED_RULES
)

MULTI_ITEM_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", MULTI_ITEM_SYSTEM),
        ("user", "Text:\n{text}"),
    ]
)

# =============================================================================
# Income classification
# =============================================================================

INCOME_SYSTEM = (
    """You classify one income entry.

Available sources: {income_sources}

Respond with one JSON object:
{{"source": "...", "confidence": "high|medium|low", "extractedAmount": 5000, "extractedCurrency": "USD", "extractedDate": "YYYY-MM-DD", "cleanedDescription": "..."}}

"""
    + _SHARED_RULES
)

INCOME_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", INCOME_SYSTEM),
        ("user", 'Income description: "{text}"'),
    ]
)

# =============================================================================
# Receipt image extraction
# =============================================================================

RECEIPT_IMAGE_SYSTEM = (
    """You read a photo of a receipt or invoice and extract the purchase.

Available categories: {categories}

Respond with one JSON object:
{{"category": "...", "confidence": "high|medium|low", "extractedAmount": 42.9, "extractedCurrency": "USD", "extractedDate": "YYYY-MM-DD", "cleanedDescription": "merchant or main item"}}

- extractedAmount is the grand total actually paid
"""
    + _SHARED_RULES
)

RECEIPT_IMAGE_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", RECEIPT_IMAGE_SYSTEM),
        (
            "user",
            [
                {"type": "text", "text": "Extract the purchase from this receipt."},
                {
                    "type": "image_url",
                    "image_url": {"url": "data:{mime_type};base64,{image_data}"},
                },
            ],
        ),
    ]
)


def prompt_variables(default_currency: str, today: str, yesterday: str) -> dict[str, str]:
    """Variables shared by every extraction prompt."""
    return {
        "categories": CATEGORY_LIST,
        "income_sources": INCOME_SOURCE_LIST,
        "default_currency": default_currency,
        "today": today,
        "yesterday": yesterday,
    }

