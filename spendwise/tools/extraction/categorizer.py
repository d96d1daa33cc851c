"""
Keyword-scored category inference for expenses and income.

Each category owns a keyword list. A whole-word hit adds 10 points, a substring
hit adds 5, and the highest total wins. Categories are scanned in declaration
order and only a strictly higher score replaces the current best, so ties go
to the category declared first.
"""

import re
from functools import lru_cache

from spendwise.logging_config import get_logger

logger = get_logger(__name__)

WORD_MATCH_SCORE = 10
SUBSTRING_MATCH_SCORE = 5

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Food & Dining",
        (
            "lunch", "dinner", "breakfast", "brunch", "meal", "eat", "food",
            "restaurant", "cafe", "coffee", "starbucks", "mcdonald", "burger",
            "pizza", "sushi", "kfc", "subway", "buffet", "dine", "dining",
            "snack", "drink", "beverage", "takeout", "delivery", "ubereats",
            "doordash", "grubhub", "foodpanda", "bakery", "dessert",
            "ice cream", "bar", "pub", "bistro", "kitchen", "taco", "chicken",
            "beef", "pork", "fish", "noodle", "rice", "pasta",
        ),
    ),
    (
        "Transportation",
        (
            "uber", "lyft", "taxi", "cab", "bus", "train", "metro", "subway",
            "gas", "fuel", "petrol", "diesel", "parking", "toll", "car wash",
            "vehicle", "transport", "ride", "grab", "gojek", "ola", "transit",
            "flight", "airline", "plane", "ticket", "fare", "mrt", "lrt",
        ),
    ),
    (
        "Groceries",
        (
            "grocery", "groceries", "supermarket", "market", "walmart",
            "target", "costco", "whole foods", "trader joe", "safeway",
            "kroger", "aldi", "vegetables", "fruits", "meat", "dairy", "bread",
            "milk", "eggs", "produce", "fresh", "organic", "shopping", "store",
            "tesco", "carrefour",
        ),
    ),
    (
        "Entertainment",
        (
            "movie", "cinema", "theater", "concert", "show", "netflix",
            "spotify", "hulu", "disney", "amazon prime", "youtube", "gaming",
            "game", "xbox", "playstation", "nintendo", "steam",
            "entertainment", "fun", "amusement", "park", "zoo", "museum",
            "ticket", "event", "festival", "club", "party",
        ),
    ),
    (
        "Shopping",
        (
            "amazon", "ebay", "shop", "store", "mall", "clothing", "clothes",
            "shoes", "fashion", "accessories", "electronics", "gadget",
            "phone", "laptop", "computer", "furniture", "home goods", "decor",
            "ikea", "nike", "adidas", "zara", "h&m", "uniqlo", "purchase",
            "buy", "bought",
        ),
    ),
    (
        "Utilities",
        (
            "electric", "electricity", "water", "gas", "internet", "wifi",
            "cable", "phone bill", "utility", "utilities", "power", "energy",
            "heating", "cooling", "trash", "sewage", "broadband",
            "mobile plan", "data plan",
        ),
    ),
    (
        "Healthcare",
        (
            "doctor", "hospital", "clinic", "medical", "medicine", "pharmacy",
            "prescription", "drug", "dentist", "dental", "health",
            "healthcare", "insurance", "therapy", "treatment", "checkup",
            "exam", "cvs", "walgreens", "vitamins", "supplements",
            "emergency", "urgent care", "surgery",
        ),
    ),
    (
        "Housing",
        (
            "rent", "mortgage", "lease", "apartment", "house", "home",
            "property", "landlord", "housing", "hoa", "condo", "maintenance",
            "repair", "plumber", "electrician", "contractor", "renovation",
            "remodel",
        ),
    ),
    (
        "Personal Care",
        (
            "haircut", "salon", "spa", "massage", "beauty", "cosmetics",
            "makeup", "skincare", "shampoo", "soap", "toothpaste", "hygiene",
            "grooming", "barber", "nail", "manicure", "pedicure", "gym",
            "fitness", "yoga",
        ),
    ),
    (
        "Miscellaneous",
        ("misc", "other", "various", "general", "stuff", "things", "miscellaneous"),
    ),
)

INCOME_SOURCE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Salary", ("salary", "paycheck", "payroll", "wage", "wages", "pay day", "payday")),
    ("Freelance", ("freelance", "client", "gig", "contract", "consulting", "commission", "invoice")),
    ("Business", ("business", "sales", "revenue", "profit", "shop", "store")),
    ("Investment", ("dividend", "dividends", "interest", "stock", "stocks", "crypto", "investment", "capital gain")),
    ("Rental", ("rental", "tenant", "airbnb", "rent received", "lease")),
    ("Gift", ("gift", "present", "birthday", "red packet", "angpao", "ang pao")),
    ("Bonus", ("bonus", "incentive", "reward", "13th month")),
)


@lru_cache(maxsize=512)
def _word_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(keyword) + r"\b", re.IGNORECASE)


def score_keywords(text: str, keywords: tuple[str, ...]) -> int:
    """Score ``text`` against one keyword list."""
    normalized = text.lower()
    score = 0
    for keyword in keywords:
        if _word_pattern(keyword).search(normalized):
            score += WORD_MATCH_SCORE
        elif keyword in normalized:
            score += SUBSTRING_MATCH_SCORE
    return score


def _best_match(
    text: str,
    table: tuple[tuple[str, tuple[str, ...]], ...],
) -> tuple[str | None, int]:
    best_name: str | None = None
    best_score = 0
    for name, keywords in table:
        score = score_keywords(text, keywords)
        if score > best_score:
            best_name, best_score = name, score
    return best_name, best_score


def categorize_by_keywords(text: str | None) -> str | None:
    """
    Pick the expense category whose keywords best match ``text``.

    Returns:
        Category name, or None when no keyword matched at all
    """
    if not text or not text.strip():
        return None
    category, score = _best_match(text, CATEGORY_KEYWORDS)
    logger.debug("keyword_category_scored", category=category, score=score)
    return category


def classify_income_source(text: str | None) -> str | None:
    """Pick the income source whose keywords best match ``text``, or None."""
    if not text or not text.strip():
        return None
    source, _ = _best_match(text, INCOME_SOURCE_KEYWORDS)
    return source
