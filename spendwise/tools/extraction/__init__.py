"""
Extraction tools for free-text transaction capture.
Local parsing needs no network; the JSON repair helpers serve model output.
"""

from spendwise.tools.extraction.categorizer import (
    categorize_by_keywords,
    classify_income_source,
)
from spendwise.tools.extraction.date_parser import parse_date
from spendwise.tools.extraction.json_repair import parse_json_array, parse_json_object
from spendwise.tools.extraction.local_extractor import extract, extract_income

__all__ = [
    # Local extraction
    "extract",
    "extract_income",
    "parse_date",
    "categorize_by_keywords",
    "classify_income_source",
    # Structured output repair
    "parse_json_array",
    "parse_json_object",
]
