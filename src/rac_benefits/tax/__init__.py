"""
Tax Calculation Engine: extracted documents to return figures.
"""

from .documents import DOCUMENT_TYPES, ParsedDocument, TaxDocument, parse_document
from .engine import Dependent, TaxCalculation, calculate, calculate_detailed
from .figures import TRACKED_FIELDS, TaxReturnFigures

__all__ = [
    "calculate",
    "calculate_detailed",
    "Dependent",
    "TaxCalculation",
    "TaxReturnFigures",
    "TRACKED_FIELDS",
    "parse_document",
    "ParsedDocument",
    "TaxDocument",
    "DOCUMENT_TYPES",
]
