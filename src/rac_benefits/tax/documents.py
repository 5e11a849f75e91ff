"""
Typed tax documents built from document-extraction output.

Extraction arrives as {"document_type", "fields", "confidence"}. Each
document type has an explicit set of optional fields; unknown document
types and unknown fields are rejected. Fields extracted with confidence
below the caller's threshold are kept and flagged.
"""

import logging
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Type

from ..config import ExtractionConfig
from ..errors import ValidationError
from ..money import ZERO, non_negative_money

logger = logging.getLogger(__name__)


class TaxDocument:
    """Base for typed documents; monetary fields are Optional[Decimal]."""

    document_type: ClassVar[str] = ""
    text_fields: ClassVar[Tuple[str, ...]] = ("payer",)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self.text_fields or f.name == "credit_type":
                continue
            if value is not None:
                object.__setattr__(self, f.name, non_negative_money(value, f.name))

    def amount(self, name: str) -> Decimal:
        """Field value, zero when the field was not extracted."""
        value = getattr(self, name)
        return ZERO if value is None else value

    @property
    def withholding(self) -> Decimal:
        return self.amount("federal_withholding") if hasattr(self, "federal_withholding") else ZERO


@dataclass(frozen=True)
class W2(TaxDocument):
    document_type: ClassVar[str] = "W2"

    wages: Optional[Decimal] = None
    federal_withholding: Optional[Decimal] = None
    payer: Optional[str] = None


@dataclass(frozen=True)
class Form1099NEC(TaxDocument):
    document_type: ClassVar[str] = "1099-NEC"

    nonemployee_compensation: Optional[Decimal] = None
    federal_withholding: Optional[Decimal] = None
    payer: Optional[str] = None


@dataclass(frozen=True)
class Form1099INT(TaxDocument):
    document_type: ClassVar[str] = "1099-INT"

    interest_income: Optional[Decimal] = None
    federal_withholding: Optional[Decimal] = None
    payer: Optional[str] = None


@dataclass(frozen=True)
class Form1099DIV(TaxDocument):
    document_type: ClassVar[str] = "1099-DIV"

    ordinary_dividends: Optional[Decimal] = None
    federal_withholding: Optional[Decimal] = None
    payer: Optional[str] = None


@dataclass(frozen=True)
class Form1099G(TaxDocument):
    document_type: ClassVar[str] = "1099-G"

    unemployment_compensation: Optional[Decimal] = None
    federal_withholding: Optional[Decimal] = None
    payer: Optional[str] = None


@dataclass(frozen=True)
class Form1098T(TaxDocument):
    document_type: ClassVar[str] = "1098-T"

    qualified_tuition: Optional[Decimal] = None
    scholarships: Optional[Decimal] = None
    credit_type: str = "aotc"
    payer: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if self.credit_type not in ("aotc", "llc"):
            raise ValidationError(f"credit_type must be 'aotc' or 'llc', got {self.credit_type!r}")

    @property
    def qualified_expenses(self) -> Decimal:
        return max(ZERO, self.amount("qualified_tuition") - self.amount("scholarships"))


DOCUMENT_TYPES: Dict[str, Type[TaxDocument]] = {
    cls.document_type: cls
    for cls in (W2, Form1099NEC, Form1099INT, Form1099DIV, Form1099G, Form1098T)
}


@dataclass(frozen=True)
class ParsedDocument:
    """A typed document plus the fields that were extracted with low confidence."""

    document: TaxDocument
    low_confidence_fields: Tuple[str, ...] = ()


def _confidence_for(confidence, field_name: str) -> Optional[float]:
    if isinstance(confidence, Mapping):
        confidence = confidence.get(field_name)
    if confidence is None:
        return None
    try:
        return float(confidence)
    except (TypeError, ValueError):
        raise ValidationError(f"confidence for {field_name} must be a number, got {confidence!r}")


def parse_document(
    extracted: Mapping,
    config: Optional[ExtractionConfig] = None,
) -> ParsedDocument:
    """
    Build a typed document from extraction output.

    Args:
        extracted: {"document_type": str, "fields": {...}, "confidence":
            float or {field: float}}
        config: Extraction configuration (confidence threshold)

    Returns:
        ParsedDocument

    Raises:
        ValidationError: unknown document type, unknown field or bad value
    """
    config = config or ExtractionConfig()
    if not isinstance(extracted, Mapping):
        raise ValidationError("extracted document must be a mapping")
    document_type = extracted.get("document_type")
    try:
        cls = DOCUMENT_TYPES[document_type]
    except (KeyError, TypeError):
        raise ValidationError(
            f"unknown document type {document_type!r} "
            f"(supported: {', '.join(sorted(DOCUMENT_TYPES))})"
        )

    raw_fields = extracted.get("fields") or {}
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(raw_fields) - allowed)
    if unknown:
        raise ValidationError(f"{document_type} has unknown fields: {', '.join(unknown)}")

    try:
        document = cls(**raw_fields)
    except TypeError as e:
        raise ValidationError(f"malformed {document_type}: {e}")

    confidence = extracted.get("confidence")
    low = []
    for name, value in raw_fields.items():
        if value is None:
            continue
        score = _confidence_for(confidence, name)
        if score is not None and score < config.confidence_threshold:
            low.append(name)
    if low:
        logger.warning(
            "%s extracted with low confidence fields: %s", document_type, ", ".join(low)
        )
    return ParsedDocument(document=document, low_confidence_fields=tuple(low))
