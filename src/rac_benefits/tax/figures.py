"""
TaxReturnFigures: the numeric set compared by the variance reconciler.

The same type holds the engine's own calculation and figures supplied by
an external tax-preparation system. A field left as None is absent (not
zero).
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from ..errors import ValidationError
from ..money import to_money

# Fixed reconciliation order
TRACKED_FIELDS = (
    "agi",
    "taxable_income",
    "federal_tax",
    "withholding",
    "refund",
    "eitc",
    "child_credit",
    "education_credit",
)

FIELD_LABELS = {
    "agi": "Adjusted Gross Income",
    "taxable_income": "Taxable Income",
    "federal_tax": "Total Tax",
    "withholding": "Federal Withholding",
    "refund": "Federal Refund",
    "eitc": "EITC",
    "child_credit": "Child Tax Credit",
    "education_credit": "Education Credits",
}


@dataclass(frozen=True)
class TaxReturnFigures:
    """
    Return-level figures.

    `refund` is positive for a refund and negative for a balance due.
    """

    agi: Optional[Decimal] = None
    taxable_income: Optional[Decimal] = None
    federal_tax: Optional[Decimal] = None
    withholding: Optional[Decimal] = None
    refund: Optional[Decimal] = None
    eitc: Optional[Decimal] = None
    child_credit: Optional[Decimal] = None
    education_credit: Optional[Decimal] = None

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                object.__setattr__(self, f.name, to_money(value, f.name))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            name: (None if getattr(self, name) is None else str(getattr(self, name)))
            for name in TRACKED_FIELDS
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TaxReturnFigures":
        unknown = sorted(set(data) - set(TRACKED_FIELDS))
        if unknown:
            raise ValidationError(f"unknown tax return fields: {', '.join(unknown)}")
        return cls(**dict(data))
