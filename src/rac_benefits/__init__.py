"""
rac-benefits: Benefit eligibility and tax-variance reconciliation.

Computes SNAP eligibility and allotments under versioned rule tables,
tracks ABAWD work-requirement months, calculates federal return figures
from extracted documents, and reconciles them against a reference system.
"""

__version__ = "0.1.0"

from .calculators import (
    CheckResult,
    EligibilityVerdict,
    Proration,
    calculate_snap_benefit,
    compute_allotment,
    compute_deductions,
    evaluate_eligibility,
)
from .config import ExtractionConfig, ReconcileConfig
from .engine import BenefitEngine
from .errors import ConflictError, EngineError, NotFoundError, PrecisionError, ValidationError
from .household import Household, Member
from .money import RoundingMode
from .rules import IncomeLimit, RuleTable, RuleTableStore, default_store
from .tax import TaxReturnFigures, calculate, parse_document
from .validation import Severity, VarianceReport, VarianceRow, reconcile
from .work_requirements import (
    ExemptionRecord,
    ExemptionRegistry,
    ExemptionStatus,
    ExemptionType,
    MonthState,
    evaluate_work_requirement,
)

__all__ = [
    "BenefitEngine",
    "Household",
    "Member",
    "RuleTable",
    "RuleTableStore",
    "IncomeLimit",
    "default_store",
    "RoundingMode",
    "compute_deductions",
    "evaluate_eligibility",
    "compute_allotment",
    "calculate_snap_benefit",
    "EligibilityVerdict",
    "CheckResult",
    "Proration",
    "ExemptionRecord",
    "ExemptionRegistry",
    "ExemptionStatus",
    "ExemptionType",
    "MonthState",
    "evaluate_work_requirement",
    "calculate",
    "parse_document",
    "TaxReturnFigures",
    "reconcile",
    "Severity",
    "VarianceReport",
    "VarianceRow",
    "ReconcileConfig",
    "ExtractionConfig",
    "EngineError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "PrecisionError",
]
