"""
Variance reconciliation: computed return figures against an external
reference, single return or batch.
"""

from .comparator import Severity, VarianceReport, VarianceRow, classify, reconcile
from .runners import household_from_row, reconcile_returns, run_eligibility

__all__ = [
    "classify",
    "reconcile",
    "Severity",
    "VarianceReport",
    "VarianceRow",
    "run_eligibility",
    "reconcile_returns",
    "household_from_row",
]
