"""
Rule Table Store and policy parameter data.
"""

from .snap import FEDERAL, SNAP, SNAP_PARAMS, default_store, federal_snap_table
from .table import IncomeLimit, RuleTable, RuleTableStore
from .tax_years import FILING_STATUSES, TAX_YEAR_PARAMS, tax_year_params

__all__ = [
    "IncomeLimit",
    "RuleTable",
    "RuleTableStore",
    "FEDERAL",
    "SNAP",
    "SNAP_PARAMS",
    "default_store",
    "federal_snap_table",
    "FILING_STATUSES",
    "TAX_YEAR_PARAMS",
    "tax_year_params",
]
