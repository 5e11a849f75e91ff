"""
Batch runners: execute the eligibility path and the reconciler over
pandas frames, one household or return per row.

Cells are read through their string form so CSV-loaded ints, floats and
strings all reach the Decimal money layer unchanged.
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from tqdm import tqdm

from ..calculators.snap import calculate_snap_benefit
from ..config import ReconcileConfig
from ..errors import EngineError, ValidationError
from ..household import Household, Member
from ..rules.table import RuleTable
from ..tax.figures import TRACKED_FIELDS
from .comparator import reconcile_rows

logger = logging.getLogger(__name__)

HOUSEHOLD_MONEY_COLUMNS = (
    "earned_income",
    "unearned_income",
    "shelter_cost",
    "utility_allowance",
    "dependent_care_cost",
    "child_support_paid",
    "medical_expenses",
)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _cell(row: pd.Series, column: str) -> Optional[str]:
    value = row.get(column)
    return None if _is_missing(value) else str(value).strip()


def _flag(row: pd.Series, column: str) -> bool:
    value = _cell(row, column)
    return value is not None and value.lower() in ("1", "1.0", "true", "yes", "y")


def _gate(row: pd.Series, column: str) -> Optional[bool]:
    """Yes/no cell where blank or missing is None."""
    value = _cell(row, column)
    if value is None:
        return None
    lowered = value.lower()
    if lowered in ("1", "1.0", "true", "yes", "y"):
        return True
    if lowered in ("0", "0.0", "false", "no", "n"):
        return False
    raise ValidationError(f"{column} must be yes or no, got {value!r}")


def _integer(text: str, column: str) -> int:
    # pandas reads an int column holding blanks as float64, so "3.0" is 3
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{column} must be an integer, got {text!r}")
    if not value.is_finite() or value != value.to_integral_value():
        raise ValidationError(f"{column} must be an integer, got {text!r}")
    return int(value)


def household_from_row(row: pd.Series) -> Household:
    """
    Build a Household from a frame row.

    Columns: household_size, the money columns (missing = 0), optional
    member_ages ("34;8"), disabled_members (count, first members) and
    categorically_eligible.
    """
    size_text = _cell(row, "household_size")
    if size_text is None:
        raise ValidationError("household_size is required")
    size = _integer(size_text, "household_size")

    members = ()
    ages = _cell(row, "member_ages")
    if ages is not None:
        disabled = _integer(_cell(row, "disabled_members") or "0", "disabled_members")
        members = tuple(
            Member(age=_integer(age.strip(), "member_ages"), disabled=i < disabled)
            for i, age in enumerate(ages.split(";"))
        )

    amounts = {column: _cell(row, column) or "0" for column in HOUSEHOLD_MONEY_COLUMNS}
    return Household(
        size=size,
        members=members,
        categorically_eligible=_flag(row, "categorically_eligible"),
        **amounts,
    )


def _progress(rows: Iterable, total: int, desc: str, show_progress: bool) -> Iterable:
    return tqdm(rows, total=total, desc=desc) if show_progress else rows


def run_eligibility(
    df: pd.DataFrame,
    rule_table: RuleTable,
    show_progress: bool = True,
    id_col: str = "household_id",
) -> pd.DataFrame:
    """
    Run the SNAP eligibility path on each household row.

    Args:
        df: One household per row (see household_from_row), plus an
            optional resources_within_limit yes/no column; a blank or
            missing value leaves the row pending
        rule_table: Rule table applied to every row
        show_progress: Show progress bar
        id_col: Identifier column copied to the output

    Returns:
        DataFrame with id, eligible, status, reason, gross/net income,
        benefit and an error column for rows that could not be calculated
    """
    results: List[Dict[str, Any]] = []
    for index, row in _progress(df.iterrows(), len(df), "SNAP", show_progress):
        record = {id_col: row.get(id_col, index)}
        try:
            result = calculate_snap_benefit(
                household_from_row(row),
                rule_table,
                resources=_gate(row, "resources_within_limit"),
            )
        except EngineError as e:
            # Row-level failure is reported, not mistaken for ineligibility
            logger.warning("Household %s not calculated: %s", record[id_col], e)
            record.update(
                eligible=None, status=None, reason=None, gross_income=None,
                net_income=None, benefit=None, error=str(e),
            )
        else:
            record.update(
                eligible=result.eligible,
                status=result.verdict.status.value,
                reason=result.verdict.reason,
                gross_income=result.deductions.gross_income,
                net_income=result.deductions.net_income,
                benefit=result.benefit,
                error=None,
            )
        results.append(record)

    logger.info("Ran eligibility for %d households", len(results))
    return pd.DataFrame(
        results,
        columns=[
            id_col, "eligible", "status", "reason",
            "gross_income", "net_income", "benefit", "error",
        ],
    )


def _figures_by_id(df: pd.DataFrame, id_col: str, side: str) -> Dict[str, Dict[str, str]]:
    if id_col not in df.columns:
        raise ValidationError(f"{side} data has no {id_col!r} column")
    unknown = sorted(set(df.columns) - set(TRACKED_FIELDS) - {id_col})
    if unknown:
        raise ValidationError(f"{side} data has unknown columns: {', '.join(unknown)}")

    figures = {}
    for _, row in df.iterrows():
        key = _cell(row, id_col)
        if key in figures:
            raise ValidationError(f"{side} data has duplicate {id_col} {key!r}")
        figures[key] = {
            name: _cell(row, name) for name in TRACKED_FIELDS if _cell(row, name) is not None
        }
    return figures


def reconcile_returns(
    reference_df: pd.DataFrame,
    computed_df: pd.DataFrame,
    config: Optional[ReconcileConfig] = None,
    id_col: str = "return_id",
    show_progress: bool = False,
) -> pd.DataFrame:
    """
    Reconcile many returns at once.

    A return present on only one side yields unknown rows for every field.

    Returns:
        Long DataFrame, one row per (return, field), sorted by return id
        then the fixed field order
    """
    config = config or ReconcileConfig()
    reference = _figures_by_id(reference_df, id_col, "reference")
    computed = _figures_by_id(computed_df, id_col, "computed")
    ids = sorted(set(reference) | set(computed))

    records = []
    for key in _progress(ids, len(ids), "Reconcile", show_progress):
        for row in reconcile_rows(reference.get(key, {}), computed.get(key, {}), config):
            records.append({id_col: key, **row.to_dict()})

    logger.info("Reconciled %d returns", len(ids))
    return pd.DataFrame(
        records,
        columns=[
            id_col, "field", "reference_value", "computed_value",
            "delta", "delta_percent", "severity",
        ],
    )
