"""
Variance Reconciler: compare computed return figures against a reference.

The reference is the external tax-preparation system's return; the
computed side is our own calculation for the same household and period.
One row per tracked field, always in the fixed field order.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from ..config import ReconcileConfig
from ..errors import ValidationError
from ..events import utc_now
from ..money import format_money
from ..tax.figures import FIELD_LABELS, TRACKED_FIELDS, TaxReturnFigures

logger = logging.getLogger(__name__)

FiguresLike = Union[TaxReturnFigures, Mapping[str, Any]]


class Severity(str, Enum):
    MATCH = "match"
    MINOR = "minor"
    MAJOR = "major"
    UNKNOWN = "unknown"


def classify(delta: Optional[Decimal], threshold: Decimal) -> Severity:
    """Severity from |delta| alone; None means one side is absent."""
    if delta is None:
        return Severity.UNKNOWN
    magnitude = abs(delta)
    if magnitude == 0:
        return Severity.MATCH
    if magnitude <= threshold:
        return Severity.MINOR
    return Severity.MAJOR


@dataclass(frozen=True)
class VarianceRow:
    """One reconciled field."""

    field: str
    reference_value: Optional[Decimal]
    computed_value: Optional[Decimal]
    delta: Optional[Decimal]
    delta_percent: Optional[Decimal]
    severity: Severity

    @property
    def label(self) -> str:
        return FIELD_LABELS[self.field]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "reference_value": _str_or_none(self.reference_value),
            "computed_value": _str_or_none(self.computed_value),
            "delta": _str_or_none(self.delta),
            "delta_percent": _str_or_none(self.delta_percent),
            "severity": self.severity.value,
        }


def _str_or_none(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class VarianceReport:
    """Reconciliation rows plus the threshold they were classified against."""

    rows: List[VarianceRow]
    materiality_threshold: Decimal
    generated_at: datetime = field(default_factory=utc_now)

    def counts(self) -> Dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for row in self.rows:
            counts[row.severity.value] += 1
        return counts

    @property
    def has_material_variance(self) -> bool:
        return any(row.severity == Severity.MAJOR for row in self.rows)

    def row(self, field_name: str) -> VarianceRow:
        for row in self.rows:
            if row.field == field_name:
                return row
        raise KeyError(field_name)

    def summary(self) -> Dict[str, Any]:
        """Generate summary statistics."""
        return {
            "fields_compared": len(self.rows),
            "materiality_threshold": str(self.materiality_threshold),
            "severity_counts": self.counts(),
            "has_material_variance": self.has_material_variance,
            "rows": [row.to_dict() for row in self.rows],
        }

    def detailed_report(self) -> str:
        """Generate detailed text report."""
        lines = [
            "=" * 70,
            "Tax Return Variance Report",
            "=" * 70,
            f"Generated:   {self.generated_at.isoformat()}",
            f"Threshold:   {format_money(self.materiality_threshold)}",
            "",
            f"{'Field':<24}{'Reference':>14}{'Computed':>14}{'Delta':>12}  Severity",
            "-" * 70,
        ]

        def cell(value: Optional[Decimal]) -> str:
            return "-" if value is None else format_money(value)

        for row in self.rows:
            lines.append(
                f"{row.label:<24}{cell(row.reference_value):>14}"
                f"{cell(row.computed_value):>14}{cell(row.delta):>12}  {row.severity.value}"
            )

        counts = self.counts()
        lines.extend([
            "-" * 70,
            "  ".join(f"{name}: {count}" for name, count in counts.items()),
            "",
        ])

        # Show material variances
        major = [row for row in self.rows if row.severity == Severity.MAJOR]
        if major:
            lines.append("Material variances:")
            for row in sorted(major, key=lambda r: abs(r.delta), reverse=True):
                pct = "" if row.delta_percent is None else f" ({row.delta_percent}%)"
                lines.append(f"  {row.label}: {format_money(row.delta)}{pct}")
            lines.append("")

        lines.append("=" * 70)
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([row.to_dict() for row in self.rows])

    def save_report(self, output_dir: Path) -> Dict[str, Path]:
        """Save the text report and the per-field rows as CSV."""
        output_dir = Path(output_dir)
        output_dir.mkdir(exist_ok=True, parents=True)

        report_path = output_dir / "variance_report.txt"
        report_path.write_text(self.detailed_report())
        logger.info("Saved report to: %s", report_path)

        data_path = output_dir / "variance_rows.csv"
        self.to_dataframe().to_csv(data_path, index=False)
        logger.info("Saved rows to: %s", data_path)

        return {"report": report_path, "rows": data_path}


def _as_figures(figures: FiguresLike, side: str) -> TaxReturnFigures:
    if isinstance(figures, TaxReturnFigures):
        return figures
    if not isinstance(figures, Mapping):
        raise ValidationError(f"{side} figures must be TaxReturnFigures or a mapping")
    return TaxReturnFigures.from_dict(figures)


def _delta_percent(delta: Decimal, reference: Decimal) -> Optional[Decimal]:
    if reference == 0:
        return None
    return (delta / reference * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def reconcile_rows(
    reference: FiguresLike,
    computed: FiguresLike,
    config: Optional[ReconcileConfig] = None,
) -> List[VarianceRow]:
    """
    Compare two figure sets field by field.

    Args:
        reference: External system's figures
        computed: Our figures for the same household and period
        config: Materiality threshold

    Returns:
        One VarianceRow per tracked field, in the fixed field order
    """
    config = config or ReconcileConfig()
    reference = _as_figures(reference, "reference")
    computed = _as_figures(computed, "computed")
    threshold = config.materiality_threshold

    rows = []
    for name in TRACKED_FIELDS:
        ref_value = getattr(reference, name)
        comp_value = getattr(computed, name)
        if ref_value is None or comp_value is None:
            delta = None
            pct = None
        else:
            delta = comp_value - ref_value
            pct = _delta_percent(delta, ref_value)
        rows.append(
            VarianceRow(
                field=name,
                reference_value=ref_value,
                computed_value=comp_value,
                delta=delta,
                delta_percent=pct,
                severity=classify(delta, threshold),
            )
        )
    return rows


def reconcile(
    reference: FiguresLike,
    computed: FiguresLike,
    config: Optional[ReconcileConfig] = None,
) -> VarianceReport:
    """Reconcile and wrap the rows in a VarianceReport."""
    config = config or ReconcileConfig()
    report = VarianceReport(
        rows=reconcile_rows(reference, computed, config),
        materiality_threshold=config.materiality_threshold,
    )
    counts = report.counts()
    logger.info(
        "Reconciled %d fields: %d major, %d minor, %d unknown",
        len(report.rows),
        counts[Severity.MAJOR.value],
        counts[Severity.MINOR.value],
        counts[Severity.UNKNOWN.value],
    )
    return report
