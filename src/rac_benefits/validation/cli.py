"""
CLI for reconciling tax returns against a reference system.

Usage:
    python -m rac_benefits.validation.cli [options]
    rac-reconcile [options]  # if installed

Examples:
    # One return, both sides as JSON figures
    rac-reconcile --reference taxslayer.json --computed ours.json --threshold 50

    # Compute our side from extracted documents
    rac-reconcile --reference taxslayer.json --documents docs.json \\
        --filing-status single --dependent-ages 4,9

    # Batch: CSV with one return per row, keyed by return_id
    rac-reconcile --reference ref.csv --computed ours.csv --output-dir out/

Exit codes: 0 no material variance, 1 material variance found, 2 error.
"""

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

import pandas as pd

from ..config import ExtractionConfig, ReconcileConfig
from ..errors import EngineError, ValidationError
from ..rules.tax_years import FILING_STATUSES
from ..tax.engine import Dependent, calculate_detailed
from .comparator import Severity, reconcile
from .runners import reconcile_returns


def _load_json(path: Path):
    if not path.exists():
        raise ValidationError(f"{path} not found")
    try:
        return json.loads(path.read_text(), parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}")


def _dependents(text):
    if not text:
        return ()
    try:
        return tuple(Dependent(age=int(age)) for age in text.split(","))
    except ValueError:
        raise ValidationError(f"--dependent-ages must be comma-separated integers, got {text!r}")


def _run_batch(args, config: ReconcileConfig) -> int:
    reference = pd.read_csv(args.reference, dtype=str, keep_default_na=False)
    computed = pd.read_csv(args.computed, dtype=str, keep_default_na=False)
    results = reconcile_returns(
        reference, computed, config, id_col=args.id_col, show_progress=not args.quiet
    )
    counts = results["severity"].value_counts()
    print(f"Returns reconciled: {results[args.id_col].nunique():,}")
    for severity in Severity:
        print(f"  {severity.value:<8} {int(counts.get(severity.value, 0)):,}")

    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(exist_ok=True, parents=True)
        data_path = output_dir / "variance_rows.csv"
        results.to_csv(data_path, index=False)
        print(f"Saved rows to: {data_path}", file=sys.stderr)

    return 1 if counts.get(Severity.MAJOR.value, 0) else 0


def _run_single(args, config: ReconcileConfig) -> int:
    reference = _load_json(args.reference)
    if args.documents:
        calculation = calculate_detailed(
            _load_json(args.documents),
            filing_status=args.filing_status,
            dependents=_dependents(args.dependent_ages),
            tax_year=args.tax_year,
            config=ExtractionConfig(confidence_threshold=args.confidence),
        )
        for name in calculation.low_confidence_fields:
            print(f"Warning: low-confidence field {name}", file=sys.stderr)
        computed = calculation.figures
    else:
        computed = _load_json(args.computed)

    report = reconcile(reference, computed, config)
    if args.format == "json":
        print(json.dumps(report.summary(), indent=2))
    else:
        print(report.detailed_report())

    if args.output_dir:
        for path in report.save_report(Path(args.output_dir)).values():
            print(f"Saved {path}", file=sys.stderr)

    return 1 if report.has_material_variance else 0


def main():
    parser = argparse.ArgumentParser(
        prog="rac-reconcile",
        description="Reconcile computed tax return figures against a reference system",
    )

    parser.add_argument(
        "--reference",
        type=Path,
        required=True,
        help="Reference figures (.json for one return, .csv for a batch)",
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--computed",
        type=Path,
        help="Computed figures (.json or .csv, matching --reference)",
    )
    source.add_argument(
        "--documents",
        type=Path,
        help="JSON list of extracted documents to compute our figures from",
    )

    parser.add_argument(
        "--threshold",
        type=str,
        default=str(ReconcileConfig.materiality_threshold),
        help="Materiality threshold in dollars (default: 50.00)",
    )

    parser.add_argument(
        "--filing-status",
        choices=FILING_STATUSES,
        default="single",
        help="Filing status when computing from documents (default: single)",
    )

    parser.add_argument(
        "--tax-year",
        type=int,
        default=2025,
        help="Tax year when computing from documents (default: 2025)",
    )

    parser.add_argument(
        "--dependent-ages",
        type=str,
        help="Comma-separated dependent ages, e.g. 4,9",
    )

    parser.add_argument(
        "--confidence",
        type=float,
        default=ExtractionConfig.confidence_threshold,
        help="Flag extracted fields below this confidence (default: 0.8)",
    )

    parser.add_argument(
        "--id-col",
        type=str,
        default="return_id",
        help="Return identifier column for CSV batches (default: return_id)",
    )

    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format for a single return (default: text)",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory to save report and CSV rows",
    )

    parser.add_argument("-q", "--quiet", action="store_true", help="Hide progress bars")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    batch = args.reference.suffix.lower() == ".csv"
    if batch and args.documents:
        parser.error("--documents reconciles a single return; use a .json --reference")
    if batch and args.computed.suffix.lower() != ".csv":
        parser.error("--computed must be a .csv file when --reference is")

    try:
        config = ReconcileConfig(materiality_threshold=args.threshold)
        code = _run_batch(args, config) if batch else _run_single(args, config)
    except (EngineError, OSError, pd.errors.ParserError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if code:
        print("\nMaterial variance found", file=sys.stderr)
    sys.exit(code)


if __name__ == "__main__":
    main()
