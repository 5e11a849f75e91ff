"""
Command-line interface for rac-benefits.

Usage:
    rac-benefits snap --size 3 --earned 2500 --shelter 900 --utility-allowance 200 --resources-ok
    rac-benefits snap --size 2 --member-ages 67,70 --unearned 1400 --resources-exceed
    rac-benefits tax --documents docs.json --filing-status head_of_household
    rac-benefits tables
"""

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

from . import __version__
from .calculators.allotment import Proration
from .calculators.snap import SNAPBenefitResult, calculate_snap_benefit
from .config import ExtractionConfig
from .errors import EngineError, ValidationError
from .household import Household, Member
from .rules.snap import FEDERAL, SNAP, default_store
from .rules.table import RuleTableStore
from .rules.tax_years import FILING_STATUSES
from .tax.engine import Dependent, calculate_detailed


def _ages(text, flag):
    try:
        return [int(age) for age in text.split(",")]
    except ValueError:
        raise ValidationError(f"{flag} must be comma-separated integers, got {text!r}")


def _snap_result_dict(result: SNAPBenefitResult, trace: bool) -> dict:
    data = {
        "eligible": result.eligible,
        "status": result.verdict.status.value,
        "reason": result.verdict.reason,
        "benefit": str(result.benefit),
        "gross_income": str(result.deductions.gross_income),
        "net_income": str(result.deductions.net_income),
        "deductions": {name: str(amount) for name, amount in result.deductions.breakdown},
        "gross_test": result.verdict.gross_test_result.value,
        "net_test": result.verdict.net_test_result.value,
        "resource_test": result.verdict.resource_test_result.value,
        "categorical_override_applied": result.verdict.categorical_override_applied,
    }
    if result.allotment is not None:
        data["max_allotment"] = str(result.allotment.max_allotment)
        data["minimum_benefit_applied"] = result.allotment.minimum_benefit_applied
    if trace:
        data["calculation_trace"] = result.calculation_trace
        data["citations"] = result.citations
    return data


def _run_snap(args) -> dict:
    store = RuleTableStore.from_json_file(args.rules) if args.rules else default_store()
    table = store.get_rule_table(args.jurisdiction, SNAP, args.fiscal_year)

    members = ()
    if args.member_ages:
        ages = _ages(args.member_ages, "--member-ages")
        members = tuple(
            Member(age=age, disabled=i < args.disabled_members) for i, age in enumerate(ages)
        )

    household = Household(
        size=args.size,
        members=members,
        earned_income=args.earned,
        unearned_income=args.unearned,
        shelter_cost=args.shelter,
        utility_allowance=args.utility_allowance,
        dependent_care_cost=args.dependent_care,
        child_support_paid=args.child_support,
        medical_expenses=args.medical,
        categorically_eligible=args.categorical,
    )

    proration = None
    if args.days_remaining is not None:
        proration = Proration(args.days_remaining, args.total_days)

    result = calculate_snap_benefit(household, table, proration, args.resources)
    return _snap_result_dict(result, args.trace)


def _run_tax(args) -> dict:
    if not args.documents.exists():
        raise ValidationError(f"{args.documents} not found")
    try:
        documents = json.loads(args.documents.read_text(), parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{args.documents} is not valid JSON: {e}")

    dependents = ()
    if args.dependent_ages:
        dependents = tuple(
            Dependent(age=age) for age in _ages(args.dependent_ages, "--dependent-ages")
        )

    calculation = calculate_detailed(
        documents,
        filing_status=args.filing_status,
        dependents=dependents,
        tax_year=args.tax_year,
        config=ExtractionConfig(confidence_threshold=args.confidence),
    )
    data = {
        "tax_year": calculation.tax_year,
        "filing_status": calculation.filing_status,
        "figures": calculation.figures.to_dict(),
        "low_confidence_fields": list(calculation.low_confidence_fields),
    }
    if args.trace:
        data["calculation_trace"] = list(calculation.calculation_trace)
    return data


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="rac-benefits",
        description="Benefit eligibility and tax return calculations",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # SNAP eligibility and allotment
    snap_parser = subparsers.add_parser(
        "snap",
        help="Determine SNAP eligibility and monthly allotment (7 USC 2014, 2017)",
    )
    snap_parser.add_argument("--size", type=int, required=True, help="Household size")
    for flag, help_text in (
        ("--earned", "Gross monthly earned income"),
        ("--unearned", "Gross monthly unearned income"),
        ("--shelter", "Monthly shelter cost"),
        ("--utility-allowance", "Standard utility allowance"),
        ("--dependent-care", "Monthly dependent care cost"),
        ("--child-support", "Legally obligated child support paid"),
        ("--medical", "Medical expenses of elderly/disabled members"),
    ):
        snap_parser.add_argument(flag, type=str, default="0", help=f"{help_text} (default: 0)")
    snap_parser.add_argument(
        "--member-ages",
        type=str,
        help="Comma-separated member ages; count must equal --size",
    )
    snap_parser.add_argument(
        "--disabled-members",
        type=int,
        default=0,
        help="Number of members (from the first) with a disability",
    )
    snap_parser.add_argument(
        "--categorical",
        action="store_true",
        help="Household receives a benefit conferring categorical eligibility",
    )
    resources = snap_parser.add_mutually_exclusive_group()
    resources.add_argument(
        "--resources-ok",
        dest="resources",
        action="store_const",
        const=True,
        help="Countable resources verified within the limit",
    )
    resources.add_argument(
        "--resources-exceed",
        dest="resources",
        action="store_const",
        const=False,
        help="Countable resources verified over the limit",
    )
    snap_parser.add_argument(
        "--fiscal-year",
        type=int,
        default=2025,
        help="Fiscal year (default: 2025)",
    )
    snap_parser.add_argument(
        "--jurisdiction",
        type=str,
        default=FEDERAL,
        help=f"Jurisdiction (default: {FEDERAL})",
    )
    snap_parser.add_argument(
        "--rules",
        type=Path,
        help="JSON rule tables to use instead of the built-in federal tables",
    )
    snap_parser.add_argument("--days-remaining", type=int, help="Prorate: days covered")
    snap_parser.add_argument(
        "--total-days", type=int, default=30, help="Prorate: days in period (default: 30)"
    )
    snap_parser.add_argument("--trace", action="store_true", help="Include calculation trace")

    # Tax return from extracted documents
    tax_parser = subparsers.add_parser(
        "tax",
        help="Compute federal return figures from extracted documents",
    )
    tax_parser.add_argument(
        "--documents",
        type=Path,
        required=True,
        help="JSON list of {document_type, fields, confidence}",
    )
    tax_parser.add_argument(
        "--filing-status",
        choices=FILING_STATUSES,
        default="single",
        help="Filing status (default: single)",
    )
    tax_parser.add_argument("--tax-year", type=int, default=2025, help="Tax year (default: 2025)")
    tax_parser.add_argument("--dependent-ages", type=str, help="Comma-separated dependent ages")
    tax_parser.add_argument(
        "--confidence",
        type=float,
        default=ExtractionConfig.confidence_threshold,
        help="Flag extracted fields below this confidence (default: 0.8)",
    )
    tax_parser.add_argument("--trace", action="store_true", help="Include calculation trace")

    # Published tables
    subparsers.add_parser("tables", help="List built-in rule tables")

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "tables":
        for jurisdiction, program, fiscal_year in default_store().keys():
            print(f"{jurisdiction}\t{program}\tFY{fiscal_year}")
        return

    try:
        data = _run_snap(args) if args.command == "snap" else _run_tax(args)
    except (EngineError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(data, indent=2))


if __name__ == "__main__":
    main()
