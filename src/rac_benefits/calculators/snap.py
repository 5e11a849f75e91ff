"""
SNAP Calculator - eligibility path end to end.

Source: 7 USC 2014, 7 USC 2017, 7 CFR Part 273

Deductions -> eligibility verdict -> allotment, all driven by one
injected rule table.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..household import Household
from ..money import ZERO
from ..rules.table import RuleTable
from .allotment import AllotmentResult, Proration, compute_allotment
from .deductions import DeductionResult, compute_deductions
from .eligibility import EligibilityVerdict, ResourceGate, evaluate_eligibility


@dataclass
class SNAPBenefitResult:
    """SNAP benefit calculation result."""

    benefit: Decimal
    deductions: DeductionResult
    verdict: EligibilityVerdict
    allotment: Optional[AllotmentResult]
    citations: list

    @property
    def eligible(self) -> bool:
        return self.verdict.eligible

    @property
    def calculation_trace(self) -> list:
        trace = list(self.verdict.calculation_trace)
        if self.allotment is not None:
            trace.extend(self.allotment.calculation_trace)
        return trace


def calculate_snap_eligible(
    household: Household,
    rule_table: RuleTable,
    resources: Optional[ResourceGate] = None,
) -> EligibilityVerdict:
    """
    Check SNAP eligibility (gross, net and resource tests).

    Args:
        household: Household financials
        rule_table: Rule table for the jurisdiction and fiscal year
        resources: Resource gate (bool or asset verifier); without it the
            verdict stays pending

    Returns:
        EligibilityVerdict
    """
    deductions = compute_deductions(household, rule_table)
    return evaluate_eligibility(household, deductions, rule_table, resources)


def calculate_snap_benefit(
    household: Household,
    rule_table: RuleTable,
    proration: Optional[Proration] = None,
    resources: Optional[ResourceGate] = None,
) -> SNAPBenefitResult:
    """
    Calculate SNAP monthly benefit per 7 USC 2017.

    Args:
        household: Household financials
        rule_table: Rule table for the jurisdiction and fiscal year
        proration: Partial-period fraction for an initial month
        resources: Resource gate (bool or asset verifier); without it the
            verdict stays pending

    Returns:
        SNAPBenefitResult; ineligible and pending households get a zero
        benefit and no allotment
    """
    deductions = compute_deductions(household, rule_table)
    verdict = evaluate_eligibility(household, deductions, rule_table, resources)

    allotment = None
    benefit = ZERO
    if verdict.eligible:
        allotment = compute_allotment(
            household.size, deductions.net_income, rule_table, proration
        )
        benefit = allotment.monthly_benefit

    return SNAPBenefitResult(
        benefit=benefit,
        deductions=deductions,
        verdict=verdict,
        allotment=allotment,
        citations=[
            {"param": param, "source": source} for param, source in rule_table.citations
        ]
        + [{"variable": "snap_benefit", "source": "7 USC 2017"}],
    )
