"""
Eligibility Evaluator - gross/net income tests and categorical override.

Source: 7 USC 2014(c), 7 CFR 273.9(a), 7 CFR 273.2(j)

A verdict is final. Re-evaluating changed inputs produces a new verdict;
nothing here mutates a prior one.
"""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..errors import ValidationError
from ..household import Household
from ..money import format_money
from ..rules.table import RuleTable
from .deductions import DeductionResult

logger = logging.getLogger(__name__)

GROSS_INCOME_EXCEEDS_LIMIT = "gross income exceeds limit"
NET_INCOME_EXCEEDS_LIMIT = "net income exceeds limit"
RESOURCES_EXCEED_LIMIT = "resources exceed limit"
RESOURCES_NOT_VERIFIED = "resources not verified"
ELIGIBLE = "eligible"

# Collaborator that verifies countable resources; True means within limits.
AssetVerifier = Callable[[Household], bool]

# Resource gate: the verified outcome itself or the collaborator that decides it
ResourceGate = Union[bool, AssetVerifier]


class EligibilityStatus(str, Enum):
    PENDING = "pending"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"


class CheckResult(str, Enum):
    """Outcome of a single eligibility test."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    EXEMPT = "exempt"
    NOT_EVALUATED = "not_evaluated"

    @property
    def passed(self) -> bool:
        return self in (CheckResult.PASSED, CheckResult.SKIPPED, CheckResult.EXEMPT)


@dataclass(frozen=True)
class EligibilityVerdict:
    """Terminal eligibility determination for one household and table."""

    eligible: bool
    reason: str
    gross_test_result: CheckResult
    net_test_result: CheckResult
    categorical_override_applied: bool
    resource_test_result: CheckResult = CheckResult.NOT_EVALUATED
    gross_income: Decimal = Decimal("0")
    gross_limit: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    net_limit: Decimal = Decimal("0")
    calculation_trace: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def status(self) -> EligibilityStatus:
        """Pending while income tests pass but the resource gate was not supplied."""
        if self.eligible:
            return EligibilityStatus.ELIGIBLE
        if self.reason == RESOURCES_NOT_VERIFIED:
            return EligibilityStatus.PENDING
        return EligibilityStatus.INELIGIBLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligible": self.eligible,
            "reason": self.reason,
            "gross_test_result": self.gross_test_result.value,
            "net_test_result": self.net_test_result.value,
            "categorical_override_applied": self.categorical_override_applied,
            "resource_test_result": self.resource_test_result.value,
            "gross_income": str(self.gross_income),
            "gross_limit": str(self.gross_limit),
            "net_income": str(self.net_income),
            "net_limit": str(self.net_limit),
            "calculation_trace": list(self.calculation_trace),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EligibilityVerdict":
        try:
            return cls(
                eligible=bool(data["eligible"]),
                reason=data["reason"],
                gross_test_result=CheckResult(data["gross_test_result"]),
                net_test_result=CheckResult(data["net_test_result"]),
                categorical_override_applied=bool(data["categorical_override_applied"]),
                resource_test_result=CheckResult(
                    data.get("resource_test_result", CheckResult.NOT_EVALUATED.value)
                ),
                gross_income=Decimal(data.get("gross_income", "0")),
                gross_limit=Decimal(data.get("gross_limit", "0")),
                net_income=Decimal(data.get("net_income", "0")),
                net_limit=Decimal(data.get("net_limit", "0")),
                calculation_trace=tuple(data.get("calculation_trace", ())),
            )
        except (KeyError, ValueError) as e:
            raise ValidationError(f"malformed eligibility verdict: {e}")

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "EligibilityVerdict":
        return cls.from_dict(json.loads(text))


def evaluate_eligibility(
    household: Household,
    deductions: DeductionResult,
    rule_table: RuleTable,
    resources: Optional[ResourceGate] = None,
) -> EligibilityVerdict:
    """
    Evaluate SNAP eligibility.

    Args:
        household: Household the deductions were computed for
        deductions: Output of compute_deductions for this household
        rule_table: Rule table used for the deductions
        resources: Resource gate, either the verified bool or an asset
            verifier called with the household; not consulted when an
            income test already failed. Without it a household that passes
            the income tests is left pending, never eligible.

    Returns:
        EligibilityVerdict
    """
    if deductions.gross_income != household.gross_income:
        raise ValidationError("deduction result was computed for a different household")

    limits = rule_table.limits_for(household.size)
    gross = household.gross_income
    net = deductions.net_income
    override = rule_table.categorical_eligibility or household.categorically_eligible
    trace = list(deductions.calculation_trace)

    def verdict(eligible, reason, gross_result, net_result, resource_result):
        result = EligibilityVerdict(
            eligible=eligible,
            reason=reason,
            gross_test_result=gross_result,
            net_test_result=net_result,
            categorical_override_applied=override,
            resource_test_result=resource_result,
            gross_income=gross,
            gross_limit=limits.gross_limit,
            net_income=net,
            net_limit=limits.net_limit,
            calculation_trace=tuple(trace),
        )
        logger.debug("Eligibility verdict: %s (%s)", result.status.value, reason)
        return result

    # Gross income test
    if override:
        gross_result = CheckResult.SKIPPED
        trace.append("Gross income test skipped (categorical eligibility)")
    elif gross <= limits.gross_limit:
        gross_result = CheckResult.PASSED
        trace.append(
            f"Gross income test passed: {format_money(gross)} <= {format_money(limits.gross_limit)}"
        )
    elif household.has_elderly_or_disabled(rule_table.elderly_age):
        gross_result = CheckResult.EXEMPT
        trace.append("Gross income test waived (household has elderly or disabled member)")
    else:
        trace.append(
            f"Gross income test failed: {format_money(gross)} > {format_money(limits.gross_limit)}"
        )
        return verdict(
            False,
            GROSS_INCOME_EXCEEDS_LIMIT,
            CheckResult.FAILED,
            CheckResult.NOT_EVALUATED,
            CheckResult.NOT_EVALUATED,
        )

    # Net income test, never waived
    if net > limits.net_limit:
        trace.append(
            f"Net income test failed: {format_money(net)} > {format_money(limits.net_limit)}"
        )
        return verdict(
            False, NET_INCOME_EXCEEDS_LIMIT, gross_result, CheckResult.FAILED, CheckResult.NOT_EVALUATED
        )
    trace.append(f"Net income test passed: {format_money(net)} <= {format_money(limits.net_limit)}")

    # Resource test, opaque pass/fail from the asset-verification collaborator
    if resources is None:
        trace.append("Resource test not verified; determination pending")
        return verdict(
            False,
            RESOURCES_NOT_VERIFIED,
            gross_result,
            CheckResult.PASSED,
            CheckResult.NOT_EVALUATED,
        )
    within_limits = resources if isinstance(resources, bool) else resources(household)
    if not isinstance(within_limits, bool):
        raise ValidationError(
            f"asset verifier must return a bool, got {type(within_limits).__name__}"
        )
    if not within_limits:
        trace.append("Resource test failed")
        return verdict(
            False, RESOURCES_EXCEED_LIMIT, gross_result, CheckResult.PASSED, CheckResult.FAILED
        )
    trace.append("Resource test passed")

    return verdict(True, ELIGIBLE, gross_result, CheckResult.PASSED, CheckResult.PASSED)
