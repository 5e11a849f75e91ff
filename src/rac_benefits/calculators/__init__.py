"""
Benefit and tax credit calculators.

Every calculator is a pure function of its inputs and an injected rule
table or tax-year parameter set.
"""

from .allotment import AllotmentResult, Proration, compute_allotment
from .ctc import calculate_actc, calculate_ctc
from .deductions import DeductionResult, compute_deductions
from .education import StudentExpenses, calculate_education_credits
from .eitc import calculate_eitc
from .eligibility import CheckResult, EligibilityStatus, EligibilityVerdict, evaluate_eligibility
from .snap import SNAPBenefitResult, calculate_snap_benefit, calculate_snap_eligible

__all__ = [
    "compute_deductions",
    "DeductionResult",
    "evaluate_eligibility",
    "EligibilityVerdict",
    "EligibilityStatus",
    "CheckResult",
    "compute_allotment",
    "AllotmentResult",
    "Proration",
    "calculate_snap_benefit",
    "calculate_snap_eligible",
    "SNAPBenefitResult",
    "calculate_eitc",
    "calculate_ctc",
    "calculate_actc",
    "calculate_education_credits",
    "StudentExpenses",
]
