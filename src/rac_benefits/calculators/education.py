"""
Education Credits Calculator (American Opportunity and Lifetime Learning).

Source: 26 USC 25A
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from ..errors import ValidationError
from ..money import ZERO, round_money, to_money
from ..rules.tax_years import EDUCATION_PARAMS, MARRIED_SEPARATE, is_joint

AOTC = "aotc"
LLC = "llc"


@dataclass(frozen=True)
class StudentExpenses:
    """Qualified expenses for one student and the credit claimed for them."""

    qualified_expenses: Decimal
    credit: str = AOTC

    def __post_init__(self):
        if self.credit not in (AOTC, LLC):
            raise ValidationError(f"education credit must be 'aotc' or 'llc', got {self.credit!r}")
        amount = to_money(self.qualified_expenses, "qualified_expenses")
        if amount < 0:
            raise ValidationError("qualified_expenses must not be negative")
        object.__setattr__(self, "qualified_expenses", amount)


@dataclass
class EducationCreditResult:
    """Education credits after the MAGI phaseout."""

    aotc: Decimal
    aotc_refundable: Decimal
    llc: Decimal
    phaseout_fraction: Decimal
    citations: list

    @property
    def aotc_nonrefundable(self) -> Decimal:
        return self.aotc - self.aotc_refundable

    @property
    def nonrefundable(self) -> Decimal:
        return self.aotc_nonrefundable + self.llc


def _phaseout_fraction(magi: Decimal, filing_status: str) -> Decimal:
    """Share of the credit kept after the 25A(d) phaseout."""
    lower, upper = (
        EDUCATION_PARAMS["phaseout_joint"]
        if is_joint(filing_status)
        else EDUCATION_PARAMS["phaseout_single"]
    )
    if magi <= lower:
        return Decimal("1")
    if magi >= upper:
        return Decimal("0")
    return (Decimal(upper) - magi) / (upper - lower)


def calculate_education_credits(
    students: Iterable[StudentExpenses],
    magi=0,
    filing_status: str = "single",
) -> EducationCreditResult:
    """
    Calculate the AOTC and LLC per 26 USC 25A.

    Args:
        students: Per-student qualified expenses and elected credit
        magi: Modified AGI
        filing_status: Filing status of the return

    Returns:
        EducationCreditResult; amounts rounded to cents half-up
    """
    students: Tuple[StudentExpenses, ...] = tuple(students)
    magi = to_money(magi, "magi")
    citations = [
        {"param": "aotc", "source": "26 USC 25A(b)"},
        {"param": "llc", "source": "26 USC 25A(c)"},
        {"param": "phaseout", "source": "26 USC 25A(d)"},
        {"param": "aotc_refundable_rate", "source": "26 USC 25A(i)(5)"},
    ]

    # 25A(g)(6): no credit for married filing separately
    if filing_status == MARRIED_SEPARATE or not students:
        return EducationCreditResult(ZERO, ZERO, ZERO, Decimal("0"), citations)

    full = EDUCATION_PARAMS["aotc_full_expenses"]
    partial = EDUCATION_PARAMS["aotc_partial_expenses"]
    partial_rate = Decimal(EDUCATION_PARAMS["aotc_partial_rate"])

    aotc = ZERO
    llc_expenses = ZERO
    for student in students:
        expenses = student.qualified_expenses
        if student.credit == AOTC:
            # 100% of the first $2,000 plus 25% of the next $2,000, per student
            aotc += min(expenses, full) + partial_rate * min(max(ZERO, expenses - full), partial)
        else:
            llc_expenses += expenses
    llc = Decimal(EDUCATION_PARAMS["llc_rate"]) * min(llc_expenses, EDUCATION_PARAMS["llc_expense_cap"])

    fraction = _phaseout_fraction(magi, filing_status)
    aotc = round_money(aotc * fraction)
    llc = round_money(llc * fraction)
    aotc_refundable = round_money(aotc * Decimal(EDUCATION_PARAMS["aotc_refundable_rate"]))

    return EducationCreditResult(
        aotc=aotc,
        aotc_refundable=aotc_refundable,
        llc=llc,
        phaseout_fraction=fraction,
        citations=citations,
    )
