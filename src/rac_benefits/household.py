"""
Household input for the eligibility path.

A Household is built per calculation request and never persisted here.
All monthly amounts are validated into Decimal cents at construction.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple

from .errors import ValidationError
from .money import non_negative_money


@dataclass(frozen=True)
class Member:
    """One household member."""

    age: int
    disabled: bool = False
    student: bool = False

    def __post_init__(self):
        if isinstance(self.age, bool) or not isinstance(self.age, int) or self.age < 0:
            raise ValidationError(f"member age must be a non-negative integer, got {self.age!r}")

    def is_elderly(self, elderly_age: int = 60) -> bool:
        return self.age >= elderly_age


_MONEY_FIELDS = (
    "earned_income",
    "unearned_income",
    "shelter_cost",
    "utility_allowance",
    "itemized_utilities",
    "dependent_care_cost",
    "child_support_paid",
    "medical_expenses",
)


@dataclass(frozen=True)
class Household:
    """
    Monthly household financials.

    Attributes:
        size: Number of people in the household (>= 1)
        members: Optional per-member detail; when given, must number `size`
        earned_income: Gross monthly earned income
        unearned_income: Gross monthly unearned income
        shelter_cost: Rent/mortgage, taxes and insurance
        utility_allowance: Standard utility allowance for the jurisdiction
        itemized_utilities: Actual utility bills, used when the allowance
            is not elected
        elects_utility_allowance: Use the standard allowance in place of
            itemized utilities
        dependent_care_cost: Dependent care paid for work/training
        child_support_paid: Legally obligated child support paid out
        medical_expenses: Medical costs of elderly/disabled members
        categorically_eligible: Household receives a qualifying program benefit
    """

    size: int
    members: Tuple[Member, ...] = field(default_factory=tuple)
    earned_income: Decimal = Decimal("0")
    unearned_income: Decimal = Decimal("0")
    shelter_cost: Decimal = Decimal("0")
    utility_allowance: Decimal = Decimal("0")
    itemized_utilities: Decimal = Decimal("0")
    elects_utility_allowance: bool = True
    dependent_care_cost: Decimal = Decimal("0")
    child_support_paid: Decimal = Decimal("0")
    medical_expenses: Decimal = Decimal("0")
    categorically_eligible: bool = False

    def __post_init__(self):
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise ValidationError(f"household size must be an integer, got {self.size!r}")
        if self.size < 1:
            raise ValidationError(f"household size must be at least 1, got {self.size}")
        members = tuple(self.members)
        if members and len(members) != self.size:
            raise ValidationError(
                f"household size {self.size} does not match {len(members)} members"
            )
        object.__setattr__(self, "members", members)
        for name in _MONEY_FIELDS:
            object.__setattr__(self, name, non_negative_money(getattr(self, name), name))

    @property
    def gross_income(self) -> Decimal:
        return self.earned_income + self.unearned_income

    @property
    def shelter_total(self) -> Decimal:
        """Shelter cost plus the allowance or itemized utilities, never both."""
        utilities = (
            self.utility_allowance if self.elects_utility_allowance else self.itemized_utilities
        )
        return self.shelter_cost + utilities

    def has_elderly_or_disabled(self, elderly_age: int = 60) -> bool:
        return any(m.disabled or m.is_elderly(elderly_age) for m in self.members)

    def has_child(self, under_age: int = 18) -> bool:
        return any(m.age < under_age for m in self.members)
