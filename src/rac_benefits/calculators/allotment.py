"""
Allotment Calculator - monthly benefit from net income.

Source: 7 USC 2017(a), 7 CFR 273.10(e)

benefit = max_allotment[size] - round(benefit_reduction_rate * net_income),
floored at zero, raised to the minimum benefit for small households, and
prorated for partial benefit periods.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple

from ..errors import ValidationError
from ..money import ZERO, format_money, round_dollars, to_money
from ..rules.table import RuleTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Proration:
    """Fraction of a benefit period covered by a mid-period application."""

    days_remaining: int
    total_days: int

    def __post_init__(self):
        for name in ("days_remaining", "total_days"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
        if self.total_days <= 0:
            raise ValidationError(f"total_days must be positive, got {self.total_days}")
        if not 0 <= self.days_remaining <= self.total_days:
            raise ValidationError(
                f"days_remaining must be between 0 and {self.total_days}, got {self.days_remaining}"
            )


@dataclass(frozen=True)
class AllotmentResult:
    """Monthly benefit with the steps that produced it."""

    monthly_benefit: Decimal
    max_allotment: Decimal
    reduction: Decimal
    full_month_benefit: Decimal
    minimum_benefit_applied: bool = False
    proration: Optional[Proration] = None
    calculation_trace: Tuple[str, ...] = field(default_factory=tuple)


def compute_allotment(
    household_size: int,
    net_income,
    rule_table: RuleTable,
    proration: Optional[Proration] = None,
) -> AllotmentResult:
    """
    Convert net income into a monthly allotment.

    Args:
        household_size: Number of people in the household
        net_income: Monthly net income (>= 0)
        rule_table: Rule table supplying allotments and rounding mode
        proration: Partial-period fraction for initial months

    Returns:
        AllotmentResult; monthly_benefit never exceeds max_allotment
    """
    net = to_money(net_income, "net_income")
    if net < 0:
        raise ValidationError(f"net_income must not be negative, got {net}")
    mode = rule_table.rounding_mode
    max_allotment = rule_table.max_allotment_for(household_size)

    reduction = round_dollars(net * rule_table.benefit_reduction_rate, mode)
    benefit = max(ZERO, max_allotment - reduction)
    trace = [
        f"Benefit calculation: {format_money(max_allotment)} - "
        f"({rule_table.benefit_reduction_rate * 100:.0f}% x {format_money(net)} = "
        f"{format_money(reduction)}) = {format_money(benefit)}"
    ]

    minimum_applied = False
    minimum = rule_table.minimum_benefit
    if household_size <= rule_table.minimum_benefit_max_size and ZERO < benefit < minimum:
        benefit = minimum
        minimum_applied = True
        trace.append(f"Minimum benefit applied: {format_money(minimum)}")
    benefit = min(benefit, max_allotment)
    full_month = benefit

    if proration is not None:
        benefit = round_dollars(
            benefit * proration.days_remaining / proration.total_days, mode
        )
        trace.append(
            f"Prorated {proration.days_remaining}/{proration.total_days} days: "
            f"{format_money(benefit)}"
        )

    logger.debug("Allotment for household of %d: %s", household_size, benefit)
    return AllotmentResult(
        monthly_benefit=benefit,
        max_allotment=max_allotment,
        reduction=reduction,
        full_month_benefit=full_month,
        minimum_benefit_applied=minimum_applied,
        proration=proration,
        calculation_trace=tuple(trace),
    )
