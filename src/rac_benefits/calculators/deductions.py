"""
Income & Deduction Calculator - countable (net) income.

Source: 7 USC 2014(e), 7 CFR 273.9(d)

The deduction order is fixed by regulation; reordering the steps changes
the result. Every intermediate income figure floors at zero.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Tuple

from ..household import Household
from ..money import ZERO, format_money, round_money
from ..rules.table import RuleTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeductionResult:
    """Ordered deduction breakdown and the resulting net income."""

    gross_income: Decimal
    earned_income_deduction: Decimal
    standard_deduction: Decimal
    dependent_care_deduction: Decimal
    medical_deduction: Decimal
    child_support_deduction: Decimal
    excess_shelter_deduction: Decimal
    adjusted_income: Decimal
    net_income: Decimal
    shelter_capped: bool
    calculation_trace: Tuple[str, ...]

    @property
    def breakdown(self) -> List[Tuple[str, Decimal]]:
        """Deductions in the order they were applied."""
        return [
            ("earned_income", self.earned_income_deduction),
            ("standard", self.standard_deduction),
            ("dependent_care", self.dependent_care_deduction),
            ("medical", self.medical_deduction),
            ("child_support", self.child_support_deduction),
            ("excess_shelter", self.excess_shelter_deduction),
        ]

    @property
    def total_deductions(self) -> Decimal:
        return sum((amount for _, amount in self.breakdown), ZERO)


def compute_deductions(household: Household, rule_table: RuleTable) -> DeductionResult:
    """
    Apply the deduction stacking order to gross income.

    Args:
        household: Validated household financials
        rule_table: Rule table for the household's jurisdiction and year

    Returns:
        DeductionResult with each deduction and the net income (>= 0)
    """
    mode = rule_table.rounding_mode
    limits = rule_table.limits_for(household.size)
    elderly_or_disabled = household.has_elderly_or_disabled(rule_table.elderly_age)
    gross = household.gross_income
    trace = [
        f"Household size: {household.size}",
        f"Gross monthly income: {format_money(gross)}",
    ]

    # 1. Earned income deduction (flat rate)
    earned_deduction = round_money(household.earned_income * rule_table.earned_income_rate, mode)
    trace.append(
        f"Earned income deduction ({rule_table.earned_income_rate * 100:.0f}% of "
        f"{format_money(household.earned_income)}): {format_money(earned_deduction)}"
    )

    # 2. Standard deduction by household size
    standard = limits.standard_deduction
    adjusted = max(ZERO, gross - earned_deduction - standard)
    trace.append(f"Standard deduction: {format_money(standard)}")

    # 3. Dependent care
    dependent_care = household.dependent_care_cost
    if rule_table.dependent_care_cap is not None:
        dependent_care = min(dependent_care, rule_table.dependent_care_cap)
    adjusted = max(ZERO, adjusted - dependent_care)
    if dependent_care:
        trace.append(f"Dependent care deduction: {format_money(dependent_care)}")

    # 4. Medical, elderly/disabled households only, excess over the floor
    medical = ZERO
    floor = rule_table.medical_expense_floor
    if elderly_or_disabled and household.medical_expenses > floor:
        medical = household.medical_expenses - floor
        adjusted = max(ZERO, adjusted - medical)
        trace.append(
            f"Medical expense deduction (amount over {format_money(floor)}): "
            f"{format_money(medical)}"
        )
    elif household.medical_expenses and not elderly_or_disabled:
        trace.append("Medical expenses not deductible (no elderly or disabled member)")

    # 5. Legally obligated child support paid
    child_support = household.child_support_paid
    adjusted = max(ZERO, adjusted - child_support)
    if child_support:
        trace.append(f"Child support deduction: {format_money(child_support)}")

    # 6. Excess shelter over half of the remaining income
    half_income = round_money(adjusted / 2, mode)
    excess_shelter = max(ZERO, household.shelter_total - half_income)
    shelter_capped = False
    cap = rule_table.shelter_cap
    if not elderly_or_disabled and cap is not None and excess_shelter > cap:
        excess_shelter = cap
        shelter_capped = True
    if household.shelter_total:
        if elderly_or_disabled:
            label = " (uncapped, elderly/disabled household)"
        elif shelter_capped:
            label = f" (capped at {format_money(cap)})"
        else:
            label = ""
        trace.append(
            f"Excess shelter deduction{label}: {format_money(household.shelter_total)} - "
            f"{format_money(half_income)} = {format_money(excess_shelter)}"
        )

    net = max(ZERO, adjusted - excess_shelter)
    trace.append(f"Net monthly income: {format_money(net)}")
    logger.debug("Net income for household of %d: %s", household.size, net)

    return DeductionResult(
        gross_income=gross,
        earned_income_deduction=earned_deduction,
        standard_deduction=standard,
        dependent_care_deduction=dependent_care,
        medical_deduction=medical,
        child_support_deduction=child_support,
        excess_shelter_deduction=excess_shelter,
        adjusted_income=adjusted,
        net_income=net,
        shelter_capped=shelter_capped,
        calculation_trace=tuple(trace),
    )
