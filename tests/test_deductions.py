"""Tests for the deduction stacking order."""

from dataclasses import replace
from decimal import Decimal

import pytest

from rac_benefits.calculators import compute_deductions
from rac_benefits.errors import ValidationError
from rac_benefits.household import Household, Member


class TestScenario:
    """Size 3, $2,500 earned, $900 shelter, $200 utilities, FY2024 table."""

    def test_each_step(self, scenario_household, fy2024):
        """Every deduction lands where the fixed order puts it."""
        result = compute_deductions(scenario_household, fy2024)
        assert result.gross_income == Decimal("2500.00")
        assert result.earned_income_deduction == Decimal("500.00")
        assert result.standard_deduction == Decimal("198.00")
        assert result.adjusted_income == Decimal("1802.00")
        # 1,100 shelter - half of 1,802
        assert result.excess_shelter_deduction == Decimal("199.00")
        assert result.net_income == Decimal("1603.00")
        assert not result.shelter_capped

    def test_breakdown_order(self, scenario_household, fy2024):
        """Breakdown lists deductions in application order."""
        result = compute_deductions(scenario_household, fy2024)
        assert [name for name, _ in result.breakdown] == [
            "earned_income",
            "standard",
            "dependent_care",
            "medical",
            "child_support",
            "excess_shelter",
        ]
        assert result.total_deductions == Decimal("897.00")

    def test_deterministic(self, scenario_household, fy2024):
        """Identical inputs give identical results, trace included."""
        assert compute_deductions(scenario_household, fy2024) == compute_deductions(
            scenario_household, fy2024
        )

    def test_trace_mentions_net_income(self, scenario_household, fy2024):
        result = compute_deductions(scenario_household, fy2024)
        assert result.calculation_trace[-1] == "Net monthly income: $1,603.00"


class TestDeductionRules:
    """Tests for individual deductions against the small table."""

    def test_shelter_capped_without_elderly(self, small_table):
        """Excess shelter stops at the cap."""
        household = Household(size=2, unearned_income=1000, shelter_cost=1000)
        result = compute_deductions(household, small_table)
        assert result.excess_shelter_deduction == Decimal("300.00")
        assert result.shelter_capped
        assert result.net_income == Decimal("600.00")

    def test_shelter_uncapped_with_elderly(self, small_table):
        """Elderly member lifts the cap."""
        household = Household(
            size=2,
            members=(Member(age=65), Member(age=40)),
            unearned_income=1000,
            shelter_cost=1000,
        )
        result = compute_deductions(household, small_table)
        assert result.excess_shelter_deduction == Decimal("550.00")
        assert not result.shelter_capped
        assert result.net_income == Decimal("350.00")

    def test_shelter_uncapped_with_disabled(self, small_table):
        household = Household(
            size=1,
            members=(Member(age=30, disabled=True),),
            unearned_income=500,
            shelter_cost=1000,
        )
        result = compute_deductions(household, small_table)
        # 1,000 - half of 400
        assert result.excess_shelter_deduction == Decimal("800.00")
        assert result.net_income == Decimal("0.00")

    def test_medical_only_excess_over_floor(self, small_table):
        """Only the amount over $35 counts, and only for elderly/disabled."""
        elderly = Household(
            size=1, members=(Member(age=65),), unearned_income=500, medical_expenses=100
        )
        result = compute_deductions(elderly, small_table)
        assert result.medical_deduction == Decimal("65.00")
        assert result.adjusted_income == Decimal("335.00")

        younger = Household(
            size=1, members=(Member(age=30),), unearned_income=500, medical_expenses=100
        )
        result = compute_deductions(younger, small_table)
        assert result.medical_deduction == Decimal("0.00")
        assert result.adjusted_income == Decimal("400.00")

    def test_medical_at_floor_not_deducted(self, small_table):
        household = Household(
            size=1, members=(Member(age=70),), unearned_income=500, medical_expenses=35
        )
        assert compute_deductions(household, small_table).medical_deduction == Decimal("0")

    def test_dependent_care_and_child_support(self, small_table):
        household = Household(
            size=1, unearned_income=500, dependent_care_cost=60, child_support_paid=50
        )
        result = compute_deductions(household, small_table)
        assert result.dependent_care_deduction == Decimal("60.00")
        assert result.child_support_deduction == Decimal("50.00")
        assert result.adjusted_income == Decimal("290.00")

    def test_dependent_care_cap(self, small_table):
        table = replace(small_table, dependent_care_cap=Decimal("25"))
        household = Household(size=1, unearned_income=500, dependent_care_cost=60)
        result = compute_deductions(household, table)
        assert result.dependent_care_deduction == Decimal("25.00")

    def test_utility_allowance_substitutes_for_itemized(self, small_table):
        """Electing the allowance ignores itemized bills, and vice versa."""
        common = dict(size=1, unearned_income=500, shelter_cost=100, itemized_utilities=150)
        allowance = Household(utility_allowance=200, **common)
        itemized = Household(utility_allowance=200, elects_utility_allowance=False, **common)
        assert allowance.shelter_total == Decimal("300.00")
        assert itemized.shelter_total == Decimal("250.00")
        assert compute_deductions(allowance, small_table).excess_shelter_deduction == Decimal("100.00")
        assert compute_deductions(itemized, small_table).excess_shelter_deduction == Decimal("50.00")

    def test_adjusted_income_floors_at_zero(self, small_table):
        """Deductions larger than income never go negative."""
        household = Household(size=1, earned_income=50, dependent_care_cost=500)
        result = compute_deductions(household, small_table)
        assert result.adjusted_income == Decimal("0.00")
        assert result.net_income == Decimal("0.00")


class TestNetIncomeNeverNegative:
    """Net income >= 0 across a spread of households."""

    @pytest.mark.parametrize("earned", [0, 100, 1200, 5000])
    @pytest.mark.parametrize("shelter", [0, 400, 3000])
    @pytest.mark.parametrize("size", [1, 3, 9])
    def test_non_negative(self, fy2025, earned, shelter, size):
        household = Household(
            size=size,
            earned_income=earned,
            shelter_cost=shelter,
            dependent_care_cost=200,
            child_support_paid=150,
        )
        assert compute_deductions(household, fy2025).net_income >= 0


class TestHouseholdValidation:
    """Tests for malformed households."""

    def test_zero_size(self):
        with pytest.raises(ValidationError):
            Household(size=0)

    def test_members_must_match_size(self):
        with pytest.raises(ValidationError):
            Household(size=2, members=(Member(age=30),))

    def test_negative_income(self):
        with pytest.raises(ValidationError):
            Household(size=1, earned_income=-5)

    def test_bad_member_age(self):
        with pytest.raises(ValidationError):
            Member(age=-1)
