"""Shared fixtures: shipped rule tables and the reference household."""

from decimal import Decimal

import pytest

from rac_benefits.household import Household, Member
from rac_benefits.rules import IncomeLimit, RuleTable, default_store, federal_snap_table


@pytest.fixture
def fy2024():
    return federal_snap_table(2024)


@pytest.fixture
def fy2025():
    return federal_snap_table(2025)


@pytest.fixture
def store():
    return default_store()


@pytest.fixture
def small_table():
    """Two-size table with round numbers, for hand-checked arithmetic."""
    return RuleTable(
        jurisdiction="TEST",
        program="SNAP",
        fiscal_year=2030,
        income_limits={
            1: IncomeLimit(gross_limit=1000, net_limit=800, standard_deduction=100),
            2: IncomeLimit(gross_limit=1500, net_limit=1200, standard_deduction=100),
        },
        max_allotment={1: 200, 2: 400},
        additional_member_gross=500,
        additional_member_net=400,
        additional_member_allotment=150,
        minimum_benefit=20,
        shelter_cap=300,
    )


@pytest.fixture
def scenario_household():
    """Size 3, $2,500 earned, $900 shelter, $200 utility allowance."""
    return Household(
        size=3,
        members=(Member(age=35), Member(age=33), Member(age=20)),
        earned_income=Decimal("2500"),
        shelter_cost=Decimal("900"),
        utility_allowance=Decimal("200"),
    )
