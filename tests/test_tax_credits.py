"""Tests for EITC, CTC/ACTC and education credit calculators."""

from decimal import Decimal

import pytest

from rac_benefits.calculators import (
    StudentExpenses,
    calculate_actc,
    calculate_ctc,
    calculate_education_credits,
    calculate_eitc,
)
from rac_benefits.errors import NotFoundError, ValidationError


class TestEITC:
    """Tests for EITC per 26 USC 32."""

    def test_plateau_one_child(self):
        """34% of the 2025 earned income amount (12,729)."""
        result = calculate_eitc(earned_income=20000, agi=20000, n_children=1)
        assert result.eitc == Decimal("4328.00")
        assert result.eligible

    def test_phase_in_no_children(self):
        """7.65% of 5,000 = 382.50, rounded half-up."""
        assert calculate_eitc(earned_income=5000, agi=5000).eitc == Decimal("383.00")

    def test_phased_out(self):
        result = calculate_eitc(earned_income=40000, agi=40000)
        assert result.eitc == Decimal("0.00")
        assert result.reason == "phased out"

    def test_joint_phaseout_starts_later(self):
        single = calculate_eitc(earned_income=28000, agi=28000, n_children=2)
        joint = calculate_eitc(
            earned_income=28000, agi=28000, n_children=2, filing_status="married_joint"
        )
        assert joint.eitc > single.eitc

    def test_children_capped_at_three(self):
        assert (
            calculate_eitc(earned_income=20000, agi=20000, n_children=5).eitc
            == calculate_eitc(earned_income=20000, agi=20000, n_children=3).eitc
        )

    def test_married_separate_ineligible(self):
        result = calculate_eitc(
            earned_income=10000, agi=10000, n_children=1, filing_status="married_separate"
        )
        assert result.eitc == 0
        assert not result.eligible

    def test_investment_income_limit(self):
        result = calculate_eitc(
            earned_income=10000, agi=22000, n_children=1, investment_income=12000
        )
        assert result.reason == "investment income exceeds limit"

    def test_no_earned_income(self):
        assert calculate_eitc(earned_income=0, agi=5000, n_children=2).eitc == 0

    def test_unsupported_year(self):
        with pytest.raises(NotFoundError):
            calculate_eitc(earned_income=1000, tax_year=2019)

    def test_citations(self):
        result = calculate_eitc(earned_income=1000, agi=1000)
        assert {"variable": "eitc", "source": "26 USC 32"} in result.citations


class TestCTC:
    """Tests for CTC per 26 USC 24."""

    def test_full_credit_2025(self):
        assert calculate_ctc(2, agi=50000).ctc == Decimal("4400.00")

    def test_full_credit_2024(self):
        assert calculate_ctc(2, agi=50000, tax_year=2024).ctc == Decimal("4000.00")

    def test_phaseout_rounds_up_per_thousand(self):
        """10,500 over the threshold is 11 steps of $50."""
        assert calculate_ctc(2, agi=210500).ctc == Decimal("3850.00")

    def test_joint_threshold(self):
        assert calculate_ctc(1, agi=390000, filing_status="married_joint").ctc == Decimal("2200.00")

    def test_no_children(self):
        assert calculate_ctc(0, agi=10000).ctc == 0


class TestACTC:
    """Tests for ACTC per 26 USC 24(d)."""

    def test_earnings_limited(self):
        """15% of (20,000 - 2,500)."""
        assert calculate_actc(2, earned_income=20000).actc == Decimal("2625.00")

    def test_per_child_cap(self):
        assert calculate_actc(1, earned_income=50000).actc == Decimal("1700.00")

    def test_limited_to_unused_credit(self):
        assert calculate_actc(2, earned_income=20000, unused_ctc=1000).actc == Decimal("1000.00")

    def test_below_threshold(self):
        assert calculate_actc(1, earned_income=2000).actc == 0


class TestEducationCredits:
    """Tests for AOTC and LLC per 26 USC 25A."""

    def test_aotc_full(self):
        """2,000 + 25% of the next 2,000; 40% refundable."""
        result = calculate_education_credits([StudentExpenses(4000)], magi=50000)
        assert result.aotc == Decimal("2500.00")
        assert result.aotc_refundable == Decimal("1000.00")
        assert result.aotc_nonrefundable == Decimal("1500.00")

    def test_llc(self):
        result = calculate_education_credits([StudentExpenses(12000, "llc")], magi=50000)
        assert result.llc == Decimal("2000.00")
        assert result.aotc == 0

    def test_phaseout_midpoint(self):
        result = calculate_education_credits([StudentExpenses(4000)], magi=85000)
        assert result.aotc == Decimal("1250.00")

    def test_phased_out_fully(self):
        result = calculate_education_credits([StudentExpenses(4000)], magi=95000)
        assert result.aotc == 0

    def test_married_separate(self):
        result = calculate_education_credits(
            [StudentExpenses(4000)], magi=10000, filing_status="married_separate"
        )
        assert result.aotc == 0

    def test_bad_credit_type(self):
        with pytest.raises(ValidationError):
            StudentExpenses(1000, "hope")
