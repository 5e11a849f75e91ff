"""Tests for the BenefitEngine facade and emitted events."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from rac_benefits import BenefitEngine
from rac_benefits.errors import NotFoundError
from rac_benefits.events import EligibilityDetermined, VarianceReportGenerated
from rac_benefits.validation import Severity

FIXED = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def events():
    return []


@pytest.fixture
def engine(store, events):
    return BenefitEngine(store, emit=events.append, clock=lambda: FIXED)


class TestDetermineEligibility:
    def test_emits_event_with_result(self, engine, events, scenario_household):
        result = engine.determine_eligibility(
            scenario_household, fiscal_year=2024, resources=True
        )
        assert result.benefit == Decimal("285.00")
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, EligibilityDetermined)
        assert event.result is result
        assert event.timestamp == FIXED
        assert event.fiscal_year == 2024

    def test_ineligible_is_a_verdict_not_an_error(self, engine, events):
        from rac_benefits.household import Household

        result = engine.determine_eligibility(Household(size=1, earned_income=9000), 2025)
        assert not result.eligible
        assert len(events) == 1

    def test_pending_determination_is_emitted(self, engine, events, scenario_household):
        result = engine.determine_eligibility(scenario_household, 2024)
        assert result.verdict.status.value == "pending"
        assert result.benefit == Decimal("0")
        assert events[0].result is result

    def test_unknown_year_is_an_error(self, engine, events, scenario_household):
        """No table means no determination and no event."""
        with pytest.raises(NotFoundError):
            engine.determine_eligibility(scenario_household, fiscal_year=2030)
        assert events == []

    def test_unknown_jurisdiction(self, engine, scenario_household):
        with pytest.raises(NotFoundError):
            engine.determine_eligibility(scenario_household, 2025, jurisdiction="CA")


class TestReconcile:
    def test_tax_then_reconcile(self, engine, events):
        calculation = engine.calculate_tax(
            [{"document_type": "W2", "fields": {"wages": 40000, "federal_withholding": 3000}}],
            "single",
        )
        reference = {**calculation.figures.to_dict(), "refund": "328.00"}
        report = engine.reconcile(reference, calculation.figures)
        assert report.row("refund").severity is Severity.MINOR
        assert report.row("agi").severity is Severity.MATCH
        assert len(events) == 1
        assert isinstance(events[0], VarianceReportGenerated)
        assert events[0].result is report

    def test_without_sink(self, store, scenario_household):
        engine = BenefitEngine(store)
        assert engine.determine_eligibility(scenario_household, 2024, resources=True).eligible


class TestPackageExports:
    def test_version(self):
        import rac_benefits

        assert rac_benefits.__version__ == "0.1.0"

    def test_error_hierarchy(self):
        from rac_benefits import (
            ConflictError,
            EngineError,
            NotFoundError,
            PrecisionError,
            ValidationError,
        )

        for error in (ConflictError, NotFoundError, PrecisionError, ValidationError):
            assert issubclass(error, EngineError)
        assert issubclass(ValidationError, ValueError)
        assert issubclass(NotFoundError, LookupError)
