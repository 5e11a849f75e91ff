"""
BenefitEngine: the library entry point.

Wires an injected rule table store to the calculators and hands every
determination and report to the caller's event sink. The engine holds no
mutable state of its own.
"""

import logging
from typing import Iterable, Optional, Sequence

from .calculators.allotment import Proration
from .calculators.eligibility import ResourceGate
from .calculators.snap import SNAPBenefitResult, calculate_snap_benefit
from .config import ExtractionConfig, ReconcileConfig
from .events import (
    Clock,
    EligibilityDetermined,
    EventSink,
    VarianceReportGenerated,
    dispatch,
    utc_now,
)
from .household import Household
from .rules.snap import FEDERAL, SNAP
from .rules.table import RuleTableStore
from .tax.engine import DocumentInput, Dependent, TaxCalculation, calculate_detailed
from .validation.comparator import FiguresLike, VarianceReport, reconcile

logger = logging.getLogger(__name__)


class BenefitEngine:
    """
    Eligibility, tax and reconciliation operations over one rule table store.

    Args:
        store: Published rule tables
        emit: Optional event sink (audit/notification collaborator)
        clock: Optional clock returning an aware datetime
    """

    def __init__(
        self,
        store: RuleTableStore,
        emit: Optional[EventSink] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self._emit = emit
        self._clock = clock or utc_now

    def determine_eligibility(
        self,
        household: Household,
        fiscal_year: int,
        jurisdiction: str = FEDERAL,
        program: str = SNAP,
        proration: Optional[Proration] = None,
        resources: Optional[ResourceGate] = None,
    ) -> SNAPBenefitResult:
        """Run the eligibility path and emit EligibilityDetermined."""
        table = self.store.get_rule_table(jurisdiction, program, fiscal_year)
        result = calculate_snap_benefit(household, table, proration, resources)
        logger.info(
            "%s %s FY%d: %s, benefit %s",
            jurisdiction,
            program,
            fiscal_year,
            result.verdict.status.value,
            result.benefit,
        )
        dispatch(
            self._emit,
            EligibilityDetermined(
                result=result,
                timestamp=self._clock(),
                jurisdiction=jurisdiction,
                program=program,
                fiscal_year=fiscal_year,
            ),
        )
        return result

    def calculate_tax(
        self,
        documents: Iterable[DocumentInput],
        filing_status: str,
        dependents: Sequence[Dependent] = (),
        tax_year: int = 2025,
        config: Optional[ExtractionConfig] = None,
    ) -> TaxCalculation:
        return calculate_detailed(documents, filing_status, dependents, tax_year, config)

    def reconcile(
        self,
        reference: FiguresLike,
        computed: FiguresLike,
        config: Optional[ReconcileConfig] = None,
    ) -> VarianceReport:
        """Reconcile figures and emit VarianceReportGenerated."""
        report = reconcile(reference, computed, config)
        dispatch(self._emit, VarianceReportGenerated(result=report, timestamp=self._clock()))
        return report
