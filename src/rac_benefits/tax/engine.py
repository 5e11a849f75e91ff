"""
Tax Calculation Engine.

Source: 26 USC 1, 24, 25A, 32, 63

documents -> income -> AGI -> standard deduction -> taxable income ->
bracket tax -> credits (EITC, child, education, in that order) ->
refund = withholding - (tax - credits).

Every amount is a Decimal in cents. Nonrefundable credits are limited to
the tax left after the credits applied before them.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..calculators.ctc import calculate_actc, calculate_ctc
from ..calculators.education import StudentExpenses, calculate_education_credits
from ..calculators.eitc import calculate_eitc
from ..config import ExtractionConfig
from ..errors import ValidationError
from ..money import ZERO, format_money, round_money
from ..rules.tax_years import FILING_STATUSES, CTC_COMMON, filing_key, tax_year_params
from .documents import (
    Form1098T,
    Form1099DIV,
    Form1099G,
    Form1099INT,
    Form1099NEC,
    ParsedDocument,
    TaxDocument,
    W2,
    parse_document,
)
from .figures import TaxReturnFigures

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dependent:
    """A dependent claimed on the return."""

    age: int
    student: bool = False
    disabled: bool = False

    def __post_init__(self):
        if isinstance(self.age, bool) or not isinstance(self.age, int) or self.age < 0:
            raise ValidationError(f"dependent age must be a non-negative integer, got {self.age!r}")

    @property
    def is_ctc_qualifying(self) -> bool:
        # 24(c)(1): under 17 at year end
        return self.age < CTC_COMMON["qualifying_age_under"]

    @property
    def is_eitc_qualifying(self) -> bool:
        # 152(c)(3): under 19, under 24 if a student, any age if disabled
        return self.age < 19 or (self.student and self.age < 24) or self.disabled


@dataclass(frozen=True)
class IncomeSummary:
    """Income aggregated from all documents."""

    wages: Decimal = ZERO
    nonemployee_compensation: Decimal = ZERO
    interest: Decimal = ZERO
    dividends: Decimal = ZERO
    unemployment: Decimal = ZERO
    withholding: Decimal = ZERO

    @property
    def total_income(self) -> Decimal:
        return (
            self.wages
            + self.nonemployee_compensation
            + self.interest
            + self.dividends
            + self.unemployment
        )

    @property
    def earned_income(self) -> Decimal:
        return self.wages + self.nonemployee_compensation

    @property
    def investment_income(self) -> Decimal:
        return self.interest + self.dividends


@dataclass(frozen=True)
class TaxCalculation:
    """Figures plus the trace and extraction caveats behind them."""

    figures: TaxReturnFigures
    income: IncomeSummary
    tax_year: int
    filing_status: str
    calculation_trace: Tuple[str, ...] = field(default_factory=tuple)
    low_confidence_fields: Tuple[str, ...] = field(default_factory=tuple)


DocumentInput = Union[Mapping, TaxDocument, ParsedDocument]


def _parse_all(
    documents: Iterable[DocumentInput], config: ExtractionConfig
) -> List[ParsedDocument]:
    parsed = []
    for doc in documents:
        if isinstance(doc, ParsedDocument):
            parsed.append(doc)
        elif isinstance(doc, TaxDocument):
            parsed.append(ParsedDocument(document=doc))
        else:
            parsed.append(parse_document(doc, config))
    return parsed


def aggregate_income(documents: Sequence[TaxDocument]) -> IncomeSummary:
    """Sum wage, 1099 and withholding amounts across documents."""
    totals = {
        "wages": ZERO,
        "nonemployee_compensation": ZERO,
        "interest": ZERO,
        "dividends": ZERO,
        "unemployment": ZERO,
        "withholding": ZERO,
    }
    for doc in documents:
        if isinstance(doc, W2):
            totals["wages"] += doc.amount("wages")
        elif isinstance(doc, Form1099NEC):
            totals["nonemployee_compensation"] += doc.amount("nonemployee_compensation")
        elif isinstance(doc, Form1099INT):
            totals["interest"] += doc.amount("interest_income")
        elif isinstance(doc, Form1099DIV):
            totals["dividends"] += doc.amount("ordinary_dividends")
        elif isinstance(doc, Form1099G):
            totals["unemployment"] += doc.amount("unemployment_compensation")
        totals["withholding"] += doc.withholding
    return IncomeSummary(**totals)


def bracket_tax(taxable_income: Decimal, brackets) -> Decimal:
    """Progressive tax over (upper bound, rate) brackets, rounded to cents."""
    tax = ZERO
    lower = ZERO
    for upper, rate in brackets:
        if taxable_income <= lower:
            break
        top = taxable_income if upper is None else min(taxable_income, upper)
        tax += (top - lower) * rate
        if upper is None:
            break
        lower = upper
    return round_money(tax)


def calculate_detailed(
    documents: Iterable[DocumentInput],
    filing_status: str,
    dependents: Sequence[Dependent] = (),
    tax_year: int = 2025,
    config: Optional[ExtractionConfig] = None,
) -> TaxCalculation:
    """
    Compute a federal return from extracted documents.

    Args:
        documents: Extraction mappings, typed documents or parsed documents
        filing_status: One of FILING_STATUSES
        dependents: Dependents claimed on the return
        tax_year: Tax year (must have published parameters)
        config: Extraction configuration for low-confidence flagging

    Returns:
        TaxCalculation with TaxReturnFigures and trace
    """
    if filing_status not in FILING_STATUSES:
        raise ValidationError(
            f"unknown filing status {filing_status!r} (expected one of {', '.join(FILING_STATUSES)})"
        )
    params = tax_year_params(tax_year)
    config = config or ExtractionConfig()
    dependents = tuple(dependents)
    for dep in dependents:
        if not isinstance(dep, Dependent):
            raise ValidationError(f"dependents must be Dependent instances, got {dep!r}")

    parsed = _parse_all(documents, config)
    docs = [p.document for p in parsed]
    low_confidence = tuple(
        f"{p.document.document_type}.{name}" for p in parsed for name in p.low_confidence_fields
    )
    trace = [f"Tax year {tax_year}, filing status {filing_status}"]

    # Income and AGI
    income = aggregate_income(docs)
    agi = income.total_income
    trace.append(f"Total income / AGI: {format_money(agi)}")

    # Standard deduction and taxable income
    schedule = filing_key(filing_status)
    standard = Decimal(params["standard_deduction"][schedule])
    taxable = max(ZERO, agi - standard)
    trace.append(f"Standard deduction: {format_money(standard)}")
    trace.append(f"Taxable income: {format_money(taxable)}")

    # Tax from brackets
    tax = bracket_tax(taxable, params["brackets"][schedule])
    trace.append(f"Tax before credits: {format_money(tax)}")

    # 1. Earned income credit (refundable)
    eitc_result = calculate_eitc(
        earned_income=income.earned_income,
        agi=agi,
        n_children=sum(1 for d in dependents if d.is_eitc_qualifying),
        filing_status=filing_status,
        investment_income=income.investment_income,
        tax_year=tax_year,
    )
    eitc = eitc_result.eitc
    trace.append(f"EITC: {format_money(eitc)} ({eitc_result.reason})")

    # 2. Child tax credit: nonrefundable up to tax, remainder via ACTC
    n_ctc = sum(1 for d in dependents if d.is_ctc_qualifying)
    ctc = calculate_ctc(n_ctc, agi, filing_status, tax_year).ctc
    remaining_tax = tax
    ctc_nonrefundable = min(ctc, remaining_tax)
    remaining_tax -= ctc_nonrefundable
    actc = calculate_actc(
        n_ctc, income.earned_income, unused_ctc=ctc - ctc_nonrefundable, tax_year=tax_year
    ).actc
    child_credit = ctc_nonrefundable + actc
    trace.append(
        f"Child tax credit: {format_money(ctc_nonrefundable)} nonrefundable + "
        f"{format_money(actc)} refundable"
    )

    # 3. Education credits
    students = [
        StudentExpenses(doc.qualified_expenses, doc.credit_type)
        for doc in docs
        if isinstance(doc, Form1098T)
    ]
    education = calculate_education_credits(students, agi, filing_status)
    education_nonrefundable = min(education.nonrefundable, remaining_tax)
    remaining_tax -= education_nonrefundable
    education_credit = education_nonrefundable + education.aotc_refundable
    if students:
        trace.append(f"Education credits: {format_money(education_credit)}")

    credits = eitc + child_credit + education_credit
    refund = income.withholding - (tax - credits)
    trace.append(f"Withholding: {format_money(income.withholding)}")
    trace.append(
        f"{'Refund' if refund >= 0 else 'Balance due'}: {format_money(abs(refund))}"
    )
    logger.debug("Tax calculation TY%d %s: refund %s", tax_year, filing_status, refund)

    figures = TaxReturnFigures(
        agi=agi,
        taxable_income=taxable,
        federal_tax=tax,
        withholding=income.withholding,
        refund=refund,
        eitc=eitc,
        child_credit=child_credit,
        education_credit=education_credit,
    )
    return TaxCalculation(
        figures=figures,
        income=income,
        tax_year=tax_year,
        filing_status=filing_status,
        calculation_trace=tuple(trace),
        low_confidence_fields=low_confidence,
    )


def calculate(
    documents: Iterable[DocumentInput],
    filing_status: str,
    dependents: Sequence[Dependent] = (),
    tax_year: int = 2025,
    config: Optional[ExtractionConfig] = None,
) -> TaxReturnFigures:
    """Compute TaxReturnFigures from extracted documents."""
    return calculate_detailed(documents, filing_status, dependents, tax_year, config).figures
