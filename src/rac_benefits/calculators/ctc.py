"""
CTC Calculator.

Source: 26 USC 24
Tax Years: 2023-2025
"""

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from ..money import ZERO, round_dollars, to_money
from ..rules.tax_years import CTC_COMMON, is_joint, tax_year_params


@dataclass
class CTCResult:
    """CTC calculation result with citation chain."""

    ctc: Decimal
    base_credit: Decimal
    phaseout_amount: Decimal
    citations: list


@dataclass
class ACTCResult:
    """ACTC (refundable portion) calculation result."""

    actc: Decimal
    earned_income_above_threshold: Decimal
    citations: list


def calculate_ctc(
    n_qualifying_children: int = 0,
    agi=0,
    filing_status: str = "single",
    tax_year: int = 2025,
) -> CTCResult:
    """
    Calculate Child Tax Credit per 26 USC 24.

    Args:
        n_qualifying_children: Number of qualifying children under 17
        agi: Adjusted Gross Income
        filing_status: Filing status of the return
        tax_year: Tax year of the return

    Returns:
        CTCResult with credit amount and citation chain
    """
    params = tax_year_params(tax_year)["ctc"]
    agi = to_money(agi, "agi")

    # 24(a): Base credit per qualifying child
    base_credit = Decimal(max(n_qualifying_children, 0) * params["credit_per_child"])

    # 24(b): Phaseout for high earners
    phaseout_start = (
        CTC_COMMON["phaseout_joint"] if is_joint(filing_status) else CTC_COMMON["phaseout_single"]
    )
    excess = max(ZERO, agi - phaseout_start)

    # Phaseout is $50 per $1,000 over threshold (rounded up)
    steps = (excess / CTC_COMMON["phaseout_step"]).to_integral_value(rounding=ROUND_CEILING)
    phaseout_amount = steps * CTC_COMMON["phaseout_rate"]

    # Credit after phaseout (can't go below zero)
    ctc = round_dollars(max(ZERO, base_credit - phaseout_amount))

    return CTCResult(
        ctc=ctc,
        base_credit=base_credit,
        phaseout_amount=phaseout_amount,
        citations=[
            {"param": "credit_per_child", "source": "26 USC 24(a), 24(h)(2)"},
            {"param": "phaseout_single", "source": "26 USC 24(b)(2)"},
            {"param": "phaseout_joint", "source": "26 USC 24(b)(2)"},
            {"param": "phaseout_rate", "source": "26 USC 24(b)(1)"},
            {"variable": "ctc", "source": "26 USC 24"},
        ],
    )


def calculate_actc(
    n_qualifying_children: int = 0,
    earned_income=0,
    unused_ctc=None,
    tax_year: int = 2025,
) -> ACTCResult:
    """
    Calculate Additional Child Tax Credit (refundable portion) per 26 USC 24(d).

    Args:
        n_qualifying_children: Number of qualifying children under 17
        earned_income: Earned income (wages, self-employment)
        unused_ctc: CTC left after the nonrefundable portion offset tax;
            None means no such limit
        tax_year: Tax year of the return

    Returns:
        ACTCResult with refundable credit amount
    """
    params = tax_year_params(tax_year)["ctc"]
    earned = to_money(earned_income, "earned_income")

    # 24(d): 15% of earned income above $2,500, up to the per-child maximum
    earned_above_threshold = max(ZERO, earned - CTC_COMMON["refundable_threshold"])
    refundable_by_earnings = earned_above_threshold * Decimal(CTC_COMMON["refundable_rate"])
    max_refundable = Decimal(max(n_qualifying_children, 0) * params["refundable_max"])

    # ACTC is the lesser of: refundable calc, max refundable, unused credit
    actc = min(refundable_by_earnings, max_refundable)
    if unused_ctc is not None:
        actc = min(actc, to_money(unused_ctc, "unused_ctc"))
    actc = round_dollars(max(ZERO, actc))

    return ACTCResult(
        actc=actc,
        earned_income_above_threshold=earned_above_threshold,
        citations=[
            {"param": "refundable_max", "source": "26 USC 24(h)(5)"},
            {"param": "refundable_rate", "source": "26 USC 24(d)(1)(B)"},
            {"param": "refundable_threshold", "source": "26 USC 24(d)(1)(B)"},
            {"variable": "actc", "source": "26 USC 24(d)"},
        ],
    )
