"""
EITC Calculator.

Source: 26 USC 32
Tax Years: 2023-2025 (Rev. Proc. 2022-38, 2023-34, 2024-40)
"""

from dataclasses import dataclass
from decimal import Decimal

from ..money import ZERO, round_dollars, to_money
from ..rules.tax_years import EITC_PERCENTAGES, MARRIED_SEPARATE, is_joint, tax_year_params


@dataclass
class EITCResult:
    """EITC calculation result with citation chain."""

    eitc: Decimal
    credit_base: Decimal
    phaseout: Decimal
    eligible: bool
    reason: str
    citations: list


def calculate_eitc(
    earned_income=0,
    agi=0,
    n_children: int = 0,
    filing_status: str = "single",
    investment_income=0,
    tax_year: int = 2025,
) -> EITCResult:
    """
    Calculate EITC per 26 USC 32.

    Args:
        earned_income: Earned income (wages, self-employment)
        agi: Adjusted Gross Income
        n_children: Number of qualifying children (0-3+)
        filing_status: Filing status of the return
        investment_income: Interest and dividends, gated by 32(i)
        tax_year: Tax year of the return

    Returns:
        EITCResult with credit amount and citation chain
    """
    params = tax_year_params(tax_year)["eitc"]
    earned = to_money(earned_income, "earned_income")
    agi = to_money(agi, "agi")
    investment = to_money(investment_income, "investment_income")
    citations = [
        {"param": "credit_pct", "source": "26 USC 32(b)(1)"},
        {"param": "phaseout_pct", "source": "26 USC 32(b)(1)"},
        {"param": "earned_income_amount", "source": f"Rev. Proc. for TY{tax_year}"},
        {"param": "investment_income_limit", "source": "26 USC 32(i)"},
        {"variable": "eitc", "source": "26 USC 32"},
    ]

    def ineligible(reason: str) -> EITCResult:
        return EITCResult(ZERO, ZERO, ZERO, False, reason, citations)

    # 32(d): married individuals must file jointly
    if filing_status == MARRIED_SEPARATE:
        return ineligible("married filing separately")
    # 32(i): disqualified investment income
    if investment > params["investment_income_limit"]:
        return ineligible("investment income exceeds limit")
    if earned <= 0:
        return ineligible("no earned income")

    # Cap children at 3 per 32(b)(1)
    n = min(max(n_children, 0), 3)

    credit_pct = Decimal(EITC_PERCENTAGES["credit_pct"][n]) / 100
    phaseout_pct = Decimal(EITC_PERCENTAGES["phaseout_pct"][n]) / 100
    earned_amount = params["earned_income_amount"][n]
    phaseout_start = (
        params["phaseout_joint"][n] if is_joint(filing_status) else params["phaseout_single"][n]
    )

    # 32(a)(1): Credit percentage of earned income up to earned income amount
    credit_base = credit_pct * min(earned, earned_amount)

    # 32(a)(2): Phaseout based on greater of AGI or earned income
    income_for_phaseout = max(agi, earned)
    excess = max(ZERO, income_for_phaseout - phaseout_start)
    phaseout = phaseout_pct * excess

    # Final credit (non-negative, rounded to nearest dollar)
    eitc = round_dollars(max(ZERO, credit_base - phaseout))

    return EITCResult(
        eitc=eitc,
        credit_base=credit_base,
        phaseout=phaseout,
        eligible=eitc > 0,
        reason="eligible" if eitc > 0 else "phased out",
        citations=citations,
    )
