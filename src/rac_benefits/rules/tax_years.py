"""
Federal individual income tax parameters by tax year.

Sources: 26 USC 1, 24, 25A, 32, 63; Rev. Proc. 2022-38, 2023-34, 2024-40;
Pub. L. 119-21 (2025 standard deduction and child tax credit).
Tax Years: 2023, 2024, 2025

Bracket tuples are (upper bound of bracket, rate); None marks the top bracket.
"""

from decimal import Decimal
from typing import Any, Dict

from ..errors import NotFoundError

SINGLE = "single"
MARRIED_JOINT = "married_joint"
MARRIED_SEPARATE = "married_separate"
HEAD_OF_HOUSEHOLD = "head_of_household"
QUALIFYING_SURVIVING_SPOUSE = "qualifying_surviving_spouse"

FILING_STATUSES = (
    SINGLE,
    MARRIED_JOINT,
    MARRIED_SEPARATE,
    HEAD_OF_HOUSEHOLD,
    QUALIFYING_SURVIVING_SPOUSE,
)

_RATES = ("0.10", "0.12", "0.22", "0.24", "0.32", "0.35", "0.37")


def _brackets(*bounds):
    return tuple(
        (Decimal(bound) if bound is not None else None, Decimal(rate))
        for bound, rate in zip(bounds + (None,), _RATES)
    )


# 26 USC 32(b)(1) - statutory percentages, by number of qualifying children
EITC_PERCENTAGES = {
    "credit_pct": {0: "7.65", 1: "34.0", 2: "40.0", 3: "45.0"},
    "phaseout_pct": {0: "7.65", 1: "15.98", 2: "21.06", 3: "21.06"},
}

# 26 USC 25A - not inflation adjusted since 2021
EDUCATION_PARAMS = {
    "aotc_full_expenses": 2000,
    "aotc_partial_expenses": 2000,
    "aotc_partial_rate": "0.25",
    "aotc_refundable_rate": "0.40",
    "llc_expense_cap": 10000,
    "llc_rate": "0.20",
    "phaseout_single": (80000, 90000),
    "phaseout_joint": (160000, 180000),
}

TAX_YEAR_PARAMS: Dict[int, Dict[str, Any]] = {
    2023: {
        "brackets": {
            SINGLE: _brackets(11000, 44725, 95375, 182100, 231250, 578125),
            MARRIED_JOINT: _brackets(22000, 89450, 190750, 364200, 462500, 693750),
            MARRIED_SEPARATE: _brackets(11000, 44725, 95375, 182100, 231250, 346875),
            HEAD_OF_HOUSEHOLD: _brackets(15700, 59850, 95350, 182100, 231250, 578100),
        },
        "standard_deduction": {
            SINGLE: 13850,
            MARRIED_JOINT: 27700,
            MARRIED_SEPARATE: 13850,
            HEAD_OF_HOUSEHOLD: 20800,
        },
        # Rev. Proc. 2022-38
        "eitc": {
            "earned_income_amount": {0: 7840, 1: 11750, 2: 16510, 3: 16510},
            "phaseout_single": {0: 9800, 1: 21560, 2: 21560, 3: 21560},
            "phaseout_joint": {0: 16370, 1: 28120, 2: 28120, 3: 28120},
            "investment_income_limit": 11000,
        },
        "ctc": {
            "credit_per_child": 2000,
            "refundable_max": 1600,
        },
    },
    2024: {
        "brackets": {
            SINGLE: _brackets(11600, 47150, 100525, 191950, 243725, 609350),
            MARRIED_JOINT: _brackets(23200, 94300, 201050, 383900, 487450, 731200),
            MARRIED_SEPARATE: _brackets(11600, 47150, 100525, 191950, 243725, 365600),
            HEAD_OF_HOUSEHOLD: _brackets(16550, 63100, 100500, 191950, 243700, 609350),
        },
        "standard_deduction": {
            SINGLE: 14600,
            MARRIED_JOINT: 29200,
            MARRIED_SEPARATE: 14600,
            HEAD_OF_HOUSEHOLD: 21900,
        },
        # Rev. Proc. 2023-34
        "eitc": {
            "earned_income_amount": {0: 8260, 1: 12390, 2: 17400, 3: 17400},
            "phaseout_single": {0: 10330, 1: 22720, 2: 22720, 3: 22720},
            "phaseout_joint": {0: 17250, 1: 29640, 2: 29640, 3: 29640},
            "investment_income_limit": 11600,
        },
        "ctc": {
            "credit_per_child": 2000,
            "refundable_max": 1700,
        },
    },
    2025: {
        "brackets": {
            SINGLE: _brackets(11925, 48475, 103350, 197300, 250525, 626350),
            MARRIED_JOINT: _brackets(23850, 96950, 206700, 394600, 501050, 751600),
            MARRIED_SEPARATE: _brackets(11925, 48475, 103350, 197300, 250525, 375800),
            HEAD_OF_HOUSEHOLD: _brackets(17000, 64850, 103350, 197300, 250500, 626350),
        },
        "standard_deduction": {
            SINGLE: 15750,
            MARRIED_JOINT: 31500,
            MARRIED_SEPARATE: 15750,
            HEAD_OF_HOUSEHOLD: 23625,
        },
        # Rev. Proc. 2024-40
        "eitc": {
            "earned_income_amount": {0: 8484, 1: 12729, 2: 17880, 3: 17880},
            "phaseout_single": {0: 10620, 1: 23350, 2: 23350, 3: 23350},
            "phaseout_joint": {0: 17730, 1: 30470, 2: 30470, 3: 30470},
            "investment_income_limit": 11950,
        },
        "ctc": {
            "credit_per_child": 2200,
            "refundable_max": 1700,
        },
    },
}

# 26 USC 24(b), 24(d) - not inflation adjusted
CTC_COMMON = {
    "phaseout_single": 200000,
    "phaseout_joint": 400000,
    "phaseout_step": 1000,
    "phaseout_rate": 50,  # per step
    "refundable_rate": "0.15",
    "refundable_threshold": 2500,
    "qualifying_age_under": 17,
}


def tax_year_params(tax_year: int) -> Dict[str, Any]:
    """Parameters for a tax year; qualifying surviving spouse uses joint values."""
    try:
        params = TAX_YEAR_PARAMS[tax_year]
    except KeyError:
        raise NotFoundError(
            f"no tax parameters for tax year {tax_year} "
            f"(supported: {', '.join(str(y) for y in sorted(TAX_YEAR_PARAMS))})"
        )
    return params


def filing_key(filing_status: str) -> str:
    """Map a filing status onto the bracket/deduction schedule it uses."""
    if filing_status == QUALIFYING_SURVIVING_SPOUSE:
        return MARRIED_JOINT
    return filing_status


def is_joint(filing_status: str) -> bool:
    """Joint credit phaseouts apply to married filing jointly only."""
    return filing_status == MARRIED_JOINT
