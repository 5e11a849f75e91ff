"""
Federal SNAP rule tables (48 contiguous states and DC).

Source: 7 USC 2014, 7 USC 2017, 7 CFR Part 273
Fiscal Years: 2024, 2025

Each fiscal year is its own table; nothing here is edited in place when
USDA publishes a new cost-of-living adjustment.
"""

from ..errors import NotFoundError
from .table import IncomeLimit, RuleTable, RuleTableStore

FEDERAL = "US"
SNAP = "SNAP"

# Parameters from statute and USDA FNS COLA memos
SNAP_PARAMS = {
    2024: {
        # 7 CFR 273.9(a)(1) - 130% FPL gross income limit (monthly)
        "gross_income_limit": {
            1: 1580, 2: 2137, 3: 2694, 4: 3250,
            5: 3807, 6: 4364, 7: 4921, 8: 5478,
        },
        # 7 CFR 273.9(a)(2) - 100% FPL net income limit (monthly)
        "net_income_limit": {
            1: 1215, 2: 1644, 3: 2072, 4: 2500,
            5: 2929, 6: 3357, 7: 3786, 8: 4214,
        },
        # 7 CFR 273.9(d)(1) - standard deduction by household size
        "standard_deduction": {
            1: 198, 2: 198, 3: 198, 4: 208,
            5: 244, 6: 279, 7: 279, 8: 279,
        },
        # USDA FNS FY2024 SNAP Allotments - 7 CFR 273.10(e)(2)(ii)
        "max_allotment": {
            1: 291, 2: 535, 3: 766, 4: 973,
            5: 1155, 6: 1386, 7: 1532, 8: 1751,
        },
        "additional_member": {"gross": 557, "net": 429, "allotment": 219},
        # 7 CFR 273.9(d)(6)(ii) - excess shelter cap
        "shelter_cap": 672,
        # 7 CFR 273.10(e)(2)(ii)(C) - minimum benefit for 1-2 person households
        "min_benefit": 23,
        # 7 USC 2015(o) as amended by FRA 2023 (age band for FY2024)
        "abawd_max_age": 52,
    },
    2025: {
        "gross_income_limit": {
            1: 1632, 2: 2215, 3: 2798, 4: 3380,
            5: 3963, 6: 4546, 7: 5129, 8: 5712,
        },
        "net_income_limit": {
            1: 1255, 2: 1704, 3: 2152, 4: 2600,
            5: 3049, 6: 3497, 7: 3945, 8: 4394,
        },
        "standard_deduction": {
            1: 204, 2: 204, 3: 204, 4: 217,
            5: 254, 6: 291, 7: 291, 8: 291,
        },
        "max_allotment": {
            1: 292, 2: 536, 3: 768, 4: 975,
            5: 1158, 6: 1390, 7: 1536, 8: 1756,
        },
        "additional_member": {"gross": 583, "net": 449, "allotment": 220},
        "shelter_cap": 712,
        "min_benefit": 23,
        "abawd_max_age": 54,
    },
}

SNAP_CITATIONS = (
    ("gross_income_limit", "7 CFR 273.9(a)(1) - 130% FPL"),
    ("net_income_limit", "7 CFR 273.9(a)(2) - 100% FPL"),
    ("standard_deduction", "7 CFR 273.9(d)(1)"),
    ("earned_income_rate", "7 CFR 273.9(d)(2)"),
    ("dependent_care", "7 CFR 273.9(d)(4)"),
    ("medical_expense_floor", "7 CFR 273.9(d)(3)"),
    ("child_support", "7 CFR 273.9(d)(5)"),
    ("shelter_cap", "7 CFR 273.9(d)(6)(ii)"),
    ("benefit_reduction_rate", "7 USC 2017(a)"),
    ("min_benefit", "7 CFR 273.10(e)(2)(ii)(C)"),
    ("abawd_time_limit", "7 CFR 273.24"),
)


def federal_snap_table(fiscal_year: int) -> RuleTable:
    """Build the federal SNAP rule table for a shipped fiscal year."""
    if fiscal_year not in SNAP_PARAMS:
        raise NotFoundError(f"no federal SNAP parameters shipped for FY{fiscal_year}")
    params = SNAP_PARAMS[fiscal_year]
    sizes = params["max_allotment"].keys()
    extra = params["additional_member"]
    return RuleTable(
        jurisdiction=FEDERAL,
        program=SNAP,
        fiscal_year=fiscal_year,
        income_limits={
            size: IncomeLimit(
                gross_limit=params["gross_income_limit"][size],
                net_limit=params["net_income_limit"][size],
                standard_deduction=params["standard_deduction"][size],
            )
            for size in sizes
        },
        max_allotment=params["max_allotment"],
        additional_member_gross=extra["gross"],
        additional_member_net=extra["net"],
        additional_member_allotment=extra["allotment"],
        minimum_benefit=params["min_benefit"],
        shelter_cap=params["shelter_cap"],
        abawd_max_age=params["abawd_max_age"],
        citations=SNAP_CITATIONS,
    )


def default_store() -> RuleTableStore:
    """A store with every shipped federal SNAP table published."""
    return RuleTableStore.from_tables(federal_snap_table(fy) for fy in sorted(SNAP_PARAMS))
