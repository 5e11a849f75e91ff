"""
Rule Table Store: versioned, jurisdiction- and fiscal-year-scoped tables.

A RuleTable is pure data keyed by (jurisdiction, program, fiscal year).
Once published it is never mutated; a new fiscal year is a new table.
Tables are injected into every calculator rather than looked up globally.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import ConflictError, NotFoundError, ValidationError
from ..money import RoundingMode, non_negative_money

logger = logging.getLogger(__name__)

RuleTableKey = Tuple[str, str, int]


@dataclass(frozen=True)
class IncomeLimit:
    """Monthly limits and standard deduction for one household size."""

    gross_limit: Decimal
    net_limit: Decimal
    standard_deduction: Decimal

    def __post_init__(self):
        for name in ("gross_limit", "net_limit", "standard_deduction"):
            object.__setattr__(self, name, non_negative_money(getattr(self, name), name))

    def to_dict(self) -> Dict[str, str]:
        return {
            "gross_limit": str(self.gross_limit),
            "net_limit": str(self.net_limit),
            "standard_deduction": str(self.standard_deduction),
        }


def _size_keyed(mapping: Mapping, what: str) -> Dict[int, Any]:
    result = {}
    for key, value in mapping.items():
        try:
            size = int(key)
        except (TypeError, ValueError):
            raise ValidationError(f"{what} keys must be household sizes, got {key!r}")
        result[size] = value
    sizes = sorted(result)
    if not sizes or sizes != list(range(1, len(sizes) + 1)):
        raise ValidationError(f"{what} must cover household sizes 1..N without gaps")
    return result


@dataclass(frozen=True)
class RuleTable:
    """
    Published policy parameters for one program, jurisdiction and fiscal year.

    Sizes beyond the largest tabulated size are extended with the
    `additional_member_*` increments; the standard deduction of the largest
    tabulated size carries over unchanged.
    """

    jurisdiction: str
    program: str
    fiscal_year: int
    income_limits: Mapping[int, IncomeLimit]
    max_allotment: Mapping[int, Decimal]
    categorical_eligibility: bool = False
    additional_member_gross: Decimal = Decimal("0")
    additional_member_net: Decimal = Decimal("0")
    additional_member_allotment: Decimal = Decimal("0")
    minimum_benefit: Decimal = Decimal("0")
    minimum_benefit_max_size: int = 2
    earned_income_rate: Decimal = Decimal("0.20")
    benefit_reduction_rate: Decimal = Decimal("0.30")
    medical_expense_floor: Decimal = Decimal("35")
    dependent_care_cap: Optional[Decimal] = None
    shelter_cap: Optional[Decimal] = None
    elderly_age: int = 60
    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    abawd_time_limit_months: int = 3
    abawd_window_months: int = 36
    abawd_min_age: int = 18
    abawd_max_age: int = 54
    citations: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.jurisdiction or not self.program:
            raise ValidationError("rule table needs a jurisdiction and a program")
        if isinstance(self.fiscal_year, bool) or not isinstance(self.fiscal_year, int):
            raise ValidationError(f"fiscal_year must be an integer, got {self.fiscal_year!r}")

        limits = _size_keyed(self.income_limits, "income_limits")
        for size, limit in limits.items():
            if isinstance(limit, Mapping):
                limits[size] = IncomeLimit(**limit)
            elif not isinstance(limit, IncomeLimit):
                raise ValidationError(f"income limit for size {size} is malformed")
        allotments = {
            size: non_negative_money(amount, f"max_allotment[{size}]")
            for size, amount in _size_keyed(self.max_allotment, "max_allotment").items()
        }
        if set(allotments) != set(limits):
            raise ValidationError("max_allotment and income_limits must cover the same sizes")
        object.__setattr__(self, "income_limits", MappingProxyType(dict(sorted(limits.items()))))
        object.__setattr__(self, "max_allotment", MappingProxyType(dict(sorted(allotments.items()))))

        for name in (
            "additional_member_gross",
            "additional_member_net",
            "additional_member_allotment",
            "minimum_benefit",
            "medical_expense_floor",
        ):
            object.__setattr__(self, name, non_negative_money(getattr(self, name), name))
        for name in ("dependent_care_cap", "shelter_cap"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, non_negative_money(value, name))
        for name in ("earned_income_rate", "benefit_reduction_rate"):
            rate = Decimal(str(getattr(self, name)))
            if not Decimal("0") <= rate <= Decimal("1"):
                raise ValidationError(f"{name} must be between 0 and 1, got {rate}")
            object.__setattr__(self, name, rate)
        try:
            object.__setattr__(self, "rounding_mode", RoundingMode(self.rounding_mode))
        except ValueError:
            raise ValidationError(f"unsupported rounding mode {self.rounding_mode!r}")
        if self.abawd_time_limit_months < 0 or self.abawd_window_months < 1:
            raise ValidationError("ABAWD limit must be >= 0 and window >= 1 month")
        object.__setattr__(
            self, "citations", tuple((str(p), str(s)) for p, s in self.citations)
        )

    @property
    def key(self) -> RuleTableKey:
        return (self.jurisdiction, self.program, self.fiscal_year)

    @property
    def largest_tabulated_size(self) -> int:
        return max(self.income_limits)

    def _check_size(self, household_size: int) -> None:
        if isinstance(household_size, bool) or not isinstance(household_size, int):
            raise ValidationError(f"household size must be an integer, got {household_size!r}")
        if household_size < 1:
            raise ValidationError(f"household size must be at least 1, got {household_size}")

    def limits_for(self, household_size: int) -> IncomeLimit:
        """Income limits and standard deduction for a household size."""
        self._check_size(household_size)
        if household_size in self.income_limits:
            return self.income_limits[household_size]
        top = self.largest_tabulated_size
        extra = household_size - top
        base = self.income_limits[top]
        return IncomeLimit(
            gross_limit=base.gross_limit + extra * self.additional_member_gross,
            net_limit=base.net_limit + extra * self.additional_member_net,
            standard_deduction=base.standard_deduction,
        )

    def max_allotment_for(self, household_size: int) -> Decimal:
        self._check_size(household_size)
        if household_size in self.max_allotment:
            return self.max_allotment[household_size]
        top = self.largest_tabulated_size
        return self.max_allotment[top] + (household_size - top) * self.additional_member_allotment

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible primitives (Decimals as strings)."""

        def opt(value):
            return None if value is None else str(value)

        return {
            "jurisdiction": self.jurisdiction,
            "program": self.program,
            "fiscal_year": self.fiscal_year,
            "income_limits": {str(k): v.to_dict() for k, v in self.income_limits.items()},
            "max_allotment": {str(k): str(v) for k, v in self.max_allotment.items()},
            "categorical_eligibility": self.categorical_eligibility,
            "additional_member_gross": str(self.additional_member_gross),
            "additional_member_net": str(self.additional_member_net),
            "additional_member_allotment": str(self.additional_member_allotment),
            "minimum_benefit": str(self.minimum_benefit),
            "minimum_benefit_max_size": self.minimum_benefit_max_size,
            "earned_income_rate": str(self.earned_income_rate),
            "benefit_reduction_rate": str(self.benefit_reduction_rate),
            "medical_expense_floor": str(self.medical_expense_floor),
            "dependent_care_cap": opt(self.dependent_care_cap),
            "shelter_cap": opt(self.shelter_cap),
            "elderly_age": self.elderly_age,
            "rounding_mode": self.rounding_mode.value,
            "abawd_time_limit_months": self.abawd_time_limit_months,
            "abawd_window_months": self.abawd_window_months,
            "abawd_min_age": self.abawd_min_age,
            "abawd_max_age": self.abawd_max_age,
            "citations": [list(c) for c in self.citations],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleTable":
        data = dict(data)
        try:
            data["income_limits"] = {
                k: IncomeLimit(**v) for k, v in data["income_limits"].items()
            }
            data["citations"] = tuple(tuple(c) for c in data.get("citations", ()))
            return cls(**data)
        except (KeyError, TypeError) as e:
            raise ValidationError(f"malformed rule table: {e}")

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "RuleTable":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"rule table is not valid JSON: {e}")
        return cls.from_dict(data)


class RuleTableStore:
    """
    In-memory registry of published rule tables.

    Publishing is append-only: a key can be published once. Lookups never
    fall back to another jurisdiction or year.
    """

    def __init__(self):
        self._tables: Dict[RuleTableKey, RuleTable] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_tables(cls, tables: Iterable[RuleTable]) -> "RuleTableStore":
        store = cls()
        for table in tables:
            store.publish(table)
        return store

    @classmethod
    def from_json_file(cls, path) -> "RuleTableStore":
        """Load a JSON file holding a list of serialized rule tables."""
        try:
            raw = json.loads(Path(path).read_text())
        except json.JSONDecodeError as e:
            raise ValidationError(f"{path} is not valid JSON: {e}")
        if isinstance(raw, Mapping):
            raw = [raw]
        return cls.from_tables(RuleTable.from_dict(item) for item in raw)

    def publish(self, table: RuleTable) -> None:
        with self._lock:
            if table.key in self._tables:
                raise ConflictError(
                    f"rule table {table.key} is already published; "
                    "publish a new fiscal year instead of mutating it"
                )
            self._tables[table.key] = table
        logger.info("Published rule table %s/%s FY%d", *table.key)

    def get_rule_table(self, jurisdiction: str, program: str, fiscal_year: int) -> RuleTable:
        key = (jurisdiction, program, fiscal_year)
        try:
            return self._tables[key]
        except KeyError:
            raise NotFoundError(
                f"no rule table published for {jurisdiction}/{program} FY{fiscal_year}"
            )

    def keys(self) -> List[RuleTableKey]:
        return sorted(self._tables)

    def __contains__(self, key) -> bool:
        return key in self._tables

    def __len__(self) -> int:
        return len(self._tables)
