"""
Work-Requirement / Exemption Tracker (ABAWD time limit).

Source: 7 USC 2015(o), 7 CFR 273.24

Month states are COUNTABLE, EXEMPT or SANCTIONED. Countable months
accumulate only while a member is subject and unexempt; once the limit is
reached inside the rolling window, later months are SANCTIONED until a
verified exemption covers them.

Exemption "expired" is derived from expires_at on every read and never
stored. The registry is the only mutable state in the engine: writes are
compare-and-set on the stored status, serialized by a lock.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .calculators.eligibility import EligibilityVerdict
from .errors import ConflictError, NotFoundError, ValidationError
from .events import Clock, EventSink, ExemptionStatusChanged, dispatch, utc_now
from .household import Household, Member
from .rules.table import RuleTable

logger = logging.getLogger(__name__)


class ExemptionType(str, Enum):
    HOMELESS = "homeless"
    DISABLED = "disabled"
    STUDENT = "student"
    CAREGIVER = "caregiver"
    EMPLOYED_20_HOURS = "employed_20_hours"
    TRAINING_PROGRAM = "training_program"
    MEDICALLY_CERTIFIED = "medically_certified"
    OTHER = "other"


class ExemptionStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    DENIED = "denied"
    EXPIRED = "expired"


class MonthState(str, Enum):
    COUNTABLE = "countable"
    EXEMPT = "exempt"
    SANCTIONED = "sanctioned"


# Staff actions allowed from each stored status
_TRANSITIONS = {
    ExemptionStatus.PENDING: {ExemptionStatus.VERIFIED, ExemptionStatus.DENIED},
}


def month_start(value: date) -> date:
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)


def _month_index(value: date) -> int:
    return value.year * 12 + value.month


def _require_aware(value: Optional[datetime], name: str) -> None:
    if value is None:
        return
    if not isinstance(value, datetime):
        raise ValidationError(f"{name} must be a datetime, got {value!r}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"{name} must be timezone-aware")


def _status(value, name: str) -> ExemptionStatus:
    try:
        return ExemptionStatus(value)
    except ValueError:
        raise ValidationError(f"unknown {name} {value!r}")


@dataclass(frozen=True)
class ExemptionRecord:
    """
    Exemption claimed for one household member over a period.

    `status` is the stored status (pending, verified or denied); use
    status_at() for the effective status including expiry.
    """

    record_id: str
    household_id: str
    member_id: str
    exemption_type: ExemptionType
    period_start: date
    period_end: date
    status: ExemptionStatus = ExemptionStatus.PENDING
    verification_method: Optional[str] = None
    verified_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    version: int = 0

    def __post_init__(self):
        try:
            object.__setattr__(self, "exemption_type", ExemptionType(self.exemption_type))
            object.__setattr__(self, "status", ExemptionStatus(self.status))
        except ValueError as e:
            raise ValidationError(str(e))
        if self.status == ExemptionStatus.EXPIRED:
            raise ValidationError("expired is derived from expires_at and cannot be stored")
        if self.period_end < self.period_start:
            raise ValidationError("exemption period ends before it starts")
        _require_aware(self.verified_at, "verified_at")
        _require_aware(self.expires_at, "expires_at")

    def status_at(self, now: datetime) -> ExemptionStatus:
        _require_aware(now, "now")
        if (
            self.status == ExemptionStatus.VERIFIED
            and self.expires_at is not None
            and now > self.expires_at
        ):
            return ExemptionStatus.EXPIRED
        return self.status

    def overlaps(self, other: "ExemptionRecord") -> bool:
        return (
            self.household_id == other.household_id
            and self.member_id == other.member_id
            and self.period_start <= other.period_end
            and other.period_start <= self.period_end
        )

    def covers(self, month: date) -> bool:
        """Verified and in force at the start of the month."""
        if self.status != ExemptionStatus.VERIFIED:
            return False
        start = month_start(month)
        if not month_start(self.period_start) <= start <= month_start(self.period_end):
            return False
        return self.expires_at is None or start <= self.expires_at.date()


def _check_conflicts(records: Iterable[ExemptionRecord]) -> None:
    live = [r for r in records if r.status != ExemptionStatus.DENIED]
    for i, first in enumerate(live):
        for second in live[i + 1:]:
            if first.overlaps(second):
                raise ConflictError(
                    f"exemption records {first.record_id} and {second.record_id} "
                    f"overlap for member {first.member_id}"
                )


class ExemptionRegistry:
    """
    Exemption records with optimistic, per-record status transitions.

    A transition names the status the caller last saw; if another writer
    got there first the write is rejected with ConflictError.
    """

    def __init__(self, emit: Optional[EventSink] = None, clock: Optional[Clock] = None):
        self._records: Dict[str, ExemptionRecord] = {}
        self._lock = threading.Lock()
        self._emit = emit
        self._clock = clock or utc_now

    def add(self, record: ExemptionRecord) -> ExemptionRecord:
        if record.status != ExemptionStatus.PENDING:
            raise ValidationError("exemption records are created pending")
        with self._lock:
            if record.record_id in self._records:
                raise ConflictError(f"exemption record {record.record_id} already exists")
            _check_conflicts([record] + self._member_records(record.household_id, record.member_id))
            self._records[record.record_id] = record
        logger.info("Exemption %s created for member %s", record.record_id, record.member_id)
        return record

    def get(self, record_id: str) -> ExemptionRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise NotFoundError(f"no exemption record {record_id}")

    def status(self, record_id: str, now: Optional[datetime] = None) -> ExemptionStatus:
        return self.get(record_id).status_at(now or self._clock())

    def for_member(self, household_id: str, member_id: str) -> List[ExemptionRecord]:
        with self._lock:
            return self._member_records(household_id, member_id)

    def _member_records(self, household_id: str, member_id: str) -> List[ExemptionRecord]:
        return sorted(
            (
                r
                for r in self._records.values()
                if r.household_id == household_id and r.member_id == member_id
            ),
            key=lambda r: (r.period_start, r.record_id),
        )

    def transition(
        self,
        record_id: str,
        expected_status: ExemptionStatus,
        new_status: ExemptionStatus,
        verification_method: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ExemptionRecord:
        """
        Move a record from `expected_status` to `new_status`.

        Raises:
            NotFoundError: unknown record
            ConflictError: the stored status is no longer `expected_status`
            ValidationError: the transition is not allowed
        """
        expected_status = _status(expected_status, "expected status")
        new_status = _status(new_status, "status")
        _require_aware(expires_at, "expires_at")
        now = self._clock()
        with self._lock:
            current = self.get(record_id)
            if current.status != expected_status:
                raise ConflictError(
                    f"exemption {record_id} is {current.status.value}, "
                    f"not {expected_status.value}; reload before updating"
                )
            if new_status not in _TRANSITIONS.get(current.status, set()):
                raise ValidationError(
                    f"cannot move exemption from {current.status.value} to {new_status.value}"
                )
            if new_status == ExemptionStatus.VERIFIED and not verification_method:
                raise ValidationError("verifying an exemption requires a verification method")
            updated = replace(
                current,
                status=new_status,
                verification_method=verification_method or current.verification_method,
                verified_at=now if new_status == ExemptionStatus.VERIFIED else current.verified_at,
                expires_at=expires_at if expires_at is not None else current.expires_at,
                version=current.version + 1,
            )
            self._records[record_id] = updated
        logger.info(
            "Exemption %s: %s -> %s", record_id, current.status.value, new_status.value
        )
        dispatch(
            self._emit,
            ExemptionStatusChanged(
                result=updated, timestamp=now, previous_status=current.status.value
            ),
        )
        return updated


@dataclass(frozen=True)
class MonthDetermination:
    month: date
    state: MonthState
    exemption_id: Optional[str] = None
    countable_in_window: int = 0


@dataclass(frozen=True)
class WorkRequirementStatus:
    """Compliance status for one member across the evaluated months."""

    household_id: str
    member_id: str
    subject: bool
    months: Tuple[MonthDetermination, ...] = field(default_factory=tuple)
    countable_months_used: int = 0
    months_remaining: int = 0

    @property
    def state(self) -> Optional[MonthState]:
        return self.months[-1].state if self.months else None

    @property
    def sanctioned(self) -> bool:
        return self.state == MonthState.SANCTIONED


def is_subject_to_time_limit(member: Member, household: Household, rule_table: RuleTable) -> bool:
    """Able-bodied, in the age band, and no child in the household."""
    return (
        rule_table.abawd_min_age <= member.age <= rule_table.abawd_max_age
        and not member.disabled
        and not household.has_child(18)
    )


def evaluate_work_requirement(
    household_id: str,
    member_id: str,
    member: Member,
    household: Household,
    months: Iterable[date],
    exemptions: Iterable[ExemptionRecord],
    rule_table: RuleTable,
    verdict: EligibilityVerdict,
) -> WorkRequirementStatus:
    """
    Determine the state of each benefit month for a member.

    Args:
        household_id: Household the member belongs to
        member_id: Member being tracked
        member: Member detail (age, disability)
        household: Household (child presence)
        months: Benefit months to evaluate, any order
        exemptions: Exemption records; only this member's are used
        rule_table: Supplies the time limit and rolling window
        verdict: Current eligibility verdict for the household

    Returns:
        WorkRequirementStatus

    Raises:
        ValidationError: household is not eligible
        ConflictError: overlapping exemption records for the member
    """
    if not verdict.eligible:
        raise ValidationError("work requirements apply only to eligible households")

    records = [
        r for r in exemptions if r.household_id == household_id and r.member_id == member_id
    ]
    _check_conflicts(records)
    ordered = sorted({month_start(m) for m in months})

    if not is_subject_to_time_limit(member, household, rule_table):
        return WorkRequirementStatus(
            household_id=household_id,
            member_id=member_id,
            subject=False,
            months=tuple(MonthDetermination(m, MonthState.EXEMPT) for m in ordered),
            countable_months_used=0,
            months_remaining=rule_table.abawd_time_limit_months,
        )

    limit = rule_table.abawd_time_limit_months
    window = rule_table.abawd_window_months
    countable: List[date] = []
    determinations = []

    def in_window(month: date) -> int:
        return sum(1 for c in countable if _month_index(month) - _month_index(c) < window)

    for month in ordered:
        covering = next((r for r in records if r.covers(month)), None)
        if covering is not None:
            determinations.append(
                MonthDetermination(month, MonthState.EXEMPT, covering.record_id, in_window(month))
            )
            continue
        used = in_window(month)
        if used >= limit:
            determinations.append(MonthDetermination(month, MonthState.SANCTIONED, None, used))
        else:
            countable.append(month)
            determinations.append(MonthDetermination(month, MonthState.COUNTABLE, None, used + 1))

    used = in_window(ordered[-1]) if ordered else 0
    status = WorkRequirementStatus(
        household_id=household_id,
        member_id=member_id,
        subject=True,
        months=tuple(determinations),
        countable_months_used=used,
        months_remaining=max(0, limit - used),
    )
    logger.debug(
        "Work requirement for %s/%s: %d countable months used, state %s",
        household_id,
        member_id,
        used,
        status.state.value if status.state else "none",
    )
    return status
