"""
Events emitted to audit and notification collaborators.

The engine only builds and hands these off; persistence and delivery
belong to the caller-supplied sink.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityDetermined:
    result: Any
    timestamp: datetime
    jurisdiction: str = ""
    program: str = ""
    fiscal_year: Optional[int] = None


@dataclass(frozen=True)
class ExemptionStatusChanged:
    result: Any
    timestamp: datetime
    previous_status: Optional[str] = None


@dataclass(frozen=True)
class VarianceReportGenerated:
    result: Any
    timestamp: datetime


EventSink = Callable[[Any], None]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def dispatch(sink: Optional[EventSink], event) -> None:
    """Hand an event to the sink; sink errors propagate to the caller."""
    if sink is None:
        return
    logger.debug("Emitting %s", type(event).__name__)
    sink(event)
