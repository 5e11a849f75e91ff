"""
Engine configuration.

Plain dataclasses; CLIs override the defaults from flags.
"""

from dataclasses import dataclass
from decimal import Decimal

from .errors import ValidationError
from .money import non_negative_money


@dataclass(frozen=True)
class ReconcileConfig:
    """Configuration for variance reconciliation."""

    # Nonzero deltas at or below this amount are minor, above it major
    materiality_threshold: Decimal = Decimal("50.00")

    def __post_init__(self):
        object.__setattr__(
            self,
            "materiality_threshold",
            non_negative_money(self.materiality_threshold, "materiality_threshold"),
        )


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for consuming document-extraction output."""

    # Fields extracted below this confidence are flagged, not rejected
    confidence_threshold: float = 0.80

    def __post_init__(self):
        try:
            threshold = float(self.confidence_threshold)
        except (TypeError, ValueError):
            raise ValidationError(
                f"confidence_threshold must be a number, got {self.confidence_threshold!r}"
            )
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError(
                f"confidence_threshold must be between 0 and 1, got {self.confidence_threshold}"
            )
        object.__setattr__(self, "confidence_threshold", threshold)
