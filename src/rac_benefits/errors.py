"""
Typed errors raised by the engine.

Every error goes straight to the immediate caller. Nothing here is retried
or defaulted internally: a household that does not qualify is a verdict,
a calculation that cannot be performed is one of these.
"""


class EngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(EngineError, ValueError):
    """Malformed or out-of-range input (e.g. household size <= 0)."""


class NotFoundError(EngineError, LookupError):
    """No rule table or tax-year parameters published for the requested key."""


class ConflictError(EngineError):
    """Concurrent or overlapping write to exemption state."""


class PrecisionError(EngineError, ArithmeticError):
    """A monetary value would need rounding outside the defined convention."""
