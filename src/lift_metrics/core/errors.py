"""
Error kinds raised by the metrics engine.

Every failure is scoped to the single set, record or entry being processed;
none of these is meant to terminate the process.
"""


class EngineError(Exception):
    """Base class for all engine errors."""

    pass


class ValidationError(EngineError, ValueError):
    """Raised when numeric input is out of range (negative reps, RPE outside 1-10, ...)."""

    pass


class MissingDependencyError(EngineError, LookupError):
    """Raised when an exercise or user reference cannot be resolved."""

    pass


class ConflictError(EngineError):
    """
    Raised when a concurrent personal-record write lost the race.

    Carries the key of the affected comparison so the caller can retry
    just that comparison instead of the whole workout.
    """

    def __init__(self, message: str, key: tuple[str, str, str] | None = None):
        super().__init__(message)
        self.key = key
