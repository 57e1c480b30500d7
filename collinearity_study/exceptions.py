"""
Error types raised or recorded by the simulation engine.

Configuration-level problems (an exhausted generation budget, mismatched
dimensions) abort a run. Per-replicate fit problems are recorded as
FitFailure instances next to the successful fits. Aggregation degeneracy is
never raised to the caller; it only leaves an AggregationFallback note.
"""

from dataclasses import dataclass


class SimulationError(Exception):
    """Base class for all simulation errors."""


class GenerationExhausted(SimulationError, RuntimeError):
    """No positive-definite correlation matrix was found within the budget."""

    def __init__(self, shape, size, attempts):
        self.shape = shape
        self.size = size
        self.attempts = attempts
        super().__init__(
            f"No positive-definite {size}x{size} correlation matrix found "
            f"with shape={shape} after {attempts} attempts"
        )

    def __reduce__(self):
        return (self.__class__, (self.shape, self.size, self.attempts))


class DimensionMismatch(SimulationError, ValueError):
    """Correlation matrix and coefficient vector disagree on the predictor count."""

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Correlation matrix is {expected}x{expected} but the coefficient "
            f"vector has {actual} entries"
        )

    def __reduce__(self):
        return (self.__class__, (self.expected, self.actual))


class FitFailure(SimulationError):
    """One replicate could not be fitted. Recorded, not raised, by batch fits."""

    def __init__(self, replicate_index, cause, strategy=None, regime=None):
        self.replicate_index = replicate_index
        self.cause = cause
        self.strategy = strategy
        self.regime = regime
        label = ", ".join(str(s) for s in (regime, strategy) if s)
        label = f" ({label})" if label else ""
        super().__init__(
            f"Replicate {replicate_index}{label} failed: "
            f"{type(cause).__name__}: {cause}"
        )

    def __reduce__(self):
        return (self.__class__, (self.replicate_index, self.cause, self.strategy,
                                  self.regime))


class IntervalUnavailable(SimulationError, ValueError):
    """A Student-t interval cannot be computed for the given values."""


@dataclass(frozen=True)
class AggregationFallback:
    """Provenance note left when a summary falls back to the plain mean."""
    metric: str
    reason: str
