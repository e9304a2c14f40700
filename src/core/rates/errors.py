"""Exception types for the rates kernel.

``distribute()`` and ``calculate_fee()`` raise these directly; ``step()`` in
``engine.py`` folds them into a ``StepResult`` rejection instead.
"""

from __future__ import annotations


class RatesError(Exception):
    """Base class for every rates-kernel failure."""


class InvalidRateError(RatesError):
    """Raised when a configured or supplied rate fails validation."""


class TemporalError(InvalidRateError):
    """Raised when the current timestamp does not advance past the decay clock."""

    def __init__(self, current_timestamp: int, last_timestamp: int) -> None:
        self.current_timestamp = current_timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"current_timestamp {current_timestamp} must be greater than last_timestamp {last_timestamp}"
        )


class RatesArithmeticError(RatesError, ArithmeticError):
    """Raised when a checked integer operation leaves its domain."""


class RatesOverflowError(RatesArithmeticError):
    """Raised when a result exceeds its unsigned integer bound."""


class RatesUnderflowError(RatesArithmeticError):
    """Raised when a subtraction would go below zero."""
