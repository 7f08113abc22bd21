"""
Indicator evaluation errors.

``InsufficientDataError`` and ``NonFiniteReadingError`` are the extension
failures the engine absorbs, together with ``ArithmeticError`` from the
window maths; it logs a warning and leaves that indicator's ledger
fields unset.  ``BaselineError`` is never absorbed: without a baseline there
is nothing to report.
"""

from __future__ import annotations


class IndicatorError(RuntimeError):
    """Base class for indicator evaluation failures."""


class InsufficientDataError(IndicatorError):
    """Raised when the bar series is shorter than an indicator's window.

    Attributes:
        indicator: Name of the indicator that could not be computed.
        required:  Minimum number of bars the indicator needs.
        available: Number of bars actually supplied.
    """

    def __init__(self, indicator: str, required: int, available: int) -> None:
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"{indicator}: needs at least {required} bars, got {available}."
        )


class BaselineError(IndicatorError):
    """Raised when the MACD + RSI baseline cannot be computed (fatal for the run)."""


class NonFiniteReadingError(IndicatorError):
    """Raised when an extension reading holds a NaN or infinite value."""

    def __init__(self, indicator: str, field: str, value: float) -> None:
        self.indicator = indicator
        self.field = field
        self.value = value
        super().__init__(f"{indicator}: {field} is not finite ({value}).")
