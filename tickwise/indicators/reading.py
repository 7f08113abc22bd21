"""
Common result type returned by every extension evaluator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from tickwise.indicators.errors import InsufficientDataError, NonFiniteReadingError
from tickwise.models.bar import Bar
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind


@dataclass(frozen=True)
class IndicatorReading:
    """Raw values and the five-level score computed by one extension evaluator.

    Attributes:
        kind:   Which indicator produced the reading.
        values: Ledger field name → raw value.  May be empty when a
                degenerate window leaves nothing meaningful to record.
        score:  One of -2, -1, 0, 1, 2.
    """

    kind: IndicatorKind
    values: dict[str, float] = field(default_factory=dict)
    score: int = 0


def require_bars(kind: IndicatorKind, bars: Sequence[Bar], minimum: int) -> None:
    """Raise ``InsufficientDataError`` when ``bars`` is shorter than ``minimum``."""
    if len(bars) < minimum:
        raise InsufficientDataError(kind.value, minimum, len(bars))


def check_finite(reading: IndicatorReading) -> IndicatorReading:
    """Return ``reading`` unchanged, or raise ``NonFiniteReadingError`` on NaN / ±inf."""
    for name, value in reading.values.items():
        if not math.isfinite(value):
            raise NonFiniteReadingError(reading.kind.value, name, value)
    return reading
