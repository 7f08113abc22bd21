"""
Fibonacci retracement over the whole bar window.

Levels are measured down from the window high::

    span = high - low
    f38  = high - 0.382 · span
    f50  = high - 0.500 · span
    f62  = high - 0.618 · span

``fibonacci_score()`` is the only place the retracement score is decided.
Zero sits strictly within ``FIB_EPS`` of the 50% level; just outside that
sliver the sign of (close - f50) decides ±1 so boundary rounding never lands
on neutral.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from tickwise.indicators.reading import IndicatorReading, require_bars
from tickwise.models.bar import Bar
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind

logger = logging.getLogger(__name__)

FIB_MIN_BARS = 2
FIB_EPS = 0.50


@dataclass(frozen=True)
class FibonacciLevels:
    f38: float
    f50: float
    f62: float


def fibonacci_levels(high: float, low: float) -> Optional[FibonacciLevels]:
    """Retracement prices for a high/low range, or None when the span is not positive."""
    span = high - low
    if span <= 0:
        return None
    return FibonacciLevels(
        f38=high - span * 0.382,
        f50=high - span * 0.500,
        f62=high - span * 0.618,
    )


def fibonacci_score(close: float, levels: FibonacciLevels, eps: float = FIB_EPS) -> int:
    if abs(close - levels.f50) <= eps:
        return 0
    if close > levels.f38:
        return 2
    if levels.f50 + eps < close < levels.f38:
        return 1
    if close < levels.f62:
        return -2
    if levels.f62 < close < levels.f50 - eps:
        return -1
    return 1 if close > levels.f50 else -1


def evaluate_fibonacci(bars: Sequence[Bar]) -> IndicatorReading:
    require_bars(IndicatorKind.FIBONACCI, bars, FIB_MIN_BARS)
    high = max(b.high for b in bars)
    low = min(b.low for b in bars)
    levels = fibonacci_levels(high, low)
    if levels is None:
        logger.debug("Fibonacci: window span is %.4f; score 0 with no levels.", high - low)
        return IndicatorReading(kind=IndicatorKind.FIBONACCI, values={}, score=0)
    return IndicatorReading(
        kind=IndicatorKind.FIBONACCI,
        values={
            "fibo_38_2": levels.f38,
            "fibo_50_0": levels.f50,
            "fibo_61_8": levels.f62,
        },
        score=fibonacci_score(bars[-1].close, levels),
    )
