"""
Incremental moving-average primitives shared by every evaluator.

Each primitive is fed one value at a time through ``next()`` and returns its
current output, so a whole close series is processed in a single pass:

  ExponentialMovingAverage          k = 2 / (n + 1), seeded with the first input
  SimpleMovingAverage               mean of the last n inputs (fewer while warming up)
  RelativeStrengthIndex             EMA-smoothed gains / losses, seeded at 0.1
  MovingAverageConvergenceDivergence  fast EMA - slow EMA, signal = EMA of that

Constructing a primitive with a period below 1 raises ``ValueError``; the
baseline evaluator turns that into a fatal ``BaselineError``.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"Period must be at least 1, got {period}.")


class ExponentialMovingAverage:
    """Exponential moving average seeded with the first observed value."""

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self._k = 2.0 / (period + 1)
        self._current: Optional[float] = None

    def next(self, value: float) -> float:
        if self._current is None:
            self._current = value
        else:
            self._current = self._k * value + (1.0 - self._k) * self._current
        return self._current


class SimpleMovingAverage:
    """Arithmetic mean over a sliding window of ``period`` values."""

    def __init__(self, period: int) -> None:
        _check_period(period)
        self.period = period
        self._window: deque[float] = deque(maxlen=period)

    def next(self, value: float) -> float:
        self._window.append(value)
        return sum(self._window) / len(self._window)


class RelativeStrengthIndex:
    """RSI over EMA-smoothed gains and losses.

    The first input has no predecessor, so both averages are seeded with 0.1
    (an RSI of 50) rather than zero, which would make the ratio undefined.
    """

    _SEED = 0.1

    def __init__(self, period: int = 14) -> None:
        _check_period(period)
        self.period = period
        self._up = ExponentialMovingAverage(period)
        self._down = ExponentialMovingAverage(period)
        self._prev: Optional[float] = None

    def next(self, value: float) -> float:
        if self._prev is None:
            up = self._up.next(self._SEED)
            down = self._down.next(self._SEED)
        else:
            change = value - self._prev
            up = self._up.next(max(change, 0.0))
            down = self._down.next(max(-change, 0.0))
        self._prev = value
        total = up + down
        if total == 0:
            return 50.0
        return 100.0 * up / total


@dataclass(frozen=True)
class MacdOutput:
    """One MACD step: line, signal and histogram (line - signal)."""

    macd: float
    signal: float
    histogram: float


class MovingAverageConvergenceDivergence:
    """MACD(fast, slow, signal) built from three ``ExponentialMovingAverage``s."""

    def __init__(self, fast: int = 12, slow: int = 26, signal: int = 9) -> None:
        self._fast = ExponentialMovingAverage(fast)
        self._slow = ExponentialMovingAverage(slow)
        self._signal = ExponentialMovingAverage(signal)

    def next(self, value: float) -> MacdOutput:
        macd = self._fast.next(value) - self._slow.next(value)
        signal = self._signal.next(macd)
        return MacdOutput(macd=macd, signal=signal, histogram=macd - signal)


# ── One-shot helpers ──────────────────────────────────────────────────────────


def last_ema(values: Iterable[float], period: int) -> float:
    """Feed ``values`` through a fresh EMA and return its final output."""
    ema = ExponentialMovingAverage(period)
    result = math.nan
    for v in values:
        result = ema.next(v)
    return result


def last_sma(values: Iterable[float], period: int) -> float:
    """Feed ``values`` through a fresh SMA and return its final output."""
    sma = SimpleMovingAverage(period)
    result = math.nan
    for v in values:
        result = sma.next(v)
    return result


def population_stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n, not n - 1)."""
    n = len(values)
    if n == 0:
        return 0.0
    mean = sum(values) / n
    # max() guards against tiny negative variance from float cancellation
    return math.sqrt(max(0.0, sum((v - mean) ** 2 for v in values) / n))
