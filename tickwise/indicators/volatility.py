"""
Bollinger Bands (20, 2σ) with %B and bandwidth.

  mid        SMA of the last 20 closes
  upper/lower mid ± 2 · population σ of those closes
  %B         (close - lower) / (upper - lower), 0 when the bands coincide
  bandwidth  (upper - lower) / mid · 100, 0 when mid is 0

The score only reacts to a strict breach of a band: a close exactly on the
lower band is inside it.
"""

from __future__ import annotations

import logging
from typing import Sequence

from tickwise.indicators.primitives import population_stddev
from tickwise.indicators.reading import IndicatorReading, require_bars
from tickwise.models.bar import Bar
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind

logger = logging.getLogger(__name__)

BB_PERIOD = 20
BB_STDDEV_MULTIPLIER = 2.0


def bollinger_score(close: float, upper: float, lower: float) -> int:
    if close > upper * 1.02:
        return -2
    if close > upper:
        return -1
    if close < lower * 0.98:
        return 2
    if close < lower:
        return 1
    return 0


def percent_b(close: float, upper: float, lower: float) -> float:
    width = upper - lower
    if width == 0:
        logger.debug("Bollinger: zero band width; using %%B 0.")
        return 0.0
    return (close - lower) / width


def bandwidth_percent(upper: float, lower: float) -> float:
    mid = (upper + lower) / 2.0
    if mid == 0:
        logger.debug("Bollinger: zero mid band; using bandwidth 0.")
        return 0.0
    return (upper - lower) / mid * 100.0


def evaluate_bollinger(bars: Sequence[Bar]) -> IndicatorReading:
    require_bars(IndicatorKind.BOLLINGER, bars, BB_PERIOD)
    window = [b.close for b in bars[-BB_PERIOD:]]
    mid = sum(window) / len(window)
    sigma = population_stddev(window)
    upper = mid + BB_STDDEV_MULTIPLIER * sigma
    lower = mid - BB_STDDEV_MULTIPLIER * sigma
    close = bars[-1].close
    return IndicatorReading(
        kind=IndicatorKind.BOLLINGER,
        values={
            "bb_upper": upper,
            "bb_lower": lower,
            "bb_percent_b": percent_b(close, upper, lower),
            "bb_bandwidth": bandwidth_percent(upper, lower),
        },
        score=bollinger_score(close, upper, lower),
    )
