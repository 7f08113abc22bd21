"""
Stochastic oscillator (%K 14, %D 3).

%K compares the close with the 14-bar high/low range ending at that bar; the
range is truncated at the start of the series.  %D is the plain mean of the
last three %K values.  A flat range (high == low) yields %K 0.
"""

from __future__ import annotations

import logging
from typing import Sequence

from tickwise.indicators.reading import IndicatorReading, require_bars
from tickwise.models.bar import Bar
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind

logger = logging.getLogger(__name__)

STOCH_PERIOD = 14
STOCH_D_PERIOD = 3


def stochastics_score(percent_k: float) -> int:
    """Overbought (≥80) is bearish, oversold (≤20) is bullish."""
    if percent_k >= 90.0:
        return -2
    if percent_k >= 80.0:
        return -1
    if percent_k <= 10.0:
        return 2
    if percent_k <= 20.0:
        return 1
    return 0


def percent_k_at(bars: Sequence[Bar], index: int, period: int = STOCH_PERIOD) -> float:
    """%K for the bar at ``index`` using the ``period`` bars ending there."""
    window = bars[max(0, index + 1 - period): index + 1]
    high = max(b.high for b in window)
    low = min(b.low for b in window)
    if high == low:
        logger.debug("Stochastics: flat window ending %s; using %%K 0.", bars[index].date)
        return 0.0
    return (bars[index].close - low) / (high - low) * 100.0


def evaluate_stochastics(bars: Sequence[Bar]) -> IndicatorReading:
    require_bars(IndicatorKind.STOCHASTICS, bars, STOCH_PERIOD)
    last = len(bars) - 1
    ks = [percent_k_at(bars, i) for i in range(last + 1 - STOCH_D_PERIOD, last + 1)]
    percent_k = ks[-1]
    percent_d = sum(ks) / len(ks)
    return IndicatorReading(
        kind=IndicatorKind.STOCHASTICS,
        values={"stoch_k": percent_k, "stoch_d": percent_d},
        score=stochastics_score(percent_k),
    )
