"""
Trend indicators: EMA and SMA crossovers, ROC, simplified ADX, VWAP proxy and
Ichimoku tenkan/kijun.

Every ``evaluate_*`` function is a pure function of the bar series that
returns an ``IndicatorReading`` or raises ``InsufficientDataError``.  The
``*_score`` functions hold the score bands on their own so they can be
checked against hand-picked metric values.

Band summary
------------
EMA / SMA / Ichimoku (diff)   > 2 → +2, > 0.5 → +1, |d| ≤ 0.5 → 0, < -2 → -2, else -1
ROC (%)                       > 10 → +2, > 3 → +1, ≥ -3 → 0, < -10 → -2, else -1
ADX                           ≥ 50 → +2, ≥ 30 → +1, ≥ 20 → 0, ≥ 10 → -1, else -2
VWAP (close - vwap)           ≥ 4 → +2, ≥ 1 → +1, ≤ -4 → -2, ≤ -1 → -1, else 0

ADX here is a single trailing-window DX, not Wilder's recursive ADX.  The
value is kept as is so scores stay comparable with previously logged runs.
"""

from __future__ import annotations

import logging
from typing import Sequence

from tickwise.indicators.primitives import last_ema, last_sma
from tickwise.indicators.reading import IndicatorReading, require_bars
from tickwise.models.bar import Bar
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind

logger = logging.getLogger(__name__)

EMA_SHORT = 5
EMA_LONG = 20
SMA_SHORT = 5
SMA_LONG = 20
ROC_PERIOD = 10
ADX_PERIOD = 14
VWAP_PERIOD = 14
TENKAN_PERIOD = 9
KIJUN_PERIOD = 26


# ── Score bands ───────────────────────────────────────────────────────────────


def crossover_score(diff: float) -> int:
    """Five-level band for short-minus-long differences (EMA, SMA, Ichimoku)."""
    if diff > 2.0:
        return 2
    if diff > 0.5:
        return 1
    if abs(diff) <= 0.5:
        return 0
    if diff < -2.0:
        return -2
    return -1


ema_score = crossover_score
sma_score = crossover_score
ichimoku_score = crossover_score


def roc_score(roc: float) -> int:
    if roc > 10.0:
        return 2
    if roc > 3.0:
        return 1
    if roc >= -3.0:
        return 0
    if roc < -10.0:
        return -2
    return -1


def adx_score(adx: float) -> int:
    if adx >= 50.0:
        return 2
    if adx >= 30.0:
        return 1
    if adx >= 20.0:
        return 0
    if adx >= 10.0:
        return -1
    return -2


def vwap_score(diff: float) -> int:
    if diff >= 4.0:
        return 2
    if diff >= 1.0:
        return 1
    if diff <= -4.0:
        return -2
    if diff <= -1.0:
        return -1
    return 0


# ── Evaluators ────────────────────────────────────────────────────────────────


def evaluate_ema(bars: Sequence[Bar]) -> IndicatorReading:
    """EMA(5) vs EMA(20) over every close in the series."""
    require_bars(IndicatorKind.EMA, bars, EMA_LONG)
    closes = [b.close for b in bars]
    short = last_ema(closes, EMA_SHORT)
    long = last_ema(closes, EMA_LONG)
    return IndicatorReading(
        kind=IndicatorKind.EMA,
        values={"ema_short": short, "ema_long": long},
        score=ema_score(short - long),
    )


def evaluate_sma(bars: Sequence[Bar]) -> IndicatorReading:
    """SMA(5) vs SMA(20) of the latest closes."""
    require_bars(IndicatorKind.SMA, bars, SMA_LONG)
    closes = [b.close for b in bars]
    short = last_sma(closes, SMA_SHORT)
    long = last_sma(closes, SMA_LONG)
    return IndicatorReading(
        kind=IndicatorKind.SMA,
        values={"sma_short": short, "sma_long": long},
        score=sma_score(short - long),
    )


def evaluate_roc(bars: Sequence[Bar]) -> IndicatorReading:
    """Percentage change of the close over the last 10 sessions."""
    require_bars(IndicatorKind.ROC, bars, ROC_PERIOD + 1)
    latest = bars[-1].close
    base = bars[-(ROC_PERIOD + 1)].close
    if base == 0:
        logger.debug("ROC base close is 0; using ROC 0.")
        roc = 0.0
    else:
        roc = (latest - base) / base * 100.0
    return IndicatorReading(kind=IndicatorKind.ROC, values={"roc": roc}, score=roc_score(roc))


def evaluate_adx(bars: Sequence[Bar]) -> IndicatorReading:
    """Simplified ADX: one DX over the last 14 bar-to-bar pairs.

    TR, +DM and -DM are computed for every consecutive pair; the trailing 14
    of each are summed, ATR = ΣTR / 14, ±DI = 100 · ΣDM / ATR and
    DX = 100 · |+DI - -DI| / (+DI + -DI).
    """
    require_bars(IndicatorKind.ADX, bars, ADX_PERIOD + 1)
    trs: list[float] = []
    plus_dm: list[float] = []
    minus_dm: list[float] = []
    for prev, cur in zip(bars, bars[1:]):
        high_diff = cur.high - prev.high
        low_diff = prev.low - cur.low
        trs.append(max(
            cur.high - cur.low,
            abs(cur.high - prev.close),
            abs(cur.low - prev.close),
        ))
        plus_dm.append(high_diff if high_diff > low_diff and high_diff > 0 else 0.0)
        minus_dm.append(low_diff if low_diff > high_diff and low_diff > 0 else 0.0)

    atr = sum(trs[-ADX_PERIOD:]) / ADX_PERIOD
    if atr == 0:
        logger.debug("ADX: ATR is 0 over the last %d periods; using DX 0.", ADX_PERIOD)
        dx = 0.0
    else:
        plus_di = 100.0 * sum(plus_dm[-ADX_PERIOD:]) / atr
        minus_di = 100.0 * sum(minus_dm[-ADX_PERIOD:]) / atr
        di_sum = plus_di + minus_di
        if di_sum == 0:
            logger.debug("ADX: +DI and -DI are both 0; using DX 0.")
            dx = 0.0
        else:
            dx = 100.0 * abs(plus_di - minus_di) / di_sum
    return IndicatorReading(kind=IndicatorKind.ADX, values={"adx": dx}, score=adx_score(dx))


def evaluate_vwap(bars: Sequence[Bar]) -> IndicatorReading:
    """Latest close vs the 14-day SMA of typical price (a volume-free VWAP proxy)."""
    require_bars(IndicatorKind.VWAP, bars, VWAP_PERIOD)
    vwap = last_sma((b.typical_price for b in bars), VWAP_PERIOD)
    diff = bars[-1].close - vwap
    return IndicatorReading(kind=IndicatorKind.VWAP, values={"vwap": vwap}, score=vwap_score(diff))


def _midpoint(bars: Sequence[Bar]) -> float:
    return (max(b.high for b in bars) + min(b.low for b in bars)) / 2.0


def evaluate_ichimoku(bars: Sequence[Bar]) -> IndicatorReading:
    """Tenkan-sen (9-bar high/low midpoint) vs kijun-sen (26-bar midpoint)."""
    require_bars(IndicatorKind.ICHIMOKU, bars, KIJUN_PERIOD)
    tenkan = _midpoint(bars[-TENKAN_PERIOD:])
    kijun = _midpoint(bars[-KIJUN_PERIOD:])
    return IndicatorReading(
        kind=IndicatorKind.ICHIMOKU,
        values={"tenkan": tenkan, "kijun": kijun},
        score=ichimoku_score(tenkan - kijun),
    )
