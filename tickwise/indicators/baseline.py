"""
Baseline MACD + RSI evaluator.

The baseline is mandatory: every run computes it first, it supplies the
identity and price fields of the ledger, and any failure here aborts the run.

Scoring
-------
``baseline_score()`` walks a fixed decision table in precedence order::

    macd_up & rsi_high & |macd - signal| > 100   -> -2
    macd_up & rsi_high                           -> -1
    macd_down & rsi_high                         -> -1
    macd_up & rsi_low                            -> +2
    macd_down & rsi_low                          -> +1
    macd_up (rsi in between)    diff < low -> +1, otherwise -> +2
    macd_down (rsi in between)  diff < low ->  0, otherwise -> -1
    otherwise                                    ->  0

where ``macd_up`` is ``macd > signal and (macd > 0 or macd_minus_ok)`` and
``diff`` is ``|macd - signal|``.  When ``macd_minus_ok`` is off, a negative
MACD can never produce a positive score (the result is clamped to 0).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from tickwise.config import ThresholdConfig
from tickwise.indicators.errors import BaselineError
from tickwise.indicators.primitives import (
    MacdOutput,
    MovingAverageConvergenceDivergence,
    RelativeStrengthIndex,
)
from tickwise.models.bar import Bar

logger = logging.getLogger(__name__)

BASELINE_MIN_BARS = 2
RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

# |macd - signal| above this with an overbought RSI is treated as a blow-off top
_EXTREME_DIVERGENCE = 100.0


@dataclass(frozen=True)
class BaselineReading:
    """Raw baseline values plus the derived score."""

    close: float
    previous_close: float
    price_diff: float
    price_diff_percent: float
    rsi: float
    macd: float
    signal: float
    prev_macd: float
    prev_signal: float
    score: int

    def ledger_values(self) -> dict[str, Any]:
        """Field name → value mapping in ledger write order."""
        return {
            "close": self.close,
            "previous_close": self.previous_close,
            "price_diff": self.price_diff,
            "price_diff_percent": self.price_diff_percent,
            "rsi": self.rsi,
            "macd": self.macd,
            "signal": self.signal,
            "prev_macd": self.prev_macd,
            "prev_signal": self.prev_signal,
            "signal_score": self.score,
        }


def baseline_score(macd: float, signal: float, rsi: float, thresholds: ThresholdConfig) -> int:
    """Apply the MACD + RSI decision table and the negative-MACD gate."""
    macd_up = macd > signal and (macd > 0 or thresholds.macd_minus_ok)
    macd_down = macd < signal
    rsi_low = rsi <= thresholds.buy_rsi
    rsi_high = rsi >= thresholds.sell_rsi
    diff = abs(macd - signal)

    if macd_up and rsi_high and diff > _EXTREME_DIVERGENCE:
        score = -2
    elif macd_up and rsi_high:
        score = -1
    elif macd_down and rsi_high:
        score = -1
    elif macd_up and rsi_low:
        score = 2
    elif macd_down and rsi_low:
        score = 1
    elif macd_up:
        score = 1 if diff < thresholds.macd_diff_low else 2
    elif macd_down:
        score = 0 if diff < thresholds.macd_diff_low else -1
    else:
        score = 0

    if not thresholds.macd_minus_ok and macd < 0 and score > 0:
        logger.debug("MACD %.4f < 0 with macd_minus_ok off; clamping score %d to 0.", macd, score)
        score = 0
    return score


def evaluate_baseline(bars: Sequence[Bar], thresholds: ThresholdConfig) -> BaselineReading:
    """Compute RSI(14) and MACD(12, 26, 9) over all closes and score them.

    Args:
        bars:       Ascending daily bars; at least two are required.
        thresholds: RSI / MACD decision thresholds.

    Returns:
        ``BaselineReading`` for the latest bar.

    Raises:
        BaselineError: With fewer than two bars, or if an indicator cannot be
            initialised.
    """
    if len(bars) < BASELINE_MIN_BARS:
        raise BaselineError(
            f"Baseline needs at least {BASELINE_MIN_BARS} bars, got {len(bars)}."
        )
    try:
        rsi_ind = RelativeStrengthIndex(RSI_PERIOD)
        macd_ind = MovingAverageConvergenceDivergence(MACD_FAST, MACD_SLOW, MACD_SIGNAL)
    except ValueError as exc:
        raise BaselineError(f"Baseline indicator initialisation failed: {exc}") from exc

    rsi = 50.0
    outputs: list[MacdOutput] = []
    for bar in bars:
        rsi = rsi_ind.next(bar.close)
        outputs.append(macd_ind.next(bar.close))

    latest, prev = outputs[-1], outputs[-2]
    close = bars[-1].close
    previous_close = bars[-2].close
    price_diff = close - previous_close
    price_diff_percent = price_diff / previous_close * 100.0 if previous_close != 0 else 0.0

    score = baseline_score(latest.macd, latest.signal, rsi, thresholds)
    logger.debug(
        "Baseline: close=%.2f macd=%.4f signal=%.4f rsi=%.2f score=%d",
        close, latest.macd, latest.signal, rsi, score,
    )
    return BaselineReading(
        close=close,
        previous_close=previous_close,
        price_diff=price_diff,
        price_diff_percent=price_diff_percent,
        rsi=rsi,
        macd=latest.macd,
        signal=latest.signal,
        prev_macd=prev.macd,
        prev_signal=prev.signal,
        score=score,
    )
