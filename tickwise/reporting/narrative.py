"""
Per-indicator narrative lines.

Every renderer reads the frozen ``ScoreLedger`` only; none of them recompute a
score.  Renderers share one signature so the indicator registry can call them
uniformly::

    render_x(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]

The same lines feed the terminal report and the LLM prompt, so they carry no
ANSI colour.  Each block ends with the weighted-score line from
``score_line()``.
"""

from __future__ import annotations

from typing import Optional

from tickwise.config import AppConfig
from tickwise.models.ledger import ScoreLedger

_NO_SCORE = "⚠️ {name} score unavailable"

# Tenkan/kijun gap (as % of kijun) thresholds for the closeness hints
_ICHIMOKU_NEAR_GAP_PCT = 1.0
_ICHIMOKU_WIDE_GAP_PCT = 5.0
# EMA differences smaller than this are reported as flat
_EMA_FLAT_EPS = 0.01


def score_line(score: int, weight: float) -> str:
    return f"📝 score adjusted ({score * weight:.1f}) = score({score}) × weight({weight:.1f})"


def _rank_line(score: Optional[int], ranks: dict[int, str], name: str) -> str:
    if score is None:
        return _NO_SCORE.format(name=name)
    return ranks.get(score, _NO_SCORE.format(name=name))


def _finish(lines: list[str], score: Optional[int], weight: float, name: str) -> list[str]:
    if score is None:
        lines.append(_NO_SCORE.format(name=name))
    else:
        lines.append(score_line(score, weight))
    return lines


# ── Baseline ──────────────────────────────────────────────────────────────────


def render_baseline(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    """MACD / RSI readings, cross and divergence warnings, and a score summary."""
    macd, signal, rsi = ledger.macd, ledger.signal, ledger.rsi
    score = ledger.signal_score
    lines = [
        "Baseline technical analysis (MACD and RSI)",
        f"📈 MACD: {macd:.4f} / Signal: {signal:.4f}",
        f"📊 RSI: {rsi:.2f}",
    ]

    if ledger.prev_macd < ledger.prev_signal and macd > signal:
        lines.append("⚠️ MACD golden cross → possible turn to an uptrend")
    elif macd > signal:
        lines.append("⚠️ MACD stays above signal → uptrend likely intact")
    elif ledger.prev_macd > ledger.prev_signal and macd < signal:
        lines.append("⚠️ MACD dead cross → possible turn to a downtrend")
    elif macd < signal:
        lines.append("⚠️ MACD stays below signal → weak trend continues")

    divergence = macd - signal
    if divergence >= 5.0:
        lines.append(f"⚠️ MACD far above signal (+{divergence:.2f}) → may be overheated")
    elif divergence <= -5.0:
        lines.append(f"⚠️ MACD far below signal ({divergence:.2f}) → may be oversold")

    if rsi <= 5.0:
        lines.append("⚠️ RSI near 0% → extreme selling, watch for a rebound")
    elif rsi >= 95.0:
        lines.append("⚠️ RSI near 100% → extreme buying, watch for a reversal")

    if score == 2:
        if rsi < 30.0:
            lines.append("🟢 [baseline +2] RSI deeply oversold → strong buy signal → +2")
        else:
            lines.append("🟢 [baseline +2] MACD in a strong uptrend → +2")
    elif score == 1:
        if rsi < 40.0:
            lines.append("🟢 [baseline +1] RSI in the cheap zone → buy signal → +1")
        else:
            lines.append("🟢 [baseline +1] MACD trending up → +1")
    elif score == 0:
        lines.append("⚪ [baseline 0] RSI and MACD both neutral → no score")
    elif score == -1:
        if rsi > 60.0:
            lines.append("🔴 [baseline -1] RSI in the expensive zone → sell signal → -1")
        else:
            lines.append("🔴 [baseline -1] MACD trending down → -1")
    else:
        if rsi > 70.0:
            lines.append("🔴 [baseline -2] RSI deeply overbought → strong sell signal → -2")
        else:
            lines.append("🔴 [baseline -2] MACD in a strong downtrend → -2")

    lines.append(score_line(score, weight))
    return lines


# ── Trend ─────────────────────────────────────────────────────────────────────


def render_ema(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [EMA (exponential moving average)]"]
    short, long = ledger.ema_short, ledger.ema_long
    if short is None or long is None:
        lines.append("⚠️ EMA data unavailable")
    else:
        lines.append(f"Short EMA: {short:.2f} / Long EMA: {long:.2f}")
        diff = short - long
        if diff > _EMA_FLAT_EPS:
            lines.append("🟢 Golden cross in progress (short EMA above long EMA)")
        elif diff < -_EMA_FLAT_EPS:
            lines.append("📉 Dead cross in progress (short EMA below long EMA)")
        else:
            lines.append(f"➡️ EMAs level (gap under ±{_EMA_FLAT_EPS}) → no score change")
    return _finish(lines, ledger.ema_score, weight, "EMA")


_SMA_RANKS = {
    2: "🟢 Short SMA well above long → strong uptrend → +2",
    1: "🟢 Short SMA slightly above long → uptrend → +1",
    0: "➡️ SMAs level → no score change",
    -1: "🔴 Short SMA slightly below long → downtrend → -1",
    -2: "🔴 Short SMA well below long → strong downtrend → -2",
}


def render_sma(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [SMA (simple moving average)]"]
    short, long = ledger.sma_short, ledger.sma_long
    if short is None or long is None:
        lines.append("⚠️ SMA data unavailable")
    else:
        lines.append(f"Short SMA: {short:.2f} / Long SMA: {long:.2f}")
        if short > long:
            lines.append("📈 Golden cross (short SMA above long SMA)")
        elif short < long:
            lines.append("📉 Dead cross (short SMA below long SMA)")
        else:
            lines.append("➖ SMAs equal: no cross")
    if ledger.sma_score is not None:
        lines.append(_rank_line(ledger.sma_score, _SMA_RANKS, "SMA"))
    return _finish(lines, ledger.sma_score, weight, "SMA")


_ROC_RANKS = {
    2: "🟢 ROC rising sharply → strong uptrend → +2",
    1: "🟢 ROC rising → +1",
    0: "➡️ ROC stable (±3%) → no score change",
    -1: "🔴 ROC falling slightly → -1",
    -2: "🔴 ROC falling sharply → strong downtrend → -2",
}


def render_roc(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [ROC (rate of change)]"]
    roc = ledger.roc
    if roc is None:
        lines.append("⚠️ Not enough data for ROC")
    else:
        lines.append(f"10-day ROC: {roc:.2f}%")
        if roc >= 15.0:
            lines.append(f"⚠️ ROC at or above +15% ({roc:.2f}%) → short-term overheating, watch for a pullback")
        elif roc <= -15.0:
            lines.append(f"⚠️ ROC at or below -15% ({roc:.2f}%) → possible panic selling, watch for a rebound")
        lines.append(_rank_line(ledger.roc_score, _ROC_RANKS, "ROC"))
    return _finish(lines, ledger.roc_score, weight, "ROC")


_ADX_RANKS = {
    2: "🟢 ADX very strong (50+) → strong trend continues → +2",
    1: "🟢 ADX fairly strong (30 to 50) → trend forming → +1",
    0: "➡️ ADX neutral (20 to 30) → wait and see",
    -1: "🔴 ADX fairly weak (10 to 20) → trend fading → -1",
    -2: "🔴 ADX very weak (under 10) → no trend → -2",
}


def render_adx(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [ADX (average directional index)]"]
    adx = ledger.adx
    if adx is None:
        lines.append("⚠️ ADX data unavailable")
    else:
        lines.append(f"Current ADX: {adx:.2f}")
        if adx >= 50.0:
            lines.append(f"⚠️ ADX 50 or above ({adx:.2f}) → very strong trend, watch for reversal risk")
        elif adx <= 10.0:
            lines.append(f"⚠️ ADX 10 or below ({adx:.2f}) → no trend (range market), enter with care")
        lines.append(_rank_line(ledger.adx_score, _ADX_RANKS, "ADX"))
    return _finish(lines, ledger.adx_score, weight, "ADX")


_VWAP_RANKS = {
    2: "🟢 VWAP well below the price → strong buy signal → +2",
    1: "🟢 VWAP slightly below the price → buy signal → +1",
    0: "➡️ Price level with VWAP (within ±1.0) → no score change",
    -1: "🔴 VWAP slightly above the price → sell signal → -1",
    -2: "🔴 VWAP well above the price → strong sell signal → -2",
}


def render_vwap(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = [
        "📊 [VWAP (daily approximation)]",
        "⚠️ This VWAP is approximated from high, low and close; it can differ from a true volume-weighted price.",
    ]
    if ledger.vwap is None:
        lines.append("⚠️ Not enough data for VWAP")
    else:
        lines.append(f"VWAP: {ledger.vwap:.2f}")
        lines.append(_rank_line(ledger.vwap_score, _VWAP_RANKS, "VWAP"))
    return _finish(lines, ledger.vwap_score, weight, "VWAP")


_ICHIMOKU_RANKS = {
    2: "🟢 Tenkan well above kijun → strong buying pressure → +2",
    1: "🟢 Tenkan slightly above kijun → buyers ahead → +1",
    0: "➡️ Tenkan and kijun level → no trend → no score change",
    -1: "🔴 Tenkan slightly below kijun → sellers ahead → -1",
    -2: "🔴 Tenkan well below kijun → strong selling pressure → -2",
}


def render_ichimoku(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [Ichimoku]"]
    tenkan, kijun = ledger.tenkan, ledger.kijun
    if tenkan is None or kijun is None:
        lines.append("⚠️ Not enough data for Ichimoku")
    else:
        lines.append(f"Tenkan-sen: {tenkan:.2f} / Kijun-sen: {kijun:.2f}")
        if tenkan > kijun:
            lines.append("📈 Golden cross (tenkan above kijun)")
        elif tenkan < kijun:
            lines.append("📉 Dead cross (tenkan below kijun)")
        else:
            lines.append("➡️ Tenkan and kijun crossing (flat)")
        if kijun != 0:
            gap = abs((tenkan - kijun) / kijun) * 100.0
            if gap < _ICHIMOKU_NEAR_GAP_PCT:
                lines.append(f"💡 Lines close together (gap {gap:.2f}%) → trend not yet confirmed")
            elif gap > _ICHIMOKU_WIDE_GAP_PCT:
                lines.append(f"💡 Wide gap between lines (gap {gap:.2f}%) → possibly a strong trend")
        lines.append(_rank_line(ledger.ichimoku_score, _ICHIMOKU_RANKS, "Ichimoku"))
    return _finish(lines, ledger.ichimoku_score, weight, "Ichimoku")


# ── Oscillator ────────────────────────────────────────────────────────────────

_STOCH_RANKS = {
    2: "🟢 %K at or below 10% → deeply oversold → buy signal → +2",
    1: "🟢 %K at or below 20% → oversold → buy signal → +1",
    0: "➡️ %K neutral (20 to 80%) → no signal → no score change",
    -1: "🔴 %K at or above 80% → overbought → sell signal → -1",
    -2: "🔴 %K at or above 90% → deeply overbought → sell signal → -2",
}


def render_stochastics(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = ["📊 [Stochastics]"]
    k, d = ledger.stoch_k, ledger.stoch_d
    if k is None:
        lines.append("⚠️ Not enough data for %K")
    elif d is None:
        lines.append("⚠️ Not enough data for %D")
    else:
        lines.append(f"Current %K: {k:.2f}% / Current %D: {d:.2f}%")
        if k == 0.0 and d == 0.0:
            lines.append("⚠️ %K and %D pinned at 0.00% → extreme oversold, rebound possible")
    if ledger.stoch_score is not None:
        lines.append(_rank_line(ledger.stoch_score, _STOCH_RANKS, "Stochastics"))
    return _finish(lines, ledger.stoch_score, weight, "Stochastics")


# ── Volatility ────────────────────────────────────────────────────────────────


def render_bollinger(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    """Bands, %b / bandwidth, squeeze state against the configured threshold."""
    lines = ["📊 [Bollinger Bands]"]
    upper, lower = ledger.bb_upper, ledger.bb_lower
    pb, bw = ledger.bb_percent_b, ledger.bb_bandwidth
    if upper is None or lower is None or pb is None or bw is None:
        lines.append("⚠️ Bollinger data unavailable")
        return _finish(lines, ledger.bb_score, weight, "Bollinger")

    lines.append(f"Upper {upper:.2f} / Lower {lower:.2f}")
    if upper == lower:
        lines.append("⚠️ Band width is zero; read %b and bandwidth with care")
    lines.append(f"%b indicator: {pb:.2f} / Bandwidth: {bw:.1f}%")

    threshold = config.indicators.bb_bandwidth_squeeze_pct
    if bw <= threshold:
        lines.append(f"⚠️ Squeeze in progress (bandwidth at or below {threshold:.1f}%)")
    else:
        lines.append(f"ℹ️ Bandwidth above {threshold:.1f}%, no squeeze")

    if pb > 1.0:
        lines.append(f"⚠️ Upper band break (%b {pb:.2f}) → watch for a pullback after the run")
    elif pb < 0.0:
        lines.append(f"⚠️ Lower band break (%b {pb:.2f}) → rebound or further decline")
    else:
        lines.append("➡️ Price inside the bands → neutral")

    score = ledger.bb_score
    if score is not None and 0.0 <= pb <= 1.0 and score != 0:
        if score > 0:
            lines.append(f"🟢 Inside the bands, lower side dominant → {score:+}")
        else:
            lines.append(f"🔴 Inside the bands, upper side dominant → {score:+}")
    return _finish(lines, score, weight, "Bollinger")


# ── Support / resistance ─────────────────────────────────────────────────────


def render_fibonacci(ledger: ScoreLedger, weight: float, config: AppConfig) -> list[str]:
    lines = [
        "📊 [Fibonacci retracement]",
        "💡 Price levels for spotting pullbacks and rebounds within a trend",
    ]
    f38, f50, f62 = ledger.fibo_38_2, ledger.fibo_50_0, ledger.fibo_61_8
    if f38 is None or f50 is None or f62 is None:
        lines.append("⚠️ No price range in the window; Fibonacci levels unavailable")
    else:
        lines.append(f"38.2%: {f38:.2f} / 50.0%: {f50:.2f} / 61.8%: {f62:.2f}")
        band_lines = {
            2: f"🟢 Close above the 38.2% level ({f38:.2f}) → very strong rise → +2",
            1: f"🟢 Close more than 0.50 above 50% ({f50:.2f}) → rising → +1",
            0: f"➡️ Close within ±0.50 of 50% ({f50:.2f}) → neutral (0)",
            -1: f"🔴 Close more than 0.50 below 50% ({f50:.2f}) → falling → -1",
            -2: f"🔴 Close below the 61.8% level ({f62:.2f}) → very strong decline → -2",
        }
        lines.append(_rank_line(ledger.fibo_score, band_lines, "Fibonacci"))
    return _finish(lines, ledger.fibo_score, weight, "Fibonacci")
