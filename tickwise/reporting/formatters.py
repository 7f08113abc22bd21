"""
Terminal report composition.

``format_report()`` assembles the full report as a list of lines:

  1. main info   threshold notices, name, time, prices, diff, MACD policy
  2. baseline    ``narrative.render_baseline``
  3. extensions  category headers + registry renderers (successful only)
  4. final score ``compose_final_score_lines`` for the configured stance

The same builders feed the LLM prompt with ``colorize=False`` and
``include_gauge=False``, so no line is produced twice by different code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import typer

from tickwise.config import AppConfig, ThresholdConfig
from tickwise.indicators.registry import IndicatorSpec
from tickwise.models.ledger import ScoreLedger
from tickwise.models.snapshot import FinalSnapshot
from tickwise.reporting.gauges import paint_fill, render_bipolar_gauge, render_unipolar_gauge
from tickwise.reporting.narrative import render_baseline
from tickwise.scoring.classify import classify_score, holder_percent, stance_verdict
from tickwise.scoring.engine import EvaluationResult
from tickwise.taxonomy.indicator_taxonomy import CATEGORY_HEADERS, IndicatorCategory
from tickwise.taxonomy.stance_taxonomy import Stance

_DEFAULT_THRESHOLDS = ThresholdConfig()

_UNIPOLAR_LABELS: dict[Stance, tuple[str, str]] = {
    Stance.BUYER: ("BUY 100%", "0% NO BUY"),
    Stance.SELLER: ("SELL 100%", "0% NO SELL"),
}


# ── Main info ─────────────────────────────────────────────────────────────────


def threshold_notices(thresholds: ThresholdConfig) -> list[str]:
    """One notice per threshold that differs from its default."""
    notices: list[str] = []
    if thresholds.buy_rsi != _DEFAULT_THRESHOLDS.buy_rsi:
        notices.append(
            f"🔧 --buy-rsi={thresholds.buy_rsi:.2f} → RSI at or below "
            f"{thresholds.buy_rsi:.2f} counts as the buy zone"
        )
    if thresholds.sell_rsi != _DEFAULT_THRESHOLDS.sell_rsi:
        notices.append(
            f"🔧 --sell-rsi={thresholds.sell_rsi:.2f} → RSI at or above "
            f"{thresholds.sell_rsi:.2f} counts as the sell zone"
        )
    if thresholds.macd_diff_low != _DEFAULT_THRESHOLDS.macd_diff_low:
        notices.append(
            f"🔧 --macd-diff-low={thresholds.macd_diff_low:.2f} → a MACD gap under "
            f"{thresholds.macd_diff_low:.2f} softens the score"
        )
    if thresholds.macd_diff_mid != _DEFAULT_THRESHOLDS.macd_diff_mid:
        notices.append(
            f"🔧 --macd-diff-mid={thresholds.macd_diff_mid:.2f} → a MACD gap of "
            f"{thresholds.macd_diff_mid:.2f} or more strengthens the score"
        )
    return notices


def macd_minus_label(ledger: ScoreLedger, thresholds: ThresholdConfig) -> str:
    if not thresholds.macd_minus_ok:
        return "* Negative-MACD buy signals: disabled"
    if ledger.macd < 0 and ledger.macd > ledger.signal:
        return "* Negative-MACD buy signals: enabled (applied this run)"
    return "* Negative-MACD buy signals: enabled (not applied this run)"


def format_price_diff(ledger: ScoreLedger, colorize: bool = True) -> str:
    text = f"{ledger.price_diff:+.2f} ({ledger.price_diff_percent:+.2f}%)"
    if not colorize or ledger.price_diff == 0:
        return text
    color = typer.colors.GREEN if ledger.price_diff > 0 else typer.colors.RED
    return typer.style(text, fg=color)


def format_main_info(
    ledger: ScoreLedger,
    config: AppConfig,
    now: Optional[datetime] = None,
    colorize: bool = True,
) -> list[str]:
    now = now or datetime.now().astimezone()
    lines = [
        typer.style(n, fg=typer.colors.RED) if colorize else n
        for n in threshold_notices(config.thresholds)
    ]
    lines += [
        "",
        f"📊 Name: {ledger.name} ({ledger.ticker})",
        f"📅 Date: {now:%Y-%m-%d %H:%M %Z}".rstrip(),
        f"💰 Close: {ledger.close:.2f}",
        f"💰 Previous close: {ledger.previous_close:.2f}",
        f"📊 Change: {format_price_diff(ledger, colorize)}",
        macd_minus_label(ledger, config.thresholds),
        "",
    ]
    return lines


# ── Indicator sections ────────────────────────────────────────────────────────


def format_extension_sections(
    ledger: ScoreLedger,
    specs: Sequence[IndicatorSpec],
    config: AppConfig,
) -> list[str]:
    """Category headers followed by each successful indicator's narrative."""
    lines: list[str] = []
    shown = [s for s in specs if ledger.is_set(s.score_field)]
    for category in IndicatorCategory:
        members = [s for s in shown if s.category is category]
        if not members:
            continue
        lines.append(CATEGORY_HEADERS[category])
        for spec in members:
            lines.extend(spec.renderer(ledger, spec.weight(config.weights), config))
            lines.append("")
    return lines


# ── Final score ───────────────────────────────────────────────────────────────


def compose_final_score_lines(
    snapshot: FinalSnapshot,
    stance: Stance,
    include_gauge: bool = True,
    colorize: bool = True,
    unipolar_width: int = 25,
    bipolar_width: int = 51,
) -> list[str]:
    """Header, verdict and (optionally) gauge for the chosen stance."""
    lines = [
        f"🧮 Total score {snapshot.total_score:.1f} (range ±{snapshot.weight_abs:.1f})",
        f"Total score (stance: {stance.caption})",
    ]
    if stance is Stance.HOLDER:
        lines.append(
            f"→ verdict: {classify_score(snapshot.score_ratio)} "
            f"score ratio {holder_percent(snapshot):+}%"
        )
        if include_gauge:
            lines.append(render_bipolar_gauge(snapshot.score_ratio, bipolar_width, colorize))
    else:
        verdict = stance_verdict(snapshot, stance)
        lines.append(f"→ verdict: {verdict.marker} {verdict.text} {verdict.percent}%")
        if include_gauge:
            left, right = _UNIPOLAR_LABELS[stance]
            gauge = render_unipolar_gauge(verdict.percent, left, right, unipolar_width)
            lines.append(paint_fill(gauge, verdict.color) if colorize else gauge)
    lines.append("")
    return lines


def format_narrative(result: EvaluationResult, config: AppConfig) -> list[str]:
    """Baseline narrative then the categorised extension narratives."""
    lines = render_baseline(result.ledger, config.weights.basic, config)
    lines.append("")
    lines.extend(format_extension_sections(result.ledger, result.enabled, config))
    return lines


def format_report(
    result: EvaluationResult,
    config: AppConfig,
    now: Optional[datetime] = None,
    colorize: bool = True,
) -> list[str]:
    lines = format_main_info(result.ledger, config, now=now, colorize=colorize)
    lines.extend(format_narrative(result, config))
    lines.extend(
        compose_final_score_lines(
            result.snapshot,
            config.presentation.stance,
            include_gauge=True,
            colorize=colorize,
            unipolar_width=config.presentation.unipolar_width,
            bipolar_width=config.presentation.bipolar_width,
        )
    )
    return lines
