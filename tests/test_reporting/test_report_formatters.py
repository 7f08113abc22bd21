"""
Tests for tickwise.reporting.formatters — terminal report composition.

What we test:
  - Threshold notices appear only for non-default thresholds.
  - Negative-MACD policy label.
  - Main info block with a fixed timestamp and colour off.
  - Extension sections grouped by category, failed indicators omitted.
  - Final score lines for each stance, with and without gauges.
  - Full report on the offline fixture.
"""

from __future__ import annotations

from datetime import datetime, timezone

from tickwise.config import AppConfig, IndicatorConfig, PresentationConfig, ThresholdConfig
from tickwise.indicators.registry import get_spec
from tickwise.models.snapshot import FinalSnapshot
from tickwise.reporting.formatters import (
    compose_final_score_lines,
    format_extension_sections,
    format_main_info,
    format_price_diff,
    format_report,
    macd_minus_label,
    threshold_notices,
)
from tickwise.reporting.gauges import FILL, render_bipolar_gauge
from tickwise.scoring.engine import run_evaluation
from tickwise.taxonomy.indicator_taxonomy import CATEGORY_HEADERS, IndicatorCategory, IndicatorKind
from tickwise.taxonomy.stance_taxonomy import Stance

NOW = datetime(2025, 3, 3, 9, 30, tzinfo=timezone.utc)
FULL_BUY = FinalSnapshot(total_score=4.0, total_weight=4.0, score_ratio=1.0)


class TestMainInfo:
    def test_no_notices_by_default(self):
        assert threshold_notices(ThresholdConfig()) == []

    def test_notice_for_changed_threshold(self):
        notices = threshold_notices(ThresholdConfig(buy_rsi=35.0, macd_diff_mid=12.0))
        assert len(notices) == 2
        assert notices[0].startswith("🔧 --buy-rsi=35.00")
        assert "--macd-diff-mid=12.00" in notices[1]

    def test_macd_minus_label(self, make_ledger):
        ledger = make_ledger(macd=-0.2, signal=-0.5)
        assert macd_minus_label(ledger, ThresholdConfig()).endswith("disabled")
        assert macd_minus_label(ledger, ThresholdConfig(macd_minus_ok=True)).endswith(
            "(applied this run)"
        )
        assert "(not applied this run)" in macd_minus_label(
            make_ledger(), ThresholdConfig(macd_minus_ok=True)
        )

    def test_price_diff(self, make_ledger):
        assert format_price_diff(make_ledger(), colorize=False) == "+5.00 (+5.00%)"
        assert "\x1b[" in format_price_diff(make_ledger(), colorize=True)

    def test_main_info_lines(self, make_ledger, default_config):
        lines = format_main_info(make_ledger(), default_config, now=NOW, colorize=False)
        assert "📊 Name: Demo Corp (DEMO)" in lines
        assert "📅 Date: 2025-03-03 09:30 UTC" in lines
        assert "💰 Close: 105.00" in lines
        assert "💰 Previous close: 100.00" in lines
        assert "📊 Change: +5.00 (+5.00%)" in lines


class TestExtensionSections:
    def test_grouped_by_category(self, make_ledger, default_config):
        ledger = make_ledger(
            ema_short=22.5, ema_long=20.0, ema_score=2,
            bb_upper=110.0, bb_lower=90.0, bb_percent_b=0.75, bb_bandwidth=20.0, bb_score=0,
        )
        specs = [get_spec(k) for k in (IndicatorKind.EMA, IndicatorKind.ADX, IndicatorKind.BOLLINGER)]
        lines = format_extension_sections(ledger, specs, default_config)
        trend = lines.index(CATEGORY_HEADERS[IndicatorCategory.TREND])
        volatility = lines.index(CATEGORY_HEADERS[IndicatorCategory.VOLATILITY])
        assert trend < lines.index("📊 [EMA (exponential moving average)]") < volatility
        assert CATEGORY_HEADERS[IndicatorCategory.OSCILLATOR] not in lines
        # ADX was enabled but never scored
        assert not any("ADX" in line for line in lines)

    def test_nothing_enabled(self, make_ledger, default_config):
        assert format_extension_sections(make_ledger(), [], default_config) == []


class TestFinalScoreLines:
    def test_holder(self):
        lines = compose_final_score_lines(FULL_BUY, Stance.HOLDER, colorize=False)
        assert lines[0] == "🧮 Total score 4.0 (range ±4.0)"
        assert lines[1] == "Total score (stance: Holder)"
        assert lines[2] == "→ verdict: 🟢 strong buy score ratio +100%"
        assert lines[3] == render_bipolar_gauge(1.0, 51, colorize=False)
        assert lines[-1] == ""

    def test_buyer(self):
        lines = compose_final_score_lines(FULL_BUY, Stance.BUYER, colorize=False, unipolar_width=10)
        assert lines[2] == "→ verdict: 🟢 buy aggressively 100%"
        assert lines[3] == f"BUY 100% [{FILL * 10}] 0% NO BUY"

    def test_seller(self):
        lines = compose_final_score_lines(FULL_BUY, Stance.SELLER, colorize=False, unipolar_width=10)
        assert lines[2] == "→ verdict: 🔴 do not sell 0%"
        assert lines[3] == "SELL 100% [..........] 0% NO SELL"

    def test_without_gauge(self):
        lines = compose_final_score_lines(FULL_BUY, Stance.HOLDER, include_gauge=False)
        assert len(lines) == 4
        assert FILL not in "".join(lines)


class TestFormatReport:
    def test_fixture_report(self, fixture_bars):
        config = AppConfig(
            indicators=IndicatorConfig(enabled=["all"]),
            presentation=PresentationConfig(stance="buyer"),
        )
        result = run_evaluation(fixture_bars, "DEMO", "Demo Corp", config)
        lines = format_report(result, config, now=NOW, colorize=False)
        assert "📊 Name: Demo Corp (DEMO)" in lines
        assert "Baseline technical analysis (MACD and RSI)" in lines
        for header in CATEGORY_HEADERS.values():
            assert header in lines
        assert "Total score (stance: Buyer)" in lines
        assert not any("\x1b[" in line for line in lines)
