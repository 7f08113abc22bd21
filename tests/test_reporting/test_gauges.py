"""
Tests for tickwise.reporting.gauges — unipolar and bipolar text gauges.

What we test:
  - Unipolar fill is right to left with half-up rounding, clamped to 0..100.
  - Bipolar centre marker, fill direction, rounding and minimum width.
  - Colour is applied to fill blocks only.
"""

from __future__ import annotations

from tickwise.reporting.gauges import (
    CENTER,
    EMPTY,
    FILL,
    bipolar_bar,
    paint_fill,
    render_bipolar_gauge,
    render_unipolar_gauge,
)


class TestUnipolarGauge:
    def test_full(self):
        assert render_unipolar_gauge(100, "L", "R", 10) == f"L [{FILL * 10}] R"

    def test_empty(self):
        assert render_unipolar_gauge(0, "L", "R", 10) == f"L [{EMPTY * 10}] R"

    def test_half_rounds_up(self):
        # (50 · 25 + 50) // 100 = 13
        gauge = render_unipolar_gauge(50, "BUY 100%", "0% NO BUY", 25)
        assert gauge == f"BUY 100% [{EMPTY * 12}{FILL * 13}] 0% NO BUY"

    def test_minimum_width(self):
        gauge = render_unipolar_gauge(100, "L", "R", 3)
        assert gauge.count(FILL) == 10

    def test_clamped(self):
        assert render_unipolar_gauge(150, "L", "R", 10).count(FILL) == 10
        assert render_unipolar_gauge(-5, "L", "R", 10).count(FILL) == 0


class TestBipolarGauge:
    def test_neutral(self):
        assert bipolar_bar(0.0, 51) == EMPTY * 25 + CENTER + EMPTY * 25

    def test_full_buy_fills_left(self):
        assert bipolar_bar(1.0, 51) == FILL * 25 + CENTER + EMPTY * 25

    def test_full_sell_fills_right(self):
        assert bipolar_bar(-1.0, 51) == EMPTY * 25 + CENTER + FILL * 25

    def test_half_ratio_rounds_away(self):
        # 0.5 · 25 = 12.5 → 13 blocks
        assert bipolar_bar(0.5, 51) == EMPTY * 12 + FILL * 13 + CENTER + EMPTY * 25

    def test_fill_capped(self):
        assert bipolar_bar(3.0, 51).count(FILL) == 25

    def test_minimum_width(self):
        bar = bipolar_bar(0.0, 5)
        assert len(bar) == 12
        assert bar.index(CENTER) == 6

    def test_labels(self):
        gauge = render_bipolar_gauge(0.0, 51, colorize=False)
        assert gauge.startswith("BUY +100% [")
        assert gauge.endswith("] -100% SELL")


class TestPaintFill:
    def test_unknown_color_unchanged(self):
        assert paint_fill(FILL * 3, "purple") == FILL * 3

    def test_only_fill_coloured(self):
        painted = paint_fill(EMPTY + FILL + CENTER, "green")
        assert "\x1b[" in painted
        assert painted.startswith(EMPTY)
        assert painted.endswith(CENTER)

    def test_colourised_bipolar_keeps_layout(self):
        painted = render_bipolar_gauge(1.0, 51, colorize=True)
        assert painted.count(FILL) == 25
