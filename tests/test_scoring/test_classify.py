"""
Tests for tickwise.scoring.classify — ratio bands and stance verdicts.

What we test:
  - All ten ratio bands, including their lower edges.
  - Half-away-from-zero rounding.
  - Buyer / seller / holder percentages, with and without weight.
  - Stance verdict bands at every cut-off.
"""

from __future__ import annotations

import pytest

from tickwise.models.snapshot import FinalSnapshot
from tickwise.scoring.classify import (
    SCORE_BANDS,
    buyer_percent,
    classify_score,
    color_for_score,
    holder_percent,
    round_half_away,
    seller_percent,
    stance_verdict,
)
from tickwise.taxonomy.stance_taxonomy import Stance


def snap(total: float, weight: float) -> FinalSnapshot:
    ratio = total / weight if weight else 0.0
    return FinalSnapshot(total_score=total, total_weight=weight, score_ratio=ratio)


class TestClassifyScore:
    def test_ten_bands(self):
        assert len(SCORE_BANDS) == 10
        assert len({band.label for band in SCORE_BANDS}) == 10

    @pytest.mark.parametrize(
        "ratio, label",
        [
            (1.0, "strong buy"),
            (0.8, "strong buy"),
            (0.79, "buy dominant"),
            (0.6, "buy dominant"),
            (0.5, "leaning buy"),
            (0.2, "slightly buy"),
            (0.0, "buy bias"),
            (-0.1, "wait and see (neutral)"),
            (-0.2, "wait and see (neutral)"),
            (-0.3, "sell bias"),
            (-0.5, "slightly sell"),
            (-0.8, "leaning sell"),
            (-0.81, "strong sell"),
            (-1.0, "strong sell"),
        ],
    )
    def test_band_labels(self, ratio, label):
        assert classify_score(ratio).endswith(label)

    def test_caption_has_marker(self):
        assert classify_score(1.0) == "🟢 strong buy"
        assert classify_score(-1.0) == "🔴 strong sell"
        assert classify_score(-0.1) == "⚪ wait and see (neutral)"

    def test_colors(self):
        assert color_for_score(0.9) == "green"
        assert color_for_score(0.1) == "yellow"
        assert color_for_score(-0.3) == "orange"
        assert color_for_score(-0.9) == "red"


class TestRoundHalfAway:
    @pytest.mark.parametrize(
        "value, expected",
        [(2.5, 3), (-2.5, -3), (2.4, 2), (0.5, 1), (-0.5, -1), (0.0, 0), (62.5, 63)],
    )
    def test_values(self, value, expected):
        assert round_half_away(value) == expected


class TestPercentages:
    def test_full_buy(self):
        s = snap(4.0, 4.0)
        assert buyer_percent(s) == 100
        assert seller_percent(s) == 0
        assert holder_percent(s) == 100

    def test_full_sell(self):
        s = snap(-2.0, 2.0)
        assert buyer_percent(s) == 0
        assert seller_percent(s) == 100
        assert holder_percent(s) == -100

    def test_neutral(self):
        assert buyer_percent(snap(0.0, 4.0)) == 50

    def test_half_rounds_up(self):
        # (4 + 1) / 8 = 62.5 %
        assert buyer_percent(snap(1.0, 4.0)) == 63
        assert seller_percent(snap(1.0, 4.0)) == 37

    def test_holder_rounding(self):
        assert holder_percent(snap(1.0, 8.0)) == 13
        assert holder_percent(snap(-1.0, 8.0)) == -13

    def test_no_weight(self):
        s = snap(0.0, 0.0)
        assert buyer_percent(s) == 50
        assert seller_percent(s) == 50
        assert holder_percent(s) == 0


class TestStanceVerdict:
    # With total_weight 100: buyer % = 50 + total / 2
    @pytest.mark.parametrize(
        "total, pct, color, text",
        [
            (100.0, 100, "green", "buy aggressively"),
            (80.0, 90, "green", "buy aggressively"),
            (78.0, 89, "yellow", "buy"),
            (22.0, 61, "yellow", "buy"),
            (20.0, 60, "white", "neutral"),
            (-20.0, 40, "white", "neutral"),
            (-22.0, 39, "orange", "buying not recommended"),
            (-60.0, 20, "orange", "buying not recommended"),
            (-62.0, 19, "red", "do not buy"),
        ],
    )
    def test_buyer_bands(self, total, pct, color, text):
        verdict = stance_verdict(snap(total, 100.0), Stance.BUYER)
        assert (verdict.percent, verdict.color, verdict.text) == (pct, color, text)

    def test_seller_mirrors_buyer(self):
        verdict = stance_verdict(snap(80.0, 100.0), Stance.SELLER)
        assert verdict.percent == 10
        assert verdict.text == "do not sell"
        assert verdict.marker == "🔴"

    def test_seller_strong(self):
        verdict = stance_verdict(snap(-2.0, 2.0), Stance.SELLER)
        assert verdict.text == "sell aggressively"

    def test_holder_rejected(self):
        with pytest.raises(ValueError):
            stance_verdict(snap(0.0, 2.0), Stance.HOLDER)
