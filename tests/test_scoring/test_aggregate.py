"""
Tests for tickwise.scoring.aggregate — weighted score aggregation.

What we test:
  - Baseline plus one extension at full agreement (ratio 1.0, strong buy).
  - Baseline only, fully bearish (ratio exactly -1.0).
  - A failed extension adds nothing to the score but keeps its weight.
  - Zero total weight yields a zero ratio.
  - The ratio stays inside [-1, 1] for every score combination.
  - compute_snapshot reads scores from the ledger via the registry.
"""

from __future__ import annotations

import itertools

import pytest

from tickwise.config import WeightConfig
from tickwise.indicators.registry import get_spec
from tickwise.scoring.aggregate import aggregate_scores, compute_snapshot
from tickwise.scoring.classify import classify_score
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind


class TestAggregateScores:
    def test_full_agreement_is_strong_buy(self):
        snap = aggregate_scores(2, 1.0, [(2, 1.0)])
        assert snap.total_score == pytest.approx(4.0)
        assert snap.total_weight == pytest.approx(4.0)
        assert snap.score_ratio == pytest.approx(1.0)
        assert classify_score(snap.score_ratio) == "🟢 strong buy"

    def test_baseline_only_bearish(self):
        snap = aggregate_scores(-2, 1.0, [])
        assert snap.total_weight == 2.0
        assert snap.total_score == -2.0
        assert snap.score_ratio == -1.0

    def test_failed_extension_keeps_weight(self):
        snap = aggregate_scores(2, 1.0, [(None, 1.0)])
        assert snap.total_score == pytest.approx(2.0)
        assert snap.total_weight == pytest.approx(4.0)
        assert snap.score_ratio == pytest.approx(0.5)

    def test_mixed_weights(self):
        snap = aggregate_scores(1, 2.0, [(-2, 0.5), (2, 3.0)])
        assert snap.total_score == pytest.approx(7.0)
        assert snap.total_weight == pytest.approx(11.0)
        assert snap.score_ratio == pytest.approx(7.0 / 11.0)

    def test_zero_weight_zero_ratio(self):
        snap = aggregate_scores(2, 0.0, [])
        assert snap.total_weight == 0.0
        assert snap.score_ratio == 0.0

    def test_ratio_bounded(self):
        weights = [0.5, 1.0, 3.0]
        for base, s1, s2 in itertools.product(range(-2, 3), range(-2, 3), [None, -2, 0, 2]):
            for w0, w1, w2 in itertools.product(weights, repeat=3):
                snap = aggregate_scores(base, w0, [(s1, w1), (s2, w2)])
                assert -1.0 <= snap.score_ratio <= 1.0
                assert snap.total_weight == pytest.approx(2 * (w0 + w1 + w2))


class TestComputeSnapshot:
    def test_reads_ledger_scores(self, make_ledger):
        ledger = make_ledger(signal_score=2, ema_short=22.5, ema_long=20.0, ema_score=2)
        snap = compute_snapshot(ledger, [get_spec(IndicatorKind.EMA)], WeightConfig())
        assert snap.score_ratio == pytest.approx(1.0)

    def test_unset_score_counts_weight_only(self, make_ledger):
        ledger = make_ledger(signal_score=1, roc=5.0, roc_score=1)
        specs = [get_spec(IndicatorKind.ROC), get_spec(IndicatorKind.ADX)]
        snap = compute_snapshot(ledger, specs, WeightConfig(adx=2.0))
        assert snap.total_score == pytest.approx(2.0)
        assert snap.total_weight == pytest.approx(8.0)

    def test_disabled_indicator_ignored(self, make_ledger):
        ledger = make_ledger(signal_score=-1, roc=-5.0, roc_score=-1)
        snap = compute_snapshot(ledger, [], WeightConfig())
        assert snap.total_score == pytest.approx(-1.0)
        assert snap.total_weight == pytest.approx(2.0)
