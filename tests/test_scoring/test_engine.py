"""
Tests for tickwise.scoring.engine — the evaluation run.

What we test:
  - Offline fixture with every indicator: all succeed, ledger is complete.
  - A short series skips the long-window indicators and records why.
  - Baseline failures (too few bars, bad ordering) raise BaselineError.
  - The run's snapshot equals a fresh compute over the same ledger.
  - Overflow or a non-finite value in one extension skips only that one.
"""

from __future__ import annotations

import math

import pytest

from tickwise.config import AppConfig, IndicatorConfig, WeightConfig
from tickwise.indicators.errors import BaselineError, NonFiniteReadingError
from tickwise.indicators.reading import IndicatorReading, check_finite
from tickwise.models.ledger import VALID_SCORES
from tickwise.scoring.aggregate import compute_snapshot
from tickwise.scoring.engine import run_evaluation
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind


@pytest.fixture
def all_config() -> AppConfig:
    return AppConfig(indicators=IndicatorConfig(enabled=["all"]))


class TestRunEvaluation:
    def test_fixture_all_indicators(self, fixture_bars, all_config):
        result = run_evaluation(fixture_bars, "DEMO", "Demo Corp", all_config)
        assert result.failures == {}
        assert len(result.enabled) == 9
        assert result.succeeded == result.enabled
        assert result.ledger.ticker == "DEMO"
        assert result.ledger.date == fixture_bars[-1].date
        assert result.ledger.close == pytest.approx(fixture_bars[-1].close)
        for spec in result.enabled:
            assert result.ledger.value(spec.score_field) in VALID_SCORES
        assert result.snapshot.total_weight == pytest.approx(20.0)

    def test_baseline_only(self, fixture_bars, default_config):
        result = run_evaluation(fixture_bars, "DEMO", "Demo Corp", default_config)
        assert result.enabled == ()
        assert result.ledger.ema_score is None
        assert result.snapshot.total_weight == pytest.approx(2.0)
        assert result.snapshot.total_score == pytest.approx(result.ledger.signal_score)

    def test_short_series_skips_long_windows(self, make_bars, all_config):
        bars = make_bars([100.0 + (i % 5) for i in range(15)])
        result = run_evaluation(bars, "DEMO", "Demo Corp", all_config)
        assert set(result.failures) == {"EMA", "SMA", "Bollinger Bands", "Ichimoku"}
        assert "needs at least 20 bars, got 15" in result.failures["EMA"]
        assert result.ledger.ema_short is None
        assert result.ledger.roc_score is not None
        assert result.ledger.adx_score is not None
        # failed indicators still weigh in
        assert result.snapshot.total_weight == pytest.approx(20.0)

    def test_failure_logged_as_warning(self, make_bars, all_config, caplog):
        with caplog.at_level("WARNING", logger="tickwise.scoring.engine"):
            run_evaluation(make_bars([100.0, 101.0, 102.0]), "DEMO", "Demo", all_config)
        assert "Skipping Ichimoku" in caplog.text

    def test_two_bars_is_enough_for_baseline(self, make_bars, default_config):
        result = run_evaluation(make_bars([100.0, 105.0]), "DEMO", "Demo", default_config)
        assert result.ledger.price_diff == pytest.approx(5.0)

    def test_single_bar_raises(self, make_bars, default_config):
        with pytest.raises(BaselineError):
            run_evaluation(make_bars([100.0]), "DEMO", "Demo", default_config)

    def test_no_bars_raises(self, default_config):
        with pytest.raises(BaselineError):
            run_evaluation([], "DEMO", "Demo", default_config)

    def test_unordered_bars_raise(self, make_bars, default_config):
        bars = make_bars([100.0, 101.0, 102.0])
        with pytest.raises(BaselineError, match="ascending"):
            run_evaluation([bars[1], bars[0], bars[2]], "DEMO", "Demo", default_config)

    def test_snapshot_not_recomputed_differently(self, fixture_bars):
        config = AppConfig(
            indicators=IndicatorConfig(enabled=["ema", "vwap"]),
            weights=WeightConfig(basic=2.0, vwap=0.5),
        )
        result = run_evaluation(fixture_bars, "DEMO", "Demo", config)
        assert compute_snapshot(result.ledger, result.enabled, config.weights) == result.snapshot
        assert result.snapshot.total_weight == pytest.approx(7.0)


class TestExtensionIsolation:
    def test_overflow_in_one_indicator_does_not_stop_others(self, make_bars):
        config = AppConfig(indicators=IndicatorConfig(enabled=["bollinger", "roc"]))
        bars = make_bars([1.0 if i % 2 == 0 else 1e200 for i in range(26)])
        result = run_evaluation(bars, "DEMO", "Demo", config)
        assert set(result.failures) == {"Bollinger Bands"}
        assert result.ledger.bb_upper is None
        assert result.ledger.bb_score is None
        assert result.ledger.roc_score is not None
        assert result.snapshot.total_weight == pytest.approx(6.0)

    def test_non_finite_reading_leaves_fields_unset(self, make_bars, caplog):
        config = AppConfig(indicators=IndicatorConfig(enabled=["roc"]))
        # subnormal base close makes the percentage change infinite
        bars = make_bars([100.0, 5e-324] + [100.0] * 10)
        with caplog.at_level("WARNING", logger="tickwise.scoring.engine"):
            result = run_evaluation(bars, "DEMO", "Demo", config)
        assert "not finite" in result.failures["ROC"]
        assert result.ledger.roc is None
        assert result.ledger.roc_score is None
        assert "Skipping ROC" in caplog.text


class TestCheckFinite:
    def test_finite_passes_through(self):
        reading = IndicatorReading(kind=IndicatorKind.ROC, values={"roc": 1.5}, score=1)
        assert check_finite(reading) is reading

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_raises(self, value):
        reading = IndicatorReading(kind=IndicatorKind.ADX, values={"adx": value}, score=0)
        with pytest.raises(NonFiniteReadingError, match="adx is not finite"):
            check_finite(reading)
