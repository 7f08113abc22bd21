"""
Tests for tickwise.models.ledger — write-once builder and frozen ledger.

What we test:
  - Builder accepts each field once and rejects overwrites.
  - Unknown fields, None, non-finite values and out-of-range scores raise.
  - freeze() returns an immutable ScoreLedger and locks the builder.
  - Missing baseline fields fail validation at freeze time.
  - Unset extension fields read as None / is_set False.
"""

from __future__ import annotations

import math
from datetime import date

import pytest
from pydantic import ValidationError

from tickwise.models.ledger import (
    IDENTITY_FIELDS,
    LEDGER_FIELDS,
    SCORE_FIELDS,
    LedgerBuilder,
    LedgerWriteError,
    ScoreLedger,
)

BASELINE = {
    "close": 105.0,
    "previous_close": 100.0,
    "price_diff": 5.0,
    "price_diff_percent": 5.0,
    "rsi": 55.0,
    "macd": 1.2,
    "signal": 0.8,
    "prev_macd": 1.0,
    "prev_signal": 0.9,
    "signal_score": 1,
}


def _builder() -> LedgerBuilder:
    builder = LedgerBuilder(ticker="DEMO", name="Demo Corp", as_of=date(2025, 3, 3))
    builder.set_many(BASELINE)
    return builder


class TestLedgerBuilder:
    def test_freeze_returns_ledger(self):
        ledger = _builder().freeze()
        assert isinstance(ledger, ScoreLedger)
        assert ledger.ticker == "DEMO"
        assert ledger.date == date(2025, 3, 3)
        assert ledger.signal_score == 1

    def test_overwrite_rejected(self):
        builder = _builder()
        with pytest.raises(LedgerWriteError, match="already written") as exc_info:
            builder.set("close", 1.0)
        assert exc_info.value.field == "close"

    def test_unknown_field_rejected(self):
        with pytest.raises(LedgerWriteError, match="unknown field"):
            _builder().set("macd_histogram", 0.1)

    def test_none_rejected(self):
        with pytest.raises(LedgerWriteError):
            _builder().set("ema_short", None)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value):
        with pytest.raises(LedgerWriteError, match="not finite"):
            _builder().set("ema_short", value)

    @pytest.mark.parametrize("value", [3, -3, 1.5, True])
    def test_bad_score_rejected(self, value):
        with pytest.raises(LedgerWriteError, match="score"):
            _builder().set("ema_score", value)

    def test_float_score_normalised_to_int(self):
        builder = _builder()
        builder.set("ema_score", 2.0)
        ledger = builder.freeze()
        assert ledger.ema_score == 2
        assert isinstance(ledger.ema_score, int)

    def test_write_after_freeze_rejected(self):
        builder = _builder()
        builder.freeze()
        assert builder.is_frozen
        with pytest.raises(LedgerWriteError, match="frozen"):
            builder.set("ema_short", 1.0)

    def test_double_freeze_rejected(self):
        builder = _builder()
        builder.freeze()
        with pytest.raises(LedgerWriteError):
            builder.freeze()

    def test_missing_baseline_fails_validation(self):
        builder = LedgerBuilder(ticker="DEMO", name="Demo", as_of=date(2025, 1, 1))
        builder.set("close", 1.0)
        with pytest.raises(ValidationError):
            builder.freeze()

    def test_is_set_tracks_writes(self):
        builder = _builder()
        assert builder.is_set("close")
        assert not builder.is_set("vwap")
        builder.set("vwap", 101.0)
        assert builder.is_set("vwap")


class TestScoreLedger:
    def test_is_frozen(self):
        ledger = _builder().freeze()
        with pytest.raises(ValidationError):
            ledger.close = 1.0

    def test_extension_fields_default_unset(self):
        ledger = _builder().freeze()
        assert ledger.ema_score is None
        assert not ledger.is_set("ema_score")
        assert ledger.is_set("signal_score")

    def test_value_by_name(self):
        ledger = _builder().freeze()
        assert ledger.value("rsi") == pytest.approx(55.0)

    def test_value_unknown_field(self):
        with pytest.raises(KeyError):
            _builder().freeze().value("nope")

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            ScoreLedger(ticker="X", name="X", date=date(2025, 1, 1), bogus=1, **BASELINE)

    def test_field_sets(self):
        assert IDENTITY_FIELDS <= LEDGER_FIELDS
        assert "signal_score" in SCORE_FIELDS
        assert "ichimoku_score" in SCORE_FIELDS
        assert "rsi" not in SCORE_FIELDS
        assert len(SCORE_FIELDS) == 10
