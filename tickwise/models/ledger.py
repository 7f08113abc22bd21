"""
Score ledger — every raw value and score computed for one (ticker, date) run.

Two-stage design:
  1. ``LedgerBuilder`` — mutable, used only while evaluators run.  Each field
                         can be written exactly once; there are no read
                         accessors for values.
  2. ``ScoreLedger``   — frozen pydantic model produced by
                         ``LedgerBuilder.freeze()``.  Every consumer
                         (aggregation, narrative, technical log, prompt)
                         receives this type and can only read it.

Extension fields default to ``None`` and stay ``None`` when the indicator is
disabled or its evaluator failed, so "absent" is always distinguishable from
a computed zero.

Invariants enforced here:
  - Every score field holds one of -2, -1, 0, 1, 2.
  - Every numeric field that is set is finite (degenerate inputs must be
    resolved to a default by the evaluator, never stored as NaN/inf).
  - A field is written once; a second write raises ``LedgerWriteError``.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, model_validator

Score = Literal[-2, -1, 0, 1, 2]

VALID_SCORES = frozenset({-2, -1, 0, 1, 2})


class LedgerWriteError(RuntimeError):
    """Raised on an illegal ledger write.

    Attributes:
        field: The ledger field the write targeted.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        super().__init__(f"Cannot write ledger field '{field}': {reason}")


class ScoreLedger(BaseModel):
    """Frozen per-run record of baseline and extension indicator values.

    Identity and baseline fields are always present (the baseline evaluator
    is mandatory).  Extension fields are ``None`` unless that indicator was
    enabled and computed successfully.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ── Identity ──────────────────────────────────────────────────────────────
    ticker: str
    name: str
    date: date

    # ── Baseline (MACD + RSI) ─────────────────────────────────────────────────
    close: float
    previous_close: float
    price_diff: float
    price_diff_percent: float
    rsi: float
    macd: float
    signal: float
    prev_macd: float
    prev_signal: float
    signal_score: Score

    # ── EMA ───────────────────────────────────────────────────────────────────
    ema_short: Optional[float] = None
    ema_long: Optional[float] = None
    ema_score: Optional[Score] = None

    # ── SMA ───────────────────────────────────────────────────────────────────
    sma_short: Optional[float] = None
    sma_long: Optional[float] = None
    sma_score: Optional[Score] = None

    # ── ROC ───────────────────────────────────────────────────────────────────
    roc: Optional[float] = None
    roc_score: Optional[Score] = None

    # ── ADX ───────────────────────────────────────────────────────────────────
    adx: Optional[float] = None
    adx_score: Optional[Score] = None

    # ── Stochastics ───────────────────────────────────────────────────────────
    stoch_k: Optional[float] = None
    stoch_d: Optional[float] = None
    stoch_score: Optional[Score] = None

    # ── Bollinger Bands ───────────────────────────────────────────────────────
    bb_upper: Optional[float] = None
    bb_lower: Optional[float] = None
    bb_percent_b: Optional[float] = None
    bb_bandwidth: Optional[float] = None
    bb_score: Optional[Score] = None

    # ── Fibonacci retracement ─────────────────────────────────────────────────
    fibo_38_2: Optional[float] = None
    fibo_50_0: Optional[float] = None
    fibo_61_8: Optional[float] = None
    fibo_score: Optional[Score] = None

    # ── VWAP (typical-price proxy) ────────────────────────────────────────────
    vwap: Optional[float] = None
    vwap_score: Optional[Score] = None

    # ── Ichimoku ──────────────────────────────────────────────────────────────
    tenkan: Optional[float] = None
    kijun: Optional[float] = None
    ichimoku_score: Optional[Score] = None

    @model_validator(mode="after")
    def validate_finite_values(self) -> "ScoreLedger":
        for name, value in self:
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"Ledger field '{name}' is not finite: {value}.")
        return self

    def value(self, field: str) -> Any:
        """Read one field by name (used by registry-driven consumers)."""
        if field not in type(self).model_fields:
            raise KeyError(f"Unknown ledger field '{field}'.")
        return getattr(self, field)

    def is_set(self, field: str) -> bool:
        return self.value(field) is not None


LEDGER_FIELDS: frozenset[str] = frozenset(ScoreLedger.model_fields)
SCORE_FIELDS: frozenset[str] = frozenset(f for f in LEDGER_FIELDS if f.endswith("score"))
IDENTITY_FIELDS: frozenset[str] = frozenset({"ticker", "name", "date"})


class LedgerBuilder:
    """Write-once accumulator used during the evaluation phase.

    Usage::

        builder = LedgerBuilder(ticker="AAPL", name="Apple Inc.", as_of=bars[-1].date)
        builder.set_many(baseline.ledger_values())
        builder.set("ema_short", 101.2)
        ...
        ledger = builder.freeze()   # builder rejects all further writes

    The builder deliberately offers no getters: evaluators are pure functions
    of the bar series and never read another indicator's partial state.
    """

    def __init__(self, ticker: str, name: str, as_of: date) -> None:
        self._values: dict[str, Any] = {"ticker": ticker, "name": name, "date": as_of}
        self._frozen = False

    def set(self, field: str, value: Any) -> None:
        """Write one field.

        Raises:
            LedgerWriteError: If the builder is frozen, the field is unknown or
                already written, the value is None, a float is not finite, or
                a score is outside {-2..2}.
        """
        if self._frozen:
            raise LedgerWriteError(field, "ledger is already frozen")
        if field not in LEDGER_FIELDS:
            raise LedgerWriteError(field, "unknown field")
        if field in self._values:
            raise LedgerWriteError(field, "field was already written")
        if value is None:
            raise LedgerWriteError(field, "None is not a value; leave the field unset")
        if field in SCORE_FIELDS:
            if isinstance(value, bool) or int(value) != value or int(value) not in VALID_SCORES:
                raise LedgerWriteError(field, f"score must be one of -2..2, got {value!r}")
            value = int(value)
        elif isinstance(value, (int, float)) and not math.isfinite(value):
            raise LedgerWriteError(field, f"value is not finite ({value})")
        self._values[field] = value

    def set_many(self, values: Mapping[str, Any]) -> None:
        """Write several fields in order; stops at the first illegal write."""
        for field, value in values.items():
            self.set(field, value)

    def is_set(self, field: str) -> bool:
        return field in self._values

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> ScoreLedger:
        """Close the evaluation phase and return the immutable ledger.

        Raises:
            LedgerWriteError: If called twice.
            pydantic.ValidationError: If a mandatory baseline field was never set.
        """
        if self._frozen:
            raise LedgerWriteError("*", "ledger is already frozen")
        ledger = ScoreLedger(**self._values)
        self._frozen = True
        return ledger
