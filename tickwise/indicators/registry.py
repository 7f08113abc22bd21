"""
Indicator registry: one entry per extension indicator.

This module is the single source of truth for everything that varies per
indicator.  Every phase iterates ``INDICATOR_REGISTRY`` instead of branching
on the indicator kind:

  evaluation     ``spec.evaluator(bars)`` → ``IndicatorReading``
  aggregation    ``spec.weight(weights)`` × ledger score
  rendering      ``spec.renderer(ledger, weight, config)`` under ``spec.category``
  serialisation  ``spec.log_columns`` → (column header, ledger field)

Order here is evaluation order and technical-log column order.  Report
sections are grouped by category (``taxonomy.CATEGORY_INDICATOR_MAP``) and
keep registry order inside each category.

Adding an indicator: add the ``IndicatorKind``, map it to a category, add its
ledger fields, its weight, and one ``IndicatorSpec`` row here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from tickwise.config import AppConfig, WeightConfig
from tickwise.indicators import oscillator, support, trend, volatility
from tickwise.indicators.reading import IndicatorReading
from tickwise.models.bar import Bar
from tickwise.models.ledger import LEDGER_FIELDS, SCORE_FIELDS, ScoreLedger
from tickwise.reporting import narrative
from tickwise.taxonomy.indicator_taxonomy import IndicatorCategory, IndicatorKind, category_of

Evaluator = Callable[[Sequence[Bar]], IndicatorReading]
Renderer = Callable[[ScoreLedger, float, AppConfig], list[str]]


@dataclass(frozen=True)
class IndicatorSpec:
    """Everything the pipeline needs to know about one extension indicator.

    Attributes:
        kind:        Indicator identity.
        label:       Display name used in warnings and the report.
        min_bars:    Shortest bar series the evaluator accepts.
        evaluator:   Pure function of the bar series.
        renderer:    Narrative lines from the frozen ledger.
        value_fields: Raw-value ledger fields, in log order.
        score_field: The ledger field holding the five-level score.
        column_names: Optional ``{ledger_field: log_column}`` renames for the
                     technical log header.
    """

    kind: IndicatorKind
    label: str
    min_bars: int
    evaluator: Evaluator
    renderer: Renderer
    value_fields: tuple[str, ...]
    score_field: str
    column_names: tuple[tuple[str, str], ...] = ()

    @property
    def category(self) -> IndicatorCategory:
        return category_of(self.kind)

    @property
    def fields(self) -> tuple[str, ...]:
        """All ledger fields this indicator writes, score last."""
        return self.value_fields + (self.score_field,)

    @property
    def log_columns(self) -> tuple[tuple[str, str], ...]:
        """(log column header, ledger field) pairs in log order."""
        renames = dict(self.column_names)
        return tuple((renames.get(f, f), f) for f in self.fields)

    def weight(self, weights: WeightConfig) -> float:
        return weights.for_kind(self.kind)


# ── Registry ──────────────────────────────────────────────────────────────────

INDICATOR_REGISTRY: tuple[IndicatorSpec, ...] = (
    IndicatorSpec(
        IndicatorKind.EMA, "EMA", trend.EMA_LONG,
        trend.evaluate_ema, narrative.render_ema,
        ("ema_short", "ema_long"), "ema_score",
    ),
    IndicatorSpec(
        IndicatorKind.SMA, "SMA", trend.SMA_LONG,
        trend.evaluate_sma, narrative.render_sma,
        ("sma_short", "sma_long"), "sma_score",
    ),
    IndicatorSpec(
        IndicatorKind.ROC, "ROC", trend.ROC_PERIOD + 1,
        trend.evaluate_roc, narrative.render_roc,
        ("roc",), "roc_score",
    ),
    IndicatorSpec(
        IndicatorKind.ADX, "ADX", trend.ADX_PERIOD + 1,
        trend.evaluate_adx, narrative.render_adx,
        ("adx",), "adx_score",
    ),
    IndicatorSpec(
        IndicatorKind.STOCHASTICS, "Stochastics", oscillator.STOCH_PERIOD,
        oscillator.evaluate_stochastics, narrative.render_stochastics,
        ("stoch_k", "stoch_d"), "stoch_score",
    ),
    IndicatorSpec(
        IndicatorKind.BOLLINGER, "Bollinger Bands", volatility.BB_PERIOD,
        volatility.evaluate_bollinger, narrative.render_bollinger,
        ("bb_upper", "bb_lower", "bb_percent_b", "bb_bandwidth"), "bb_score",
        column_names=(("bb_percent_b", "percent_b"), ("bb_bandwidth", "bandwidth_%")),
    ),
    IndicatorSpec(
        IndicatorKind.FIBONACCI, "Fibonacci", support.FIB_MIN_BARS,
        support.evaluate_fibonacci, narrative.render_fibonacci,
        ("fibo_38_2", "fibo_50_0", "fibo_61_8"), "fibo_score",
    ),
    IndicatorSpec(
        IndicatorKind.VWAP, "VWAP", trend.VWAP_PERIOD,
        trend.evaluate_vwap, narrative.render_vwap,
        ("vwap",), "vwap_score",
    ),
    IndicatorSpec(
        IndicatorKind.ICHIMOKU, "Ichimoku", trend.KIJUN_PERIOD,
        trend.evaluate_ichimoku, narrative.render_ichimoku,
        ("tenkan", "kijun"), "ichimoku_score",
    ),
)

_BY_KIND: dict[IndicatorKind, IndicatorSpec] = {spec.kind: spec for spec in INDICATOR_REGISTRY}


def _check_registry() -> None:
    """Every kind registered exactly once and every field known to the ledger."""
    registered = [spec.kind for spec in INDICATOR_REGISTRY]
    if sorted(registered) != sorted(IndicatorKind) or len(set(registered)) != len(registered):
        raise RuntimeError(f"INDICATOR_REGISTRY must list each IndicatorKind once, got {registered}.")
    for spec in INDICATOR_REGISTRY:
        unknown = set(spec.fields) - LEDGER_FIELDS
        if unknown:
            raise RuntimeError(f"{spec.label}: unknown ledger fields {sorted(unknown)}.")
        if spec.score_field not in SCORE_FIELDS:
            raise RuntimeError(f"{spec.label}: '{spec.score_field}' is not a score field.")


_check_registry()


def get_spec(kind: IndicatorKind) -> IndicatorSpec:
    return _BY_KIND[kind]


def enabled_specs(kinds: Iterable[IndicatorKind]) -> list[IndicatorSpec]:
    """Specs for ``kinds`` in registry order, regardless of input order."""
    wanted = set(kinds)
    return [spec for spec in INDICATOR_REGISTRY if spec.kind in wanted]
