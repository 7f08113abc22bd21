"""
Evaluation run: bars in, frozen ledger and final snapshot out.

Phases (strictly sequential, single ledger per run):
  1. Validate the bar series ordering.
  2. Baseline MACD + RSI — any failure raises ``BaselineError`` and ends the run.
  3. Each enabled extension in registry order.  A short series, an overflow
     in the window maths or a non-finite value is logged as a warning and
     recorded in ``EvaluationResult.failures``.  Readings are checked before
     any ledger write, so a failed indicator leaves all of its fields unset
     and the run continues.
  4. Freeze the ledger.
  5. Compute the ``FinalSnapshot`` once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from tickwise.config import AppConfig
from tickwise.indicators.baseline import evaluate_baseline
from tickwise.indicators.errors import (
    BaselineError,
    InsufficientDataError,
    NonFiniteReadingError,
)
from tickwise.indicators.reading import check_finite
from tickwise.indicators.registry import IndicatorSpec, enabled_specs
from tickwise.models.bar import Bar, validate_series
from tickwise.models.ledger import LedgerBuilder, ScoreLedger
from tickwise.models.snapshot import FinalSnapshot
from tickwise.scoring.aggregate import compute_snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """Everything downstream consumers read for one run.

    Attributes:
        ledger:    Frozen per-run values and scores.
        snapshot:  The single weighted aggregate.
        enabled:   Specs of every enabled extension, in registry order.
        failures:  Label → reason for enabled extensions that could not be
                   computed.
    """

    ledger: ScoreLedger
    snapshot: FinalSnapshot
    enabled: tuple[IndicatorSpec, ...]
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> tuple[IndicatorSpec, ...]:
        """Enabled extensions whose score made it into the ledger."""
        return tuple(s for s in self.enabled if self.ledger.is_set(s.score_field))


def run_evaluation(
    bars: Sequence[Bar],
    ticker: str,
    name: str,
    config: AppConfig,
) -> EvaluationResult:
    """Evaluate every configured indicator for one ticker.

    Args:
        bars:   Daily bars, ascending by date.
        ticker: Normalised ticker symbol.
        name:   Display name for the report.
        config: Application config (thresholds, enabled indicators, weights).

    Returns:
        ``EvaluationResult`` with the frozen ledger and snapshot.

    Raises:
        BaselineError: If the baseline cannot be computed or the bar series
            is out of order.
    """
    try:
        series = validate_series(bars)
    except ValueError as exc:
        raise BaselineError(str(exc)) from exc
    if not series:
        raise BaselineError("No bars to evaluate.")

    baseline = evaluate_baseline(series, config.thresholds)
    builder = LedgerBuilder(ticker=ticker, name=name, as_of=series[-1].date)
    builder.set_many(baseline.ledger_values())

    specs = tuple(enabled_specs(config.indicators.enabled))
    failures: dict[str, str] = {}
    for spec in specs:
        try:
            reading = check_finite(spec.evaluator(series))
        except (InsufficientDataError, NonFiniteReadingError, ArithmeticError) as exc:
            logger.warning("Skipping %s: %s", spec.label, exc)
            failures[spec.label] = str(exc)
            continue
        builder.set_many(reading.values)
        builder.set(spec.score_field, reading.score)
        logger.debug("%s: %s score=%d", spec.label, reading.values, reading.score)

    ledger = builder.freeze()
    snapshot = compute_snapshot(ledger, specs, config.weights)
    logger.info(
        "Evaluated %s on %s: score %.1f / ±%.1f (ratio %+.3f), %d of %d extensions",
        ticker, ledger.date, snapshot.total_score, snapshot.total_weight,
        snapshot.score_ratio, len(specs) - len(failures), len(specs),
    )
    return EvaluationResult(ledger=ledger, snapshot=snapshot, enabled=specs, failures=failures)
