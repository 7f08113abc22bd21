"""
Weighted aggregation of the baseline and extension scores.

  total_score  = baseline_score · weight_basic + Σ score_i · weight_i
  total_weight = 2 · (weight_basic + Σ weight_i over every *enabled* extension)
  score_ratio  = total_score / total_weight  (0 when the weight is 0 or not finite)

An enabled extension whose evaluator failed has no ledger score and adds 0 to
``total_score``, but its weight still counts in ``total_weight``.  The
snapshot is computed once per run by ``compute_snapshot()``; consumers read
the returned ``FinalSnapshot`` and never redo this sum.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from tickwise.config import WeightConfig
from tickwise.indicators.registry import IndicatorSpec
from tickwise.models.ledger import ScoreLedger
from tickwise.models.snapshot import FinalSnapshot

logger = logging.getLogger(__name__)


def aggregate_scores(
    baseline_score: int,
    weight_basic: float,
    contributions: Iterable[tuple[Optional[int], float]],
) -> FinalSnapshot:
    """Fold (score, weight) pairs into a ``FinalSnapshot``.

    Args:
        baseline_score: The baseline MACD + RSI score.
        weight_basic:   Weight of the baseline.
        contributions:  One (score, weight) pair per enabled extension; a
                        ``None`` score marks a failed evaluator.
    """
    total_score = baseline_score * weight_basic
    weight_sum = weight_basic
    for score, weight in contributions:
        weight_sum += weight
        if score is not None:
            total_score += score * weight
    total_weight = 2.0 * weight_sum

    if total_weight == 0 or not math.isfinite(total_weight):
        logger.debug("Total weight is %s; score ratio set to 0.", total_weight)
        ratio = 0.0
    else:
        ratio = total_score / total_weight
    return FinalSnapshot(total_score=total_score, total_weight=total_weight, score_ratio=ratio)


def compute_snapshot(
    ledger: ScoreLedger,
    enabled: Iterable[IndicatorSpec],
    weights: WeightConfig,
) -> FinalSnapshot:
    """Build the run's single ``FinalSnapshot`` from the frozen ledger."""
    return aggregate_scores(
        ledger.signal_score,
        weights.basic,
        ((ledger.value(spec.score_field), spec.weight(weights)) for spec in enabled),
    )
