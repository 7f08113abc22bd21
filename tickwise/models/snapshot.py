"""
Final score snapshot — the single aggregate computed once per run.

Produced by ``tickwise.scoring.aggregate.compute_snapshot()`` right after the
ledger is frozen and handed, unchanged, to every consumer.  Nothing
downstream recomputes these numbers.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, model_validator


class FinalSnapshot(BaseModel):
    """Weighted aggregate of the baseline and enabled extension scores.

    Attributes:
        total_score:  Σ(score × weight) over baseline + successful extensions.
        total_weight: 2 × Σ(weight) over baseline + every *enabled* extension.
        score_ratio:  total_score / total_weight, or 0.0 when the weight is
                      zero or non-finite.
    """

    model_config = ConfigDict(frozen=True)

    total_score: float
    total_weight: float
    score_ratio: float

    @model_validator(mode="after")
    def validate_ratio(self) -> "FinalSnapshot":
        if not math.isfinite(self.score_ratio):
            raise ValueError(f"score_ratio must be finite, got {self.score_ratio}.")
        return self

    @property
    def has_weight(self) -> bool:
        """True when the weight is finite and non-zero (ratio is meaningful)."""
        return math.isfinite(self.total_weight) and abs(self.total_weight) > 1e-12

    @property
    def weight_abs(self) -> float:
        """|total_weight|, or 0.0 when it is non-finite."""
        return abs(self.total_weight) if math.isfinite(self.total_weight) else 0.0
