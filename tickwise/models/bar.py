"""
Daily bar model — one trading day of {date, high, low, close}.

Bars are frozen after construction; a run builds its series once from the
provider and every evaluator reads the same immutable list.

``validate_series()`` enforces the ordering contract evaluators rely on:
strictly ascending by date, no duplicate days.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Sequence

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Bar(BaseModel):
    """One daily price bar.

    Attributes:
        date:  Calendar day of the bar (UTC date for Yahoo timestamps).
        high:  Session high.
        low:   Session low.
        close: Session close.
    """

    model_config = ConfigDict(frozen=True)

    date: date
    high: float
    low: float
    close: float

    @field_validator("high", "low", "close")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Bar prices must be finite, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "Bar":
        if self.high < self.low:
            raise ValueError(
                f"Bar {self.date}: high ({self.high}) is below low ({self.low})."
            )
        return self

    @property
    def typical_price(self) -> float:
        """(high + low + close) / 3 — the VWAP proxy input."""
        return (self.high + self.low + self.close) / 3.0


def validate_series(bars: Sequence[Bar]) -> list[Bar]:
    """Return ``bars`` as a list after checking strict ascending date order.

    Raises:
        ValueError: If two bars share a date or a bar precedes its predecessor.
    """
    result = list(bars)
    for prev, cur in zip(result, result[1:]):
        if cur.date <= prev.date:
            raise ValueError(
                f"Bar series must be strictly ascending by date: "
                f"{cur.date} follows {prev.date}."
            )
    return result
