"""
Score classification: the ten-band ratio table and the stance verdicts.

Holder view
-----------
``classify_score(ratio)`` maps the snapshot ratio (-1..1) to one of ten bands
in steps of 0.2.  Each band carries a label and a colour; the colour also
paints the bipolar gauge so the verdict and the bar always agree.

Buyer / seller view
-------------------
``buyer_percent()`` turns the snapshot into a 0..100 "how much to buy"
percentage; the seller percentage is its complement.  Five percentage bands
(≥90, 61-89, 40-60, 20-39, <20) each have a marker and wording per stance.

All percentages round half away from zero, never banker's rounding.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tickwise.models.snapshot import FinalSnapshot
from tickwise.taxonomy.stance_taxonomy import Stance

MARKERS: dict[str, str] = {
    "green": "🟢",
    "yellow": "🟡",
    "white": "⚪",
    "orange": "🟠",
    "red": "🔴",
}


@dataclass(frozen=True)
class ScoreBand:
    """One row of the ratio classification table."""

    lower: float
    label: str
    color: str

    @property
    def marker(self) -> str:
        return MARKERS[self.color]

    @property
    def caption(self) -> str:
        """Marker plus label, e.g. ``"🟢 strong buy"``."""
        return f"{self.marker} {self.label}"


# Ordered from the top band down; the first band whose lower bound the ratio
# reaches wins.  The last band catches everything below -0.8.
SCORE_BANDS: tuple[ScoreBand, ...] = (
    ScoreBand(0.8, "strong buy", "green"),
    ScoreBand(0.6, "buy dominant", "green"),
    ScoreBand(0.4, "leaning buy", "green"),
    ScoreBand(0.2, "slightly buy", "yellow"),
    ScoreBand(0.0, "buy bias", "yellow"),
    ScoreBand(-0.2, "wait and see (neutral)", "white"),
    ScoreBand(-0.4, "sell bias", "orange"),
    ScoreBand(-0.6, "slightly sell", "orange"),
    ScoreBand(-0.8, "leaning sell", "red"),
    ScoreBand(-math.inf, "strong sell", "red"),
)


def score_band(ratio: float) -> ScoreBand:
    for band in SCORE_BANDS:
        if ratio >= band.lower:
            return band
    # NaN compares False against every bound
    return SCORE_BANDS[-1]


def classify_score(ratio: float) -> str:
    """Marker and label of the band ``ratio`` falls in."""
    return score_band(ratio).caption


def color_for_score(ratio: float) -> str:
    return score_band(ratio).color


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 → 3, -2.5 → -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


# ── Stance percentages ────────────────────────────────────────────────────────


def buyer_percent(snapshot: FinalSnapshot) -> int:
    """Position of total_score within [-W, +W] as 0..100; 50 without weight."""
    if not snapshot.has_weight:
        return 50
    w = snapshot.weight_abs
    clamped = min(max(w + snapshot.total_score, 0.0), 2.0 * w)
    return min(max(round_half_away(clamped / (2.0 * w) * 100.0), 0), 100)


def seller_percent(snapshot: FinalSnapshot) -> int:
    return 100 - buyer_percent(snapshot)


def holder_percent(snapshot: FinalSnapshot) -> int:
    """Signed ratio as a whole percentage; 0 without weight."""
    if not snapshot.has_weight:
        return 0
    return round_half_away(snapshot.score_ratio * 100.0)


@dataclass(frozen=True)
class StanceVerdict:
    """Verdict for the buyer or seller view.

    Attributes:
        percent: The stance's own percentage (buyer % or seller %).
        color:   Band colour, shared with the unipolar gauge fill.
        text:    Action wording, e.g. ``"buy aggressively"``.
    """

    percent: int
    color: str
    text: str

    @property
    def marker(self) -> str:
        return MARKERS[self.color]


_ACTION_TEXT: dict[Stance, tuple[str, str, str, str, str]] = {
    Stance.BUYER: ("buy aggressively", "buy", "neutral", "buying not recommended", "do not buy"),
    Stance.SELLER: ("sell aggressively", "sell", "neutral", "selling not recommended", "do not sell"),
}


def stance_verdict(snapshot: FinalSnapshot, stance: Stance) -> StanceVerdict:
    """Band the buyer or seller percentage.

    Raises:
        ValueError: For ``Stance.HOLDER``, which uses ``classify_score``.
    """
    if stance not in _ACTION_TEXT:
        raise ValueError(f"No unipolar verdict for stance '{stance}'.")
    pct = buyer_percent(snapshot) if stance is Stance.BUYER else seller_percent(snapshot)
    strong, act, neutral, discourage, refuse = _ACTION_TEXT[stance]
    if pct >= 90:
        return StanceVerdict(pct, "green", strong)
    if pct >= 61:
        return StanceVerdict(pct, "yellow", act)
    if pct >= 40:
        return StanceVerdict(pct, "white", neutral)
    if pct >= 20:
        return StanceVerdict(pct, "orange", discourage)
    return StanceVerdict(pct, "red", refuse)
