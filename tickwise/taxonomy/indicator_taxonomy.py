"""
Technical indicator taxonomy.

Hierarchy: ``IndicatorCategory`` (report section) → ``IndicatorKind`` (one
extension evaluator).  The baseline MACD + RSI evaluator is always on and is
not part of this taxonomy.

The ``CATEGORY_INDICATOR_MAP`` dict is the canonical integrity contract:
  - Every ``IndicatorCategory`` must have an entry.
  - Every ``IndicatorKind`` must appear in exactly one category's list.

The contract is checked once at import time (``_check_category_map``) so a
new indicator without a category fails loudly before any run starts, and
again by ``tests/test_taxonomy/test_indicator_taxonomy.py``.

This module has NO imports from any other ``tickwise`` package.
"""

from enum import StrEnum


class IndicatorKind(StrEnum):
    """Optional extension indicator.  Declaration order is the log field order."""

    EMA = "ema"
    """Exponential moving averages, 5 vs 20 periods."""

    SMA = "sma"
    """Simple moving averages, 5 vs 20 periods."""

    ROC = "roc"
    """10-period rate of change in percent."""

    ADX = "adx"
    """Single-window directional movement index over 14 periods."""

    STOCHASTICS = "stochastics"
    """Stochastic oscillator %K(14) with %D as the mean of the last three %K."""

    BOLLINGER = "bollinger"
    """Bollinger Bands, 20 periods at 2 standard deviations."""

    FIBONACCI = "fibonacci"
    """Retracement levels over the whole fetched window."""

    VWAP = "vwap"
    """Daily VWAP proxy: 14-period SMA of the typical price (no volume)."""

    ICHIMOKU = "ichimoku"
    """Tenkan-sen (9) vs kijun-sen (26)."""


class IndicatorCategory(StrEnum):
    """Report section an indicator is grouped under.  Declaration order is display order."""

    TREND = "trend"
    OSCILLATOR = "oscillator"
    VOLATILITY = "volatility"
    SUPPORT_RESISTANCE = "support"


# ── Integrity contract ────────────────────────────────────────────────────────

CATEGORY_INDICATOR_MAP: dict[IndicatorCategory, list[IndicatorKind]] = {
    IndicatorCategory.TREND: [
        IndicatorKind.EMA,
        IndicatorKind.SMA,
        IndicatorKind.ROC,
        IndicatorKind.ADX,
        IndicatorKind.VWAP,
        IndicatorKind.ICHIMOKU,
    ],
    IndicatorCategory.OSCILLATOR: [
        IndicatorKind.STOCHASTICS,
    ],
    IndicatorCategory.VOLATILITY: [
        IndicatorKind.BOLLINGER,
    ],
    IndicatorCategory.SUPPORT_RESISTANCE: [
        IndicatorKind.FIBONACCI,
    ],
}

CATEGORY_HEADERS: dict[IndicatorCategory, str] = {
    IndicatorCategory.TREND:              "--- Trend indicators ---",
    IndicatorCategory.OSCILLATOR:         "--- Oscillators ---",
    IndicatorCategory.VOLATILITY:         "--- Volatility indicators ---",
    IndicatorCategory.SUPPORT_RESISTANCE: "--- Support / resistance indicators ---",
}


def _check_category_map() -> dict[IndicatorKind, IndicatorCategory]:
    """Verify the map is exhaustive and build the reverse lookup.

    Raises:
        RuntimeError: If a category is missing, a kind is unmapped, or a kind
            appears under more than one category.
    """
    missing_categories = set(IndicatorCategory) - set(CATEGORY_INDICATOR_MAP)
    if missing_categories:
        raise RuntimeError(
            f"CATEGORY_INDICATOR_MAP is missing categories: {sorted(missing_categories)}"
        )

    reverse: dict[IndicatorKind, IndicatorCategory] = {}
    for category, kinds in CATEGORY_INDICATOR_MAP.items():
        for kind in kinds:
            if kind in reverse:
                raise RuntimeError(
                    f"IndicatorKind.{kind.name} is mapped to both "
                    f"'{reverse[kind]}' and '{category}'."
                )
            reverse[kind] = category

    unmapped = set(IndicatorKind) - set(reverse)
    if unmapped:
        raise RuntimeError(f"IndicatorKind values without a category: {sorted(unmapped)}")
    return reverse


_KIND_TO_CATEGORY = _check_category_map()


def category_of(kind: IndicatorKind) -> IndicatorCategory:
    """Return the single category ``kind`` belongs to."""
    return _KIND_TO_CATEGORY[kind]
