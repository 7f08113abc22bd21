"""
Text gauges for the final score.

  unipolar  ``BUY 100% [.........████████████████] 0% NO BUY``
            filled right to left, fill = (pct · width + 50) // 100
  bipolar   ``BUY +100% [.......█████|.........................] -100% SELL``
            centre marker at width // 2, positive ratios fill toward BUY
            (left), negative toward SELL (right)

Gauges are built as plain strings; ``paint_fill()`` colours only the fill
blocks so tests can compare the uncoloured layout.
"""

from __future__ import annotations

import typer

from tickwise.scoring.classify import color_for_score, round_half_away

FILL = "█"
EMPTY = "."
CENTER = "|"

UNIPOLAR_MIN_WIDTH = 10
BIPOLAR_MIN_WIDTH = 12

_TERMINAL_COLORS: dict[str, object] = {
    "green": typer.colors.GREEN,
    "yellow": typer.colors.YELLOW,
    "white": typer.colors.WHITE,
    "orange": (255, 165, 0),
    "red": typer.colors.RED,
}


def render_unipolar_gauge(percent: int, left_label: str, right_label: str, width: int = 25) -> str:
    w = max(width, UNIPOLAR_MIN_WIDTH)
    pct = min(max(percent, 0), 100)
    filled = (pct * w + 50) // 100
    return f"{left_label} [{EMPTY * (w - filled)}{FILL * filled}] {right_label}"


def bipolar_bar(score_ratio: float, width: int = 51) -> str:
    """The bracketed bar alone, without labels or colour."""
    w = max(width, BIPOLAR_MIN_WIDTH)
    mid = w // 2
    blocks = min(round_half_away(abs(score_ratio) * mid), mid)
    cells = [EMPTY] * w
    cells[mid] = CENTER
    if score_ratio > 0:
        for i in range(mid - blocks, mid):
            cells[i] = FILL
    elif score_ratio < 0:
        for i in range(mid + 1, min(mid + 1 + blocks, w)):
            cells[i] = FILL
    return "".join(cells)


def render_bipolar_gauge(score_ratio: float, width: int = 51, colorize: bool = True) -> str:
    bar = bipolar_bar(score_ratio, width)
    if colorize:
        bar = paint_fill(bar, color_for_score(score_ratio))
    return f"BUY +100% [{bar}] -100% SELL"


def paint_fill(gauge: str, color: str) -> str:
    """Colour every fill block in ``gauge``; unknown colours leave it unchanged."""
    fg = _TERMINAL_COLORS.get(color)
    if fg is None:
        return gauge
    return gauge.replace(FILL, typer.style(FILL, fg=fg))
