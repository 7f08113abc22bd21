"""
CSV import parser for daily bars (``tickwise analyze --bars-csv``).

Format: comma delimited, header row, one bar per line::

    date,high,low,close
    2025-01-06,101.25,98.90,100.00

Column order is free; extra columns are ignored.  Rows may be in any order:
they are sorted ascending by date before being returned.
"""

from __future__ import annotations

import csv
import logging
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from tickwise.models.bar import Bar, validate_series

logger = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = frozenset({"date", "high", "low", "close"})


def parse_bar_csv(path: Path) -> list[Bar]:
    """Parse a bar CSV into validated :class:`Bar` objects, ascending by date.

    All rows are validated before any are returned.  If **any** row fails, a
    single :class:`ValueError` lists the first 10 failures.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On missing columns, bad rows, or duplicate dates.
    """
    if not path.exists():
        raise FileNotFoundError(f"Bar CSV file not found: {path}")

    with open(path, encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")
        actual_cols = {c.strip().lower() for c in reader.fieldnames}
        missing = REQUIRED_CSV_COLUMNS - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )
        rows = [{k.strip().lower(): (v or "").strip() for k, v in row.items() if k} for row in reader]

    bars: list[Bar] = []
    errors: list[tuple[int, str]] = []
    for i, row in enumerate(rows):
        line_no = i + 2
        try:
            bars.append(
                Bar(
                    date=date.fromisoformat(row["date"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                )
            )
        except (ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc).splitlines()[0]))

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:max_shown])
        suffix = f"\n  … and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}")

    bars.sort(key=lambda b: b.date)
    validate_series(bars)
    logger.info("Parsed %d bars from %s", len(bars), path.name)
    return bars
