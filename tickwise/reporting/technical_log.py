"""
Technical log: one flat CSV row or JSON line per run.

Column order
------------
  ticker, date, close, prev_close, diff, diff_pct, macd, signal, rsi, score,
  <log columns of each successful extension, registry order>,
  final_score

Header and row come from the same ``log_columns()`` list, so they can never
drift apart.  ``final_score`` is the snapshot's ``total_score``; it is never
recomputed here.

Files land in ``<log_dir>/<TICKER>/<TICKER>.csv|json`` (or directly in
``log_dir`` when ``flat`` is set).  With ``append`` off the file is
overwritten; a CSV header row is written whenever the file starts empty.

A failed extension drops its columns, so an appended CSV row may not fit the
file's existing header.  In that case the old file is moved aside to
``<TICKER>.<n>.csv`` and a fresh file is started with this run's header.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from tickwise.config import TechnicalLogConfig
from tickwise.indicators.registry import IndicatorSpec, enabled_specs
from tickwise.models.ledger import SCORE_FIELDS, ScoreLedger
from tickwise.models.snapshot import FinalSnapshot
from tickwise.taxonomy.indicator_taxonomy import IndicatorKind

logger = logging.getLogger(__name__)

# (log column, ledger field) for the always-present baseline block
BASE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("ticker", "ticker"),
    ("date", "date"),
    ("close", "close"),
    ("prev_close", "previous_close"),
    ("diff", "price_diff"),
    ("diff_pct", "price_diff_percent"),
    ("macd", "macd"),
    ("signal", "signal"),
    ("rsi", "rsi"),
    ("score", "signal_score"),
)
FINAL_COLUMN = "final_score"

_FIELD_FORMATS: dict[str, Callable[[Any], str]] = {
    "ticker": str,
    "date": lambda d: d.isoformat(),
    "close": "{:.2f}".format,
    "previous_close": "{:.2f}".format,
    "price_diff": "{:+.2f}".format,
    "price_diff_percent": "{:+.2f}".format,
    "macd": "{:.4f}".format,
    "signal": "{:.4f}".format,
    "rsi": "{:.2f}".format,
}


def format_short_float(value: float) -> str:
    """``4.0`` → ``"4"``, ``2.5`` → ``"2.5"``: no padding, no trailing zeros."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_field(field: str, value: Any) -> str:
    if value is None:
        return ""
    if field in _FIELD_FORMATS:
        return _FIELD_FORMATS[field](value)
    if field in SCORE_FIELDS:
        return str(int(value))
    return f"{value:.2f}"


def log_columns(specs: Iterable[IndicatorSpec]) -> list[tuple[str, str]]:
    columns = list(BASE_COLUMNS)
    for spec in specs:
        columns.extend(spec.log_columns)
    return columns


def log_header(kinds: Iterable[IndicatorKind]) -> list[str]:
    """Column headers for a run with ``kinds`` enabled (all assumed successful)."""
    return [col for col, _ in log_columns(enabled_specs(kinds))] + [FINAL_COLUMN]


def _succeeded(ledger: ScoreLedger, specs: Iterable[IndicatorSpec]) -> list[IndicatorSpec]:
    return [s for s in specs if ledger.is_set(s.score_field)]


def log_fields(ledger: ScoreLedger, specs: Iterable[IndicatorSpec]) -> list[str]:
    """Column headers for this run: baseline, successful extensions, final score."""
    return [col for col, _ in log_columns(_succeeded(ledger, specs))] + [FINAL_COLUMN]


def csv_values(ledger: ScoreLedger, snapshot: FinalSnapshot, specs: Iterable[IndicatorSpec]) -> list[str]:
    values = [
        format_field(field, ledger.value(field))
        for _, field in log_columns(_succeeded(ledger, specs))
    ]
    values.append(format_short_float(snapshot.total_score))
    return values


def _csv_line(values: list[str]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="").writerow(values)
    return buf.getvalue()


def csv_row(ledger: ScoreLedger, snapshot: FinalSnapshot, specs: Iterable[IndicatorSpec]) -> str:
    return _csv_line(csv_values(ledger, snapshot, specs))


def json_record(ledger: ScoreLedger, snapshot: FinalSnapshot, specs: Iterable[IndicatorSpec]) -> dict[str, Any]:
    """Same columns as the CSV row, with raw (unformatted) values."""
    record: dict[str, Any] = {}
    for column, field in log_columns(_succeeded(ledger, specs)):
        value = ledger.value(field)
        record[column] = value.isoformat() if field == "date" else value
    record[FINAL_COLUMN] = snapshot.total_score
    return record


def log_path(ticker: str, config: TechnicalLogConfig) -> Path:
    base = Path(config.log_dir)
    directory = base if config.flat else base / ticker
    return directory / f"{ticker}.{config.format}"


def read_csv_header(path: Path) -> Optional[list[str]]:
    """First row of an existing CSV log, or None when the file is missing or empty."""
    if not path.exists() or path.stat().st_size == 0:
        return None
    with path.open(encoding="utf-8", newline="") as f:
        return next(csv.reader(f), None)


def _rotate(path: Path) -> Path:
    n = 1
    while (target := path.with_name(f"{path.stem}.{n}{path.suffix}")).exists():
        n += 1
    return path.rename(target)


def write_technical_log(
    ledger: ScoreLedger,
    snapshot: FinalSnapshot,
    specs: Iterable[IndicatorSpec],
    config: TechnicalLogConfig,
    echo: Optional[Callable[[str], None]] = None,
) -> Optional[Path]:
    """Write (or echo) the run's technical log line.

    Args:
        ledger:   Frozen ledger for the run.
        snapshot: The run's final snapshot.
        specs:    Enabled extension specs (failed ones are skipped).
        config:   Log settings.
        echo:     Line sink used instead of a file when ``config.stdout`` is set.

    Returns:
        The written path, or None when the line was echoed.
    """
    specs = list(specs)
    if config.format == "json":
        line = json.dumps(json_record(ledger, snapshot, specs), ensure_ascii=False)
    else:
        line = csv_row(ledger, snapshot, specs)

    if config.stdout:
        (echo or print)(line)
        return None

    path = log_path(ledger.ticker, config)
    path.parent.mkdir(parents=True, exist_ok=True)
    if config.format == "csv" and config.append:
        existing = read_csv_header(path)
        fields = log_fields(ledger, specs)
        if existing is not None and existing != fields:
            moved = _rotate(path)
            logger.warning(
                "Technical log columns changed (%d → %d); moved %s to %s and starting a new file.",
                len(existing), len(fields), path.name, moved.name,
            )
    mode = "a" if config.append else "w"
    needs_header = config.format == "csv" and (
        not config.append or not path.exists() or path.stat().st_size == 0
    )
    with path.open(mode, encoding="utf-8", newline="") as f:
        if needs_header:
            f.write(_csv_line(log_fields(ledger, specs)) + "\n")
        f.write(line + "\n")
    logger.info("Technical log written to %s", path)
    return path
