"""
Logging setup for tickwise.

``configure_logging(config)`` is called once per CLI command, after the
config is loaded.  Library modules only ever use ``logging.getLogger(__name__)``.

Records go to stderr (plus ``[logging] log_file`` when set).  stdout carries
the report and ``--stdout`` technical-log rows, so a piped run stays clean.

  WARNING  skipped extensions, sanitised config values, skipped news / LLM
  INFO     run summary, files written
  DEBUG    degenerate-denominator fallbacks, per-indicator raw values

``json_format = true`` switches both handlers to one JSON object per line::

    {"ts": "2025-03-03T09:30:00Z", "level": "WARNING", "logger": "tickwise.scoring.engine", "msg": "Skipping EMA: ..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tickwise.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
QUIET_LOGGERS = ("httpx", "httpcore")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        # news titles and the JP query keep their characters
        return json.dumps(payload, ensure_ascii=False)


def resolve_level(config: "LoggingConfig", debug: bool = False) -> int:
    """``--debug`` wins; otherwise the configured level name (INFO if unknown)."""
    if debug:
        return logging.DEBUG
    return getattr(logging, config.level.upper(), logging.INFO)


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Replace the root logger's handlers for this run.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
        debug:  Force DEBUG level regardless of ``config.level``.
    """
    level = resolve_level(config, debug)
    formatter = (
        _JsonFormatter() if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs every request at INFO
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
