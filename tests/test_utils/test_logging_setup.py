"""
Tests for tickwise.utils.logging — root logger configuration.

What we test:
  - Level resolution: configured name, --debug override.
  - Plain records go to stderr, never stdout.
  - JSON lines keep non-ASCII text and carry exceptions.
  - Optional log file (parent directories created).
  - httpx / httpcore are held at WARNING.
"""

from __future__ import annotations

import json
import logging

import pytest

from tickwise.config import LoggingConfig
from tickwise.utils.logging import QUIET_LOGGERS, configure_logging, resolve_level


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in quiet.items():
        logging.getLogger(name).setLevel(lvl)


class TestResolveLevel:
    def test_configured(self):
        assert resolve_level(LoggingConfig(level="warning")) == logging.WARNING

    def test_debug_flag_wins(self):
        assert resolve_level(LoggingConfig(level="ERROR"), debug=True) == logging.DEBUG


class TestConfigureLogging:
    def test_plain_to_stderr(self, capsys):
        configure_logging(LoggingConfig(level="INFO"))
        logging.getLogger("tickwise.test").info("run summary")
        logging.getLogger("tickwise.test").debug("hidden")
        out, err = capsys.readouterr()
        assert out == ""
        assert "[INFO] tickwise.test: run summary" in err
        assert "hidden" not in err

    def test_json_lines(self, capsys):
        configure_logging(LoggingConfig(json_format=True))
        logging.getLogger("tickwise.test").warning("ニュース %s", "取得失敗")
        record = json.loads(capsys.readouterr().err.strip())
        assert record["level"] == "WARNING"
        assert record["logger"] == "tickwise.test"
        assert record["msg"] == "ニュース 取得失敗"
        assert record["ts"].endswith("Z")

    def test_json_exception(self, capsys):
        configure_logging(LoggingConfig(json_format=True))
        try:
            raise ValueError("bad bar")
        except ValueError:
            logging.getLogger("tickwise.test").exception("failed")
        record = json.loads(capsys.readouterr().err.strip())
        assert "ValueError: bad bar" in record["exc"]

    def test_log_file(self, tmp_path):
        path = tmp_path / "logs" / "run.log"
        configure_logging(LoggingConfig(log_file=str(path)), debug=True)
        logging.getLogger("tickwise.test").debug("per-indicator values")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "per-indicator values" in path.read_text(encoding="utf-8")

    def test_http_loggers_quiet(self):
        configure_logging(LoggingConfig(level="DEBUG"))
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
