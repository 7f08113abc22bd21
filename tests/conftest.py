"""
Shared pytest fixtures for the tickwise test suite.

Provides:
  - ``clean_env`` (autouse): removes API keys and ``TICKWISE_*`` variables so
    no test reaches a real service or picks up a developer's settings.
  - ``make_bars``: factory turning a close list into an ascending ``Bar`` list.
  - ``fixture_bars``: the deterministic 40-bar offline series.
  - ``default_config``: ``AppConfig()`` with every default.
  - ``make_ledger``: factory for a frozen ledger with fixed baseline values.
"""

from __future__ import annotations

import os
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

import pytest

from tickwise.config import AppConfig
from tickwise.ingestion.yahoo_client import YahooChartClient
from tickwise.models.bar import Bar
from tickwise.models.ledger import LedgerBuilder, ScoreLedger

BarFactory = Callable[..., list[Bar]]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("TICKWISE_") or key in ("OPENAI_API_KEY", "BRAVE_API_KEY"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_bars() -> BarFactory:
    """Build consecutive daily bars from closes.

    ``high = close + spread`` and ``low = close - spread`` unless explicit
    ``highs`` / ``lows`` are passed.
    """

    def _make(
        closes: Sequence[float],
        spread: float = 1.0,
        highs: Optional[Sequence[float]] = None,
        lows: Optional[Sequence[float]] = None,
        start: date = date(2025, 1, 1),
    ) -> list[Bar]:
        bars = []
        for i, close in enumerate(closes):
            high = highs[i] if highs is not None else close + spread
            low = lows[i] if lows is not None else close - spread
            bars.append(Bar(date=start + timedelta(days=i), high=high, low=low, close=close))
        return bars

    return _make


@pytest.fixture
def fixture_bars() -> list[Bar]:
    return YahooChartClient.get_fixture_bars()


BASELINE_VALUES: dict[str, float] = {
    "close": 105.0,
    "previous_close": 100.0,
    "price_diff": 5.0,
    "price_diff_percent": 5.0,
    "rsi": 55.0,
    "macd": 1.2,
    "signal": 0.8,
    "prev_macd": 1.0,
    "prev_signal": 0.7,
}


@pytest.fixture
def make_ledger() -> Callable[..., ScoreLedger]:
    """Build a frozen ledger from fixed baseline values plus keyword fields.

    Keyword fields may also replace a baseline value::

        make_ledger(signal_score=2, macd=-0.4, ema_short=22.5, ema_long=20.0, ema_score=2)
    """

    def _make(
        signal_score: int = 0,
        ticker: str = "DEMO",
        name: str = "Demo Corp",
        as_of: date = date(2025, 3, 3),
        **fields,
    ) -> ScoreLedger:
        builder = LedgerBuilder(ticker=ticker, name=name, as_of=as_of)
        builder.set_many({**BASELINE_VALUES, "signal_score": signal_score, **fields})
        return builder.freeze()

    return _make


@pytest.fixture
def default_config() -> AppConfig:
    return AppConfig()
