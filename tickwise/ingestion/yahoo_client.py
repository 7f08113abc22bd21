"""
Yahoo Finance chart API client (daily bars).

Endpoint:  GET https://query2.finance.yahoo.com/v8/finance/chart/{symbol}
           ?interval=1d&range=3mo

No API key.  Only these parts of the payload are read:
  chart.result[0].timestamp                      epoch seconds per bar
  chart.result[0].indicators.quote[0].high/low/close
  chart.result[0].meta.longName / shortName      display name (optional)

Entries with a null high, low or close (halted or partial sessions) are
skipped.  Bars are dated by the UTC calendar day of their timestamp and
returned sorted ascending.

Offline mode: ``get_fixture_bars()`` returns a deterministic 40-bar series
used by ``tickwise analyze --fixture`` and the test suite.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, ClassVar, Optional

from pydantic import ValidationError

from tickwise.config import ProviderConfig
from tickwise.models.bar import Bar

logger = logging.getLogger(__name__)

MIN_BARS = 2


class MarketDataError(RuntimeError):
    """Raised when the provider payload is malformed or has too few bars.

    Attributes:
        symbol: The symbol that was requested.
    """

    def __init__(self, symbol: str, reason: str) -> None:
        self.symbol = symbol
        super().__init__(f"Market data for '{symbol}' unusable: {reason}")


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass
class ChartResponse:
    """Parsed daily bars plus provider metadata."""

    symbol: str
    bars: list[Bar] = field(default_factory=list)
    name: Optional[str] = None
    currency: Optional[str] = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_fixture: bool = False


# ── Client ─────────────────────────────────────────────────────────────────────

class YahooChartClient:
    """Client for the public Yahoo Finance v8 chart endpoint.

    Usage::

        client = YahooChartClient(config.provider)
        response = client.fetch_daily_bars("AAPL")

    Offline::

        response = YahooChartClient.get_fixture_response("DEMO")
    """

    FIXTURE_START: ClassVar[date] = date(2025, 1, 6)
    FIXTURE_LENGTH: ClassVar[int] = 40

    def __init__(self, config: Optional[ProviderConfig] = None) -> None:
        self.config = config or ProviderConfig()

    def fetch_daily_bars(self, symbol: str) -> ChartResponse:
        """Fetch ~3 months of daily bars for ``symbol``.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
            httpx.RequestError:    On connection / timeout failures.
            MarketDataError:       If the payload is malformed or too short.
        """
        import httpx

        url = self.config.chart_url.format(symbol=symbol)
        logger.debug("GET %s", url)
        resp = httpx.get(
            url,
            params={"interval": self.config.interval, "range": self.config.range},
            headers={"User-Agent": self.config.user_agent, "Accept": "application/json"},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
        )
        resp.raise_for_status()
        return self._parse_chart_response(symbol, resp.json())

    def _parse_chart_response(self, symbol: str, payload: dict[str, Any]) -> ChartResponse:
        if not isinstance(payload, dict):
            raise MarketDataError(symbol, "response is not a JSON object")
        chart = payload.get("chart")
        if not isinstance(chart, dict):
            raise MarketDataError(symbol, "response has no 'chart' object")
        if chart.get("error"):
            raise MarketDataError(symbol, f"provider error: {chart['error']}")
        results = chart.get("result") or []
        if not results:
            raise MarketDataError(symbol, "chart.result is empty")

        r0 = results[0]
        timestamps = r0.get("timestamp") or []
        try:
            quote = r0["indicators"]["quote"][0]
            highs, lows, closes = quote["high"], quote["low"], quote["close"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MarketDataError(symbol, f"missing quote series ({exc})") from exc

        bars: list[Bar] = []
        skipped = 0
        for ts, high, low, close in zip(timestamps, highs, lows, closes):
            if ts is None or high is None or low is None or close is None:
                skipped += 1
                continue
            day = datetime.fromtimestamp(int(ts), tz=timezone.utc).date()
            try:
                bars.append(Bar(date=day, high=high, low=low, close=close))
            except ValidationError as exc:
                raise MarketDataError(symbol, f"invalid bar on {day}: {exc}") from exc
        if skipped:
            logger.debug("%s: skipped %d incomplete bars", symbol, skipped)

        bars.sort(key=lambda b: b.date)
        # Intraday refreshes can repeat the last session; keep the latest
        deduped: dict[date, Bar] = {b.date: b for b in bars}
        bars = list(deduped.values())

        if len(bars) < MIN_BARS:
            raise MarketDataError(symbol, f"only {len(bars)} usable bars (need {MIN_BARS})")

        meta = r0.get("meta") or {}
        return ChartResponse(
            symbol=symbol,
            bars=bars,
            name=meta.get("longName") or meta.get("shortName"),
            currency=meta.get("currency"),
        )

    # ── Fixture data ───────────────────────────────────────────────────────────

    @classmethod
    def get_fixture_bars(cls) -> list[Bar]:
        """Deterministic weekday series: a gentle uptrend with a 12-bar swing."""
        bars: list[Bar] = []
        day = cls.FIXTURE_START
        for i in range(cls.FIXTURE_LENGTH):
            while day.weekday() >= 5:
                day += timedelta(days=1)
            close = round(100.0 + 0.4 * i + 3.0 * math.sin(i * math.pi / 6.0), 2)
            bars.append(Bar(date=day, high=round(close + 1.25, 2), low=round(close - 1.1, 2), close=close))
            day += timedelta(days=1)
        return bars

    @classmethod
    def get_fixture_response(cls, symbol: str) -> ChartResponse:
        return ChartResponse(symbol=symbol, bars=cls.get_fixture_bars(), name=None, is_fixture=True)
