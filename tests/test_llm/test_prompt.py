"""
Tests for tickwise.llm.prompt — LLM prompt composition.

What we test:
  - Stance intro for buyer / seller, none for holder.
  - Identity, price and score lines carry no gauge or colour.
  - News block variants: disabled, missing key, failed, empty, articles.
  - Task limits, negative-MACD note and the extra note.
  - save_prompt writes the text.
"""

from __future__ import annotations

from tickwise.config import (
    AppConfig,
    LLMConfig,
    NewsConfig,
    PresentationConfig,
    ThresholdConfig,
)
from tickwise.ingestion.brave_news_client import (
    FETCH_FAILED_NOTE,
    MISSING_KEY_NOTE,
    NO_ARTICLES_NOTE,
    Article,
)
from tickwise.llm.prompt import compose_prompt_lines, save_prompt
from tickwise.models.snapshot import FinalSnapshot
from tickwise.reporting.gauges import FILL

SNAP = FinalSnapshot(total_score=4.0, total_weight=4.0, score_ratio=1.0)
NARRATIVE = ["Baseline technical analysis (MACD and RSI)", "📊 RSI: 55.00"]


def _prompt(ledger, config, news=None) -> list[str]:
    return compose_prompt_lines(ledger, SNAP, NARRATIVE, config, news)


class TestPromptLayout:
    def test_holder_has_no_intro(self, make_ledger, default_config):
        lines = _prompt(make_ledger(), default_config)
        assert lines[0] == "📊 Name: Demo Corp (DEMO)"
        assert "📅 Date: 2025-03-03" in lines
        assert "📊 Change: +5.00 (+5.00%)" in lines

    def test_buyer_intro(self, make_ledger):
        config = AppConfig(presentation=PresentationConfig(stance="buyer"))
        assert "buyer's point of view" in _prompt(make_ledger(), config)[0]

    def test_seller_intro(self, make_ledger):
        config = AppConfig(presentation=PresentationConfig(stance="seller"))
        assert "seller's point of view" in _prompt(make_ledger(), config)[0]

    def test_narrative_and_score_without_gauge(self, make_ledger, default_config):
        lines = _prompt(make_ledger(), default_config)
        assert NARRATIVE[1] in lines
        assert "→ verdict: 🟢 strong buy score ratio +100%" in lines
        text = "\n".join(lines)
        assert FILL not in text
        assert "\x1b[" not in text

    def test_task_limits(self, make_ledger):
        config = AppConfig(llm=LLMConfig(max_note_length=120, max_review_length=800))
        lines = _prompt(make_ledger(), config)
        assert "1. Points investors should watch (within 120 characters)" in lines
        assert "5. Overall review (within 800 characters)" in lines

    def test_macd_minus_note(self, make_ledger):
        config = AppConfig(thresholds=ThresholdConfig(macd_minus_ok=True))
        lines = _prompt(make_ledger(), config)
        assert any("MACD is negative" in line for line in lines)
        assert any(line.startswith("* Negative-MACD buy signals: enabled") for line in lines)

    def test_extra_note_last(self, make_ledger):
        config = AppConfig(llm=LLMConfig(extra_note="Focus on   dividends"))
        assert _prompt(make_ledger(), config)[-1] == "📝 Extra note: Focus on dividends"


class TestNewsBlock:
    def test_disabled(self, make_ledger):
        config = AppConfig(news=NewsConfig(enabled=False))
        text = "\n".join(_prompt(make_ledger(), config))
        assert MISSING_KEY_NOTE not in text
        assert "No price-relevant news to assess" in text

    def test_missing_key(self, make_ledger, default_config):
        lines = _prompt(make_ledger(), default_config)
        assert MISSING_KEY_NOTE in lines
        assert any("'News search skipped'" in line for line in lines)

    def test_fetch_failed(self, make_ledger):
        config = AppConfig(news=NewsConfig(brave_api_key="k"))
        lines = _prompt(make_ledger(), config, news=None)
        assert FETCH_FAILED_NOTE in lines

    def test_no_articles(self, make_ledger):
        config = AppConfig(news=NewsConfig(brave_api_key="k"))
        assert NO_ARTICLES_NOTE in _prompt(make_ledger(), config, news=[])

    def test_articles_listed(self, make_ledger):
        config = AppConfig(news=NewsConfig(brave_api_key="k"))
        news = [Article("Demo Corp beats estimates", "https://a.example/1", "2025-03-01")]
        lines = _prompt(make_ledger(), config, news=news)
        assert "01. Demo Corp beats estimates (2025-03-01)" in lines
        assert any("Tier A" in line for line in lines)


def test_save_prompt(tmp_path):
    path = save_prompt("hello\nworld", tmp_path / "prompt.txt")
    assert path.read_text(encoding="utf-8") == "hello\nworld"
