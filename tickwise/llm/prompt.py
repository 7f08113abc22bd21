"""
LLM prompt composition.

The prompt reuses the report builders (``format_narrative``,
``compose_final_score_lines``) with colour and gauges turned off, so the
model sees exactly the numbers the terminal showed.

Block order:
  stance intro, negative-MACD note, identity and prices, narratives,
  score lines, news (or a skip note), task list, writing rules, extra note.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from tickwise.config import AppConfig
from tickwise.ingestion.brave_news_client import (
    FETCH_FAILED_NOTE,
    MISSING_KEY_NOTE,
    NO_ARTICLES_NOTE,
    Article,
    compose_news_lines,
)
from tickwise.models.ledger import ScoreLedger
from tickwise.models.snapshot import FinalSnapshot
from tickwise.reporting.formatters import compose_final_score_lines, macd_minus_label
from tickwise.taxonomy.stance_taxonomy import Stance

logger = logging.getLogger(__name__)

DEBUG_PROMPT_FILE = Path("debug_prompt.txt")

_STANCE_INTRO: dict[Stance, str] = {
    Stance.BUYER: "I do not own this stock and am considering buying it. Please comment from a buyer's point of view.",
    Stance.SELLER: "I am thinking of selling this stock. Please comment from a seller's point of view.",
}

_NEWS_DEFAULT = "If no article qualifies, write the single line 'No price-relevant news to assess'."
_NEWS_SKIPPED = "News search was skipped this run. Write the single line 'News search skipped' in the news section."
_NEWS_FAILED = "News retrieval failed this run. Write the single line 'Skipped: news retrieval failed' in the news section."
_NEWS_TIERED = (
    "Sort the headlines below into Tier A (primary, quantitative, direct, recent, reliable), "
    "Tier B (medium) and Tier C (low: commentary or reposts). Rate each article's price impact "
    "as high, medium, low or negligible. Always list Tier A and B, and when their impact is low "
    "or negligible say so in one line with the reason (small relative amount, distant effect, "
    "rehash of earlier news). List at most 3 Tier C items as 'reference (no price impact)' with "
    "a one-word reason. Do not invent new figures."
)

_WRITING_RULES = [
    "[Writing rules]",
    "- Use only the numbers in the technical output above. Do not invent prices or new figures.",
    "- Derive ranges and targets only from the levels shown (close, EMA, SMA, VWAP, Bollinger bands, Fibonacci levels).",
    "- Use oscillator terms strictly: RSI<30 or Stochastics %K<20 is oversold, RSI>70 or %K>80 is overbought. Never invert them.",
]

_WRITING_RULES_TAIL = [
    "- With no news, state that the view is technically driven. With news, open with a bullet summary.",
    "- Give at least two scenarios (for example rebound, further decline, range) and make each concrete as condition → action (entry, exit, profit-taking zone).",
    "- Use two decimals. No dropped digits, over-rounding or contradictions.",
    "- Do not abbreviate indicator names on first use (write 'Bollinger Bands', not 'BB').",
    "[Ordering rules]",
    "- List medium-term reversal conditions in the order long EMA → Ichimoku kijun → VWAP with Fib 38.2% → long SMA.",
    "- Describe short-term profit-taking zones in the order short SMA/EMA recovery → Fib 50% → Ichimoku tenkan → Ichimoku kijun.",
    "",
]


def _news_block(
    ledger: ScoreLedger,
    config: AppConfig,
    news: Optional[list[Article]],
) -> tuple[list[str], str]:
    """News lines for the prompt and the matching task directive."""
    if not config.news.enabled:
        return [], _NEWS_DEFAULT
    if not config.news.brave_api_key.strip():
        return [MISSING_KEY_NOTE, ""], _NEWS_SKIPPED
    if news is None:
        return [FETCH_FAILED_NOTE, ""], _NEWS_FAILED
    if not news:
        return [NO_ARTICLES_NOTE, ""], _NEWS_DEFAULT
    lines = compose_news_lines(ledger.ticker, ledger.name, config.news, news)
    lines.append("")
    return lines, _NEWS_TIERED


def compose_prompt_lines(
    ledger: ScoreLedger,
    snapshot: FinalSnapshot,
    narrative: list[str],
    config: AppConfig,
    news: Optional[list[Article]] = None,
) -> list[str]:
    """Build the full prompt as a list of lines.

    Args:
        ledger:     Frozen run values.
        snapshot:   Final aggregate.
        narrative:  Baseline and extension narrative lines (uncoloured).
        config:     Application config (stance, thresholds, news, llm).
        news:       Articles from ``collect_news``; ``None`` means the fetch failed.
    """
    stance = config.presentation.stance
    llm = config.llm
    lines: list[str] = []

    intro = _STANCE_INTRO.get(stance)
    if intro:
        lines += [intro, ""]

    if config.thresholds.macd_minus_ok:
        lines += [
            "⚠️ Buy signals are allowed while MACD is negative but above its signal line.",
            "",
        ]

    lines += [
        f"📊 Name: {ledger.name} ({ledger.ticker})",
        f"📅 Date: {ledger.date.isoformat()}",
        f"💰 Close: {ledger.close:.2f}",
        f"💰 Previous close: {ledger.previous_close:.2f}",
        f"📊 Change: {ledger.price_diff:+.2f} ({ledger.price_diff_percent:+.2f}%)",
        "",
    ]
    lines.extend(narrative)

    score_lines = compose_final_score_lines(snapshot, stance, include_gauge=False, colorize=False)
    lines.extend(line for line in score_lines if line)
    lines.append("")

    news_lines, news_directive = _news_block(ledger, config, news)
    lines.extend(news_lines)

    lines += [
        "[Tasks]",
        f"1. Points investors should watch (within {llm.max_note_length} characters)",
        f"2. One-week short-term view (within {llm.max_shortterm_length} characters)",
        f"3. One-month medium-term view (within {llm.max_midterm_length} characters)",
        f"4. News highlights (within {llm.max_news_length} characters, price-relevant only; "
        f"exclude entertainment, sports and advertising. {news_directive})",
        f"5. Overall review (within {llm.max_review_length} characters)",
        "",
    ]
    lines.extend(_WRITING_RULES)
    lines.append(macd_minus_label(ledger, config.thresholds))
    lines.extend(_WRITING_RULES_TAIL)

    if llm.extra_note:
        lines.append(f"📝 Extra note: {llm.extra_note}")
    return lines


def save_prompt(prompt: str, path: Path = DEBUG_PROMPT_FILE) -> Path:
    """Write the prompt text to ``path`` (overwriting) and return it."""
    path.write_text(prompt, encoding="utf-8")
    logger.info("Prompt saved to %s", path)
    return path
