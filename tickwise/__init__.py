"""
Tickwise: composite buy/sell/hold scoring of daily technical indicators for
one ticker.

Subpackages:
  models      — Bar, ScoreLedger / LedgerBuilder, FinalSnapshot
  taxonomy    — IndicatorKind / IndicatorCategory / Stance enums
  indicators  — baseline MACD+RSI, nine extension evaluators, the registry
  scoring     — evaluation run, aggregation, score classification
  reporting   — narrative lines, gauges, terminal report, technical log
  ingestion   — ticker handling, Yahoo chart client, bar CSV, Brave news
  llm         — prompt composition and the OpenAI client
"""

__version__ = "0.1.0"
