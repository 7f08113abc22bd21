"""
Ingestion layer: ticker handling and provider clients.

Submodules:
  tickers            ticker sanitising, index aliases, display-name resolution
  yahoo_client       Yahoo Finance chart API daily bars (+ offline fixture)
  bar_csv            CSV import parser for daily bars
  brave_news_client  Brave News search for the ticker's recent headlines

Credential placement (tickwise.env / .env, gitignored):
  BRAVE_API_KEY      Brave Search API subscription token
  OPENAI_API_KEY     used by tickwise.llm, listed here for completeness
"""
