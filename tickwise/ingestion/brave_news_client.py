"""
Brave News search client.

Endpoint:  GET https://api.search.brave.com/res/v1/news/search
Auth:      ``X-Subscription-Token: <BRAVE_API_KEY>`` header

Only ``results[].title``, ``results[].url`` and the first of
``results[].page_fetched`` / ``results[].page_age`` are read.

News is optional context for the LLM prompt: a missing key or a failed
request never aborts a run.  ``collect_news()`` returns ``[]`` when there is
no key and ``None`` when the request failed, so the prompt can say which.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar, NamedTuple, Optional

from tickwise.ingestion.tickers import jp_code_from_ticker

if TYPE_CHECKING:
    from tickwise.config import NewsConfig

logger = logging.getLogger(__name__)

MISSING_KEY_NOTE = "[Note] News search skipped: BRAVE_API_KEY is not set."
FETCH_FAILED_NOTE = "[Note] News search skipped: the request failed."
NO_ARTICLES_NOTE = "[Note] No matching news in the selected period."

_JP_FINANCE_CLAUSE = (
    '(決算 OR 業績 OR IR OR プレスリリース OR 開示 OR 適時開示 OR 配当 OR ガイダンス '
    'OR 提携 OR 買収 OR 株価 OR 株式 OR 投資家 OR "press release" OR earnings OR revenue '
    'OR profit OR guidance OR dividend OR "SEC filing")'
)
_US_FINANCE_CLAUSE = (
    '(stock OR earnings OR guidance OR "SEC filing" OR revenue OR profit OR dividend '
    "OR investor OR shareholder OR acquisition OR merger)"
)


class NewsLocale(NamedTuple):
    country: str
    search_lang: str
    ui_lang: str


JP_LOCALE = NewsLocale("JP", "jp", "ja-JP")
US_LOCALE = NewsLocale("US", "en", "en-US")


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass
class Article:
    """A single news search hit."""

    title: str
    url: str
    published_at: Optional[str] = None


@dataclass
class NewsResponse:
    """Articles for one query, de-duplicated and newest first."""

    query: str
    articles: list[Article] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_fixture: bool = False


# ── Query building ─────────────────────────────────────────────────────────────

def news_locale_for_ticker(ticker: str) -> NewsLocale:
    return JP_LOCALE if ticker.strip().upper().endswith(".T") else US_LOCALE


def build_news_query_jp(name: str, code: Optional[str], ticker: str, use_filter: bool) -> str:
    """Tokyo listings: the company name, OR'd with code and ticker when filtered."""
    if not use_filter:
        return f'"{name}"'
    if code:
        entity = f'("{name}" OR {code} OR {ticker})'
    else:
        entity = f'("{name}" OR {ticker})'
    return f"{entity} AND {_JP_FINANCE_CLAUSE}"


def build_news_query_us(ticker: str, company_name: Optional[str], use_filter: bool) -> str:
    """US listings: the company name (or ticker), OR'd with the ticker when filtered."""
    upper = ticker.upper()
    if not use_filter:
        return f'"{company_name}"' if company_name else f'"{upper}"'
    entity = f'("{company_name}" OR {upper})' if company_name else f"({upper})"
    return f"{entity} AND {_US_FINANCE_CLAUSE}"


def build_news_query(ticker: str, name: str, config: "NewsConfig") -> str:
    """``custom_query`` if set, otherwise the locale's generated query."""
    if config.custom_query:
        return config.custom_query
    if news_locale_for_ticker(ticker) is JP_LOCALE:
        return build_news_query_jp(name, jp_code_from_ticker(ticker), ticker, config.filter)
    return build_news_query_us(ticker, name, config.filter)


def freshness_param(config: "NewsConfig") -> Optional[str]:
    """The ``freshness`` query parameter; ``"all"`` means no restriction."""
    if config.freshness is None or config.freshness.lower() == "all":
        return None
    return config.freshness


def news_query_line(ticker: str, name: str, config: "NewsConfig") -> str:
    mode = "[q-filtered]" if config.filter else "[q-unfiltered]"
    fresh = freshness_param(config) or "all"
    return (
        f"News query {mode}: {build_news_query(ticker, name, config)}"
        f"   (count={config.count}, freshness={fresh})"
    )


# ── Post-processing ────────────────────────────────────────────────────────────

def normalize_url(url: str) -> str:
    """Drop the fragment, the query string and any trailing ``/``."""
    url = url.split("#", 1)[0]
    url = url.split("?", 1)[0]
    return url.rstrip("/")


def dedupe_articles(articles: list[Article]) -> list[Article]:
    """First article per normalised URL, then sorted newest first.

    Dates are compared as strings; an article without one sorts last.
    """
    seen: set[str] = set()
    unique: list[Article] = []
    for article in articles:
        key = normalize_url(article.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(article)
    unique.sort(key=lambda a: a.published_at or "", reverse=True)
    return unique


# ── Client ─────────────────────────────────────────────────────────────────────

class BraveNewsClient:
    """Client for the Brave News search API.

    Usage::

        client = BraveNewsClient(api_key=config.news.brave_api_key)
        response = client.search('"Apple Inc."', US_LOCALE, count=20, freshness="pw")

    Offline::

        response = BraveNewsClient.get_fixture_response("AAPL")
    """

    SEARCH_URL: ClassVar[str] = "https://api.search.brave.com/res/v1/news/search"

    FIXTURE_RESULTS: ClassVar[list[dict]] = [
        {
            "title": "Demo Corp raises full-year guidance",
            "url": "https://news.example.com/demo/guidance?utm_source=feed",
            "page_fetched": "2025-02-28T09:00:00Z",
        },
        {
            "title": "Demo Corp raises full-year guidance (update)",
            "url": "https://news.example.com/demo/guidance/",
            "page_fetched": "2025-02-28T10:30:00Z",
        },
        {
            "title": "Demo Corp declares quarterly dividend",
            "url": "https://news.example.com/demo/dividend",
            "page_age": "2025-02-21T14:00:00Z",
        },
    ]

    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        if not api_key.strip():
            raise ValueError("BraveNewsClient requires a non-empty api_key.")
        self.api_key = api_key.strip()
        self.timeout = timeout

    def search(
        self,
        query: str,
        locale: NewsLocale,
        count: int,
        freshness: Optional[str] = None,
    ) -> NewsResponse:
        """Run one news search.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
            httpx.RequestError:    On connection / timeout failures.
        """
        import httpx

        params: dict[str, Any] = {
            "q": query,
            "country": locale.country,
            "search_lang": locale.search_lang,
            "ui_lang": locale.ui_lang,
            "count": count,
            "offset": 0,
            "spellcheck": 0,
        }
        if freshness:
            params["freshness"] = freshness

        resp = httpx.get(
            self.SEARCH_URL,
            params=params,
            headers={
                "Accept": "application/json",
                "Accept-Encoding": "gzip",
                "X-Subscription-Token": self.api_key,
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return NewsResponse(query=query, articles=dedupe_articles(self._parse_response(resp.json())))

    def _parse_response(self, data: dict) -> list[Article]:
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected news payload type: {type(data).__name__}.")
        articles: list[Article] = []
        for item in data.get("results") or []:
            articles.append(
                Article(
                    title=item.get("title") or "(untitled)",
                    url=item.get("url") or "",
                    published_at=item.get("page_fetched") or item.get("page_age"),
                )
            )
        return articles

    # ── Fixture data ───────────────────────────────────────────────────────────

    @classmethod
    def get_fixture_response(cls, query: str) -> NewsResponse:
        articles = [
            Article(
                title=r["title"],
                url=r["url"],
                published_at=r.get("page_fetched") or r.get("page_age"),
            )
            for r in cls.FIXTURE_RESULTS
        ]
        return NewsResponse(query=query, articles=dedupe_articles(articles), is_fixture=True)


# ── Run helpers ────────────────────────────────────────────────────────────────

def collect_news(ticker: str, name: str, config: "NewsConfig") -> Optional[list[Article]]:
    """Fetch articles for ``ticker``.

    Returns:
        ``[]`` when no API key is configured, ``None`` when the request
        failed or the body was not a JSON object (logged as a warning),
        otherwise the de-duplicated articles.
    """
    import httpx

    if not config.brave_api_key.strip():
        logger.warning("News search skipped: BRAVE_API_KEY is not set.")
        return []

    client = BraveNewsClient(api_key=config.brave_api_key)
    query = build_news_query(ticker, name, config)
    try:
        response = client.search(
            query,
            news_locale_for_ticker(ticker),
            count=config.count or 50,
            freshness=freshness_param(config),
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("News search failed for %s: %s", ticker, exc)
        return None
    logger.info("News search for %s returned %d articles", ticker, len(response.articles))
    return response.articles


def compose_news_lines(
    ticker: str,
    name: str,
    config: "NewsConfig",
    articles: list[Article],
) -> list[str]:
    """Query line, header and numbered entries (at most ``config.count``)."""
    cap = config.count or 50
    shown = articles[:cap]
    lines = [
        news_query_line(ticker, name, config),
        "",
        f"=== News[{ticker}]: {len(shown)} articles (showing up to {cap}) ===",
    ]
    if not shown:
        lines.append("(none)")
        return lines
    for index, article in enumerate(shown, start=1):
        lines.append(f"{index:02d}. {article.title} ({article.published_at or '-'})")
        lines.append(f"    {article.url}")
    return lines
