"""
Ticker input handling and display-name resolution.

Processing order for a raw CLI ticker::

    normalize_ticker_input("S&P500")   # index alias → "SPY"
    sanitize_ticker("SPY")             # charset check, upper-case
    normalize_ticker("9432")           # 4-digit JP code → "9432.T"

Aliases are mapped before sanitising so that names containing ``&`` or ``+``
(``S&P500``, ``FANG+``) resolve instead of being rejected.

Display names resolve in priority order:
  1. alias CSV (4-digit JP code → company name)
  2. name reported by the market data provider
  3. built-in formal names for the common index ETFs
  4. the ticker itself
"""

from __future__ import annotations

import csv
import io
import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

MAX_ALIAS_LINE_LENGTH = 500

_TICKER_RE = re.compile(r"^[A-Z0-9.\-]+$")
_JP_CODE_RE = re.compile(r"^\d{4}$")

INDEX_ALIASES: dict[str, str] = {
    "S&P500": "SPY",
    "SNP500": "SPY",
    "SP500": "SPY",
    "NASDAQ100": "QQQ",
    "DOW": "DIA",
    "DJIA": "DIA",
    "NIKKEI225": "1321.T",
    "TOPIX": "1306.T",
    "ACWI": "ACWI",
    "VTI": "VTI",
    "FANG+": "FNGU",
}

FORMAL_NAMES: dict[str, str] = {
    "SPY": "SPDR S&P 500 ETF Trust (S&P500)",
    "QQQ": "Invesco QQQ Trust (NASDAQ100)",
    "ACWI": "iShares MSCI ACWI ETF (All Country World)",
    "FNGU": "NYSE FANG+ Index",
}


def normalize_ticker_input(raw: str) -> str:
    """Map an index name to its tracking ETF; other input is returned stripped."""
    return INDEX_ALIASES.get(raw.strip().upper(), raw.strip())


def sanitize_ticker(raw: str) -> str:
    """Upper-case ``raw`` and check it only uses letters, digits, ``.`` and ``-``.

    Raises:
        ValueError: If the ticker is empty or contains any other character.
    """
    cleaned = raw.strip().upper()
    if not cleaned or not _TICKER_RE.match(cleaned):
        raise ValueError(
            f"Invalid ticker '{raw}': only letters, digits, '.' and '-' are allowed."
        )
    return cleaned


def normalize_ticker(raw: str) -> str:
    """``"9432"`` / ``"9432.t"`` → ``"9432.T"``; anything else is upper-cased."""
    up = raw.strip().upper()
    if _JP_CODE_RE.match(up):
        return f"{up}.T"
    return up


def prepare_ticker(raw: str) -> str:
    """Full CLI ticker pipeline: alias, sanitise, JP suffix."""
    return normalize_ticker(sanitize_ticker(normalize_ticker_input(raw)))


def jp_code_from_ticker(ticker: str) -> Optional[str]:
    """The 4-digit Tokyo code of ``ticker`` (``"9432.T"`` → ``"9432"``), else None."""
    up = ticker.strip().upper()
    code = up.removesuffix(".T")
    return code if _JP_CODE_RE.match(code) else None


def is_jp_ticker(ticker: str) -> bool:
    return jp_code_from_ticker(ticker) is not None


# ── Alias CSV ─────────────────────────────────────────────────────────────────


def _check_alias_lines(path: Path, text: str) -> list[str]:
    """Strip a leading BOM and reject NUL, control characters and overlong lines."""
    text = text.removeprefix("\ufeff")
    lines = [line.removesuffix("\r") for line in text.split("\n")]
    for line_no, line in enumerate(lines, start=1):
        if len(line) > MAX_ALIAS_LINE_LENGTH:
            raise ValueError(f"{path.name} line {line_no}: line too long ({len(line)} chars).")
        if "\x00" in line:
            raise ValueError(f"{path.name} line {line_no}: contains a NUL byte.")
        if "\ufeff" in line:
            raise ValueError(f"{path.name} line {line_no}: contains a byte order mark.")
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in line if ch != "\t"):
            raise ValueError(f"{path.name} line {line_no}: contains control characters.")
    return lines


def load_alias_csv(path: Path) -> dict[str, str]:
    """Read a code → company-name map from an alias CSV.

    The file has a header row; the code is in the 2nd column and the name in
    the 3rd.  Rows with an empty code or name are skipped.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On an unsafe line or a row with fewer than 3 columns.
    """
    if not path.exists():
        raise FileNotFoundError(f"Alias CSV not found: {path}")
    lines = _check_alias_lines(path, path.read_text(encoding="utf-8"))

    reader = csv.reader(io.StringIO("\n".join(lines)))
    next(reader, None)
    aliases: dict[str, str] = {}
    for row_no, row in enumerate(reader, start=2):
        if not row:
            continue
        if len(row) < 3:
            raise ValueError(f"{path.name} row {row_no}: expected at least 3 columns, got {len(row)}.")
        code, name = row[1].strip(), row[2].strip()
        if code and name:
            aliases[code] = name
    logger.debug("Loaded %d ticker aliases from %s", len(aliases), path.name)
    return aliases


def resolve_display_name(
    ticker: str,
    provider_name: Optional[str] = None,
    aliases: Optional[dict[str, str]] = None,
) -> str:
    code = jp_code_from_ticker(ticker)
    if code and aliases and code in aliases:
        return aliases[code]
    if provider_name:
        return provider_name
    return FORMAL_NAMES.get(ticker, ticker)
