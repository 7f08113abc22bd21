"""
Tickwise — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()`` with CLI flags as overrides.
  2. Configure logging.
  3. Validate inputs.
  4. Execute the action.
  5. Report the result to stdout (diagnostics go to stderr).

Install and run::

    pip install -e .
    tickwise --help
    tickwise analyze AAPL --all --stance buyer
    tickwise analyze 7203 --ema --bollinger --save-log --no-llm
    tickwise analyze DEMO --fixture --all --no-news --no-llm
    tickwise show-log-header --all
    tickwise validate-config --full
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="tickwise",
    help="Tickwise — composite technical-indicator scoring for a single ticker.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(
    config_path: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from tickwise.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path, overrides=overrides)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from tickwise.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _fail(message: str) -> typer.Exit:
    typer.echo(f"[ERROR] {message}", err=True)
    return typer.Exit(code=1)


def _selected_indicators(flags: dict[str, bool], select_all: bool) -> Optional[list[str]]:
    """Indicator names chosen on the command line, or None to keep the config's list."""
    if select_all:
        return ["all"]
    chosen = [name for name, on in flags.items() if on]
    return chosen or None


def _put(overrides: dict[str, Any], section: str, key: str, value: Any) -> None:
    """Set ``overrides[section][key]`` unless the flag was left unset."""
    if value is None or value is False:
        return
    overrides.setdefault(section, {})[key] = value


def _masked_dump(config) -> dict[str, Any]:
    data = config.model_dump(mode="json")
    for section, key in (("llm", "openai_api_key"), ("news", "brave_api_key")):
        if data[section][key]:
            data[section][key] = "***"
    return data


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("analyze")
def analyze(
    ticker: str = typer.Argument(..., help="Ticker, 4-digit Tokyo code, or index alias (e.g. S&P500)."),
    ema: bool = typer.Option(False, "--ema", help="Enable EMA crossover."),
    sma: bool = typer.Option(False, "--sma", help="Enable SMA crossover."),
    roc: bool = typer.Option(False, "--roc", help="Enable rate of change."),
    adx: bool = typer.Option(False, "--adx", help="Enable ADX trend strength."),
    stochastics: bool = typer.Option(False, "--stochastics", help="Enable Stochastics %K/%D."),
    bollinger: bool = typer.Option(False, "--bollinger", help="Enable Bollinger Bands."),
    fibonacci: bool = typer.Option(False, "--fibonacci", help="Enable Fibonacci retracement."),
    vwap: bool = typer.Option(False, "--vwap", help="Enable VWAP (typical-price proxy)."),
    ichimoku: bool = typer.Option(False, "--ichimoku", help="Enable Ichimoku tenkan/kijun."),
    select_all: bool = typer.Option(False, "--all", help="Enable every extension indicator."),
    stance: Optional[str] = typer.Option(None, "--stance", help="buyer | seller | holder."),
    weight_basic: Optional[float] = typer.Option(None, "--weight-basic", help="Baseline weight (0.5-3.0)."),
    weight_ema: Optional[float] = typer.Option(None, "--weight-ema"),
    weight_sma: Optional[float] = typer.Option(None, "--weight-sma"),
    weight_roc: Optional[float] = typer.Option(None, "--weight-roc"),
    weight_adx: Optional[float] = typer.Option(None, "--weight-adx"),
    weight_stochastics: Optional[float] = typer.Option(None, "--weight-stochastics"),
    weight_bollinger: Optional[float] = typer.Option(None, "--weight-bollinger"),
    weight_fibonacci: Optional[float] = typer.Option(None, "--weight-fibonacci"),
    weight_vwap: Optional[float] = typer.Option(None, "--weight-vwap"),
    weight_ichimoku: Optional[float] = typer.Option(None, "--weight-ichimoku"),
    macd_minus_ok: bool = typer.Option(
        False, "--macd-minus-ok", help="Allow buy signals while MACD is negative but above signal."
    ),
    buy_rsi: Optional[float] = typer.Option(None, "--buy-rsi", help="RSI at or below this is the buy zone."),
    sell_rsi: Optional[float] = typer.Option(None, "--sell-rsi", help="RSI at or above this is the sell zone."),
    macd_diff_low: Optional[float] = typer.Option(None, "--macd-diff-low"),
    macd_diff_mid: Optional[float] = typer.Option(None, "--macd-diff-mid"),
    bb_squeeze_pct: Optional[float] = typer.Option(
        None, "--bb-squeeze-pct", help="Bollinger bandwidth % below which a squeeze is reported."
    ),
    save_log: bool = typer.Option(False, "--save-log", help="Write the technical log line."),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="csv | json."),
    log_dir: Optional[str] = typer.Option(None, "--log-dir", help="Technical log directory."),
    append: bool = typer.Option(False, "--append", help="Append instead of overwriting."),
    flat: bool = typer.Option(False, "--flat", help="No per-ticker subdirectory."),
    log_stdout: bool = typer.Option(False, "--stdout", help="Echo the log line instead of writing a file."),
    no_news: bool = typer.Option(False, "--no-news", help="Skip the news search."),
    show_news: bool = typer.Option(False, "--show-news", help="Print the news list."),
    news_filter: bool = typer.Option(False, "--news-filter", help="Restrict news to finance terms."),
    news_count: Optional[int] = typer.Option(None, "--news-count", help="Max articles (1-50)."),
    news_freshness: Optional[str] = typer.Option(None, "--news-freshness", help="pd | pw | pm | py | all."),
    news_query: Optional[str] = typer.Option(None, "--news-query", help="Custom news query."),
    no_llm: bool = typer.Option(False, "--no-llm", help="Do not build or send the LLM prompt."),
    debug_prompt: bool = typer.Option(False, "--debug-prompt", help="Save the prompt to debug_prompt.txt."),
    llm_provider: Optional[str] = typer.Option(None, "--llm-provider", help="LLM provider (openai)."),
    openai_model: Optional[str] = typer.Option(None, "--openai-model"),
    openai_api_key: Optional[str] = typer.Option(None, "--openai-api-key"),
    llm_note: Optional[str] = typer.Option(None, "--llm-note", help="Extra note appended to the prompt."),
    fixture: bool = typer.Option(False, "--fixture", help="Use the built-in offline bar series."),
    bars_csv: Optional[str] = typer.Option(None, "--bars-csv", help="Read bars from a date,high,low,close CSV."),
    silent: bool = typer.Option(False, "--silent", help="Suppress the report and the LLM request."),
    debug: bool = typer.Option(False, "--debug", help="DEBUG logging."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score TICKER with the baseline and the selected extension indicators.

    Runs fetch → baseline → extensions → snapshot → report → technical log
    → news → LLM prompt.  A baseline failure exits with code 1 and prints
    nothing else; extension failures are logged and skipped.
    """
    import httpx

    from tickwise.indicators.errors import BaselineError
    from tickwise.ingestion.bar_csv import parse_bar_csv
    from tickwise.ingestion.brave_news_client import (
        MISSING_KEY_NOTE,
        collect_news,
        compose_news_lines,
    )
    from tickwise.ingestion.tickers import load_alias_csv, prepare_ticker, resolve_display_name
    from tickwise.ingestion.yahoo_client import MarketDataError, YahooChartClient
    from tickwise.llm.openai_client import LLMResponseError, deliver_prompt
    from tickwise.llm.prompt import compose_prompt_lines, save_prompt
    from tickwise.reporting.formatters import format_narrative, format_report
    from tickwise.reporting.technical_log import write_technical_log
    from tickwise.scoring.engine import run_evaluation

    if fixture and bars_csv:
        raise _fail("--fixture and --bars-csv are mutually exclusive.")

    overrides: dict[str, Any] = {}
    kinds = _selected_indicators(
        {
            "ema": ema, "sma": sma, "roc": roc, "adx": adx, "stochastics": stochastics,
            "bollinger": bollinger, "fibonacci": fibonacci, "vwap": vwap, "ichimoku": ichimoku,
        },
        select_all,
    )
    _put(overrides, "indicators", "enabled", kinds)
    _put(overrides, "indicators", "bb_bandwidth_squeeze_pct", bb_squeeze_pct)
    _put(overrides, "presentation", "stance", stance)
    _put(overrides, "presentation", "silent", silent)
    for name, value in (
        ("basic", weight_basic), ("ema", weight_ema), ("sma", weight_sma),
        ("roc", weight_roc), ("adx", weight_adx), ("stochastics", weight_stochastics),
        ("bollinger", weight_bollinger), ("fibonacci", weight_fibonacci),
        ("vwap", weight_vwap), ("ichimoku", weight_ichimoku),
    ):
        _put(overrides, "weights", name, value)
    _put(overrides, "thresholds", "macd_minus_ok", macd_minus_ok)
    _put(overrides, "thresholds", "buy_rsi", buy_rsi)
    _put(overrides, "thresholds", "sell_rsi", sell_rsi)
    _put(overrides, "thresholds", "macd_diff_low", macd_diff_low)
    _put(overrides, "thresholds", "macd_diff_mid", macd_diff_mid)
    _put(overrides, "technical_log", "enabled", save_log or log_stdout)
    _put(overrides, "technical_log", "format", log_format)
    _put(overrides, "technical_log", "log_dir", log_dir)
    _put(overrides, "technical_log", "append", append)
    _put(overrides, "technical_log", "flat", flat)
    _put(overrides, "technical_log", "stdout", log_stdout)
    if no_news:
        overrides.setdefault("news", {})["enabled"] = False
    _put(overrides, "news", "show", show_news)
    _put(overrides, "news", "filter", news_filter)
    _put(overrides, "news", "count", news_count)
    _put(overrides, "news", "freshness", news_freshness)
    _put(overrides, "news", "custom_query", news_query)
    if no_llm:
        overrides.setdefault("llm", {})["enabled"] = False
    _put(overrides, "llm", "debug_prompt", debug_prompt)
    _put(overrides, "llm", "provider", llm_provider)
    _put(overrides, "llm", "model", openai_model)
    _put(overrides, "llm", "openai_api_key", openai_api_key)
    _put(overrides, "llm", "extra_note", llm_note)
    if debug:
        overrides["debug"] = True

    config = _load_config_or_exit(config_path, overrides)
    _configure_logging(config)

    try:
        symbol = prepare_ticker(ticker)
    except ValueError as exc:
        raise _fail(str(exc))

    aliases: dict[str, str] = {}
    if config.provider.alias_csv:
        try:
            aliases = load_alias_csv(Path(config.provider.alias_csv))
        except (FileNotFoundError, ValueError) as exc:
            raise _fail(str(exc))

    # ── 1. Bars ───────────────────────────────────────────────────────────────
    provider_name: Optional[str] = None
    try:
        if fixture:
            response = YahooChartClient.get_fixture_response(symbol)
            bars, provider_name = response.bars, response.name
        elif bars_csv:
            bars = parse_bar_csv(Path(bars_csv))
        else:
            response = YahooChartClient(config.provider).fetch_daily_bars(symbol)
            bars, provider_name = response.bars, response.name
    except (FileNotFoundError, ValueError, MarketDataError, httpx.HTTPError) as exc:
        raise _fail(f"Could not load bars for {symbol}: {exc}")

    name = resolve_display_name(symbol, provider_name, aliases)

    # ── 2. Evaluate ───────────────────────────────────────────────────────────
    try:
        result = run_evaluation(bars, symbol, name, config)
    except BaselineError as exc:
        raise _fail(str(exc))

    # ── 3. Report ─────────────────────────────────────────────────────────────
    if not config.presentation.silent:
        for line in format_report(result, config):
            typer.echo(line)

    # ── 4. Technical log ──────────────────────────────────────────────────────
    if config.technical_log.enabled:
        try:
            write_technical_log(
                result.ledger, result.snapshot, result.enabled, config.technical_log, echo=typer.echo
            )
        except OSError as exc:
            raise _fail(f"Could not write technical log: {exc}")

    # ── 5. News ───────────────────────────────────────────────────────────────
    articles = None
    if config.news.enabled:
        articles = collect_news(symbol, name, config.news)
        if config.news.show and not config.presentation.silent:
            if not config.news.brave_api_key.strip():
                typer.echo(MISSING_KEY_NOTE)
            elif articles is not None:
                for line in compose_news_lines(symbol, name, config.news, articles):
                    typer.echo(line)

    # ── 6. LLM ────────────────────────────────────────────────────────────────
    if not config.llm.enabled:
        return
    prompt = "\n".join(
        compose_prompt_lines(
            result.ledger, result.snapshot, format_narrative(result, config), config, articles
        )
    )
    if config.llm.debug_prompt:
        save_prompt(prompt)
    if config.presentation.silent:
        return
    try:
        reply = deliver_prompt(prompt, config.llm)
    except NotImplementedError as exc:
        raise _fail(str(exc))
    except (httpx.HTTPError, LLMResponseError) as exc:
        raise _fail(f"LLM request failed: {exc}")
    if reply:
        typer.echo("")
        typer.echo(f"=== LLM Response by {config.llm.model} ===")
        typer.echo("")
        typer.echo(reply)


@app.command("show-log-header")
def show_log_header(
    ema: bool = typer.Option(False, "--ema"),
    sma: bool = typer.Option(False, "--sma"),
    roc: bool = typer.Option(False, "--roc"),
    adx: bool = typer.Option(False, "--adx"),
    stochastics: bool = typer.Option(False, "--stochastics"),
    bollinger: bool = typer.Option(False, "--bollinger"),
    fibonacci: bool = typer.Option(False, "--fibonacci"),
    vwap: bool = typer.Option(False, "--vwap"),
    ichimoku: bool = typer.Option(False, "--ichimoku"),
    select_all: bool = typer.Option(False, "--all"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print the CSV technical-log header for the selected indicators."""
    from tickwise.reporting.technical_log import log_header

    overrides: dict[str, Any] = {}
    kinds = _selected_indicators(
        {
            "ema": ema, "sma": sma, "roc": roc, "adx": adx, "stochastics": stochastics,
            "bollinger": bollinger, "fibonacci": fibonacci, "vwap": vwap, "ichimoku": ichimoku,
        },
        select_all,
    )
    _put(overrides, "indicators", "enabled", kinds)
    config = _load_config_or_exit(config_path, overrides)

    typer.echo(",".join(log_header(config.indicators.enabled)))


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields (API keys masked).",
    ),
) -> None:
    """Validate the configuration and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    enabled = ", ".join(k.value for k in config.indicators.enabled) or "(baseline only)"
    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Indicators:       {enabled}")
    typer.echo(f"  Stance:           {config.presentation.stance.value}")
    typer.echo(f"  Baseline weight:  {config.weights.basic:.1f}")
    typer.echo(f"  Technical log:    {'on' if config.technical_log.enabled else 'off'} ({config.technical_log.format})")
    typer.echo(f"  News:             {'on' if config.news.enabled else 'off'}")
    typer.echo(f"  LLM:              {'on' if config.llm.enabled else 'off'} ({config.llm.provider}/{config.llm.model})")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(_masked_dump(config), indent=2, ensure_ascii=False))

    typer.echo("")
    typer.echo("[OK] Config valid.")


if __name__ == "__main__":
    app()
