"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``tickwise.env`` / ``.env``  — local secrets and env overrides (gitignored)
  4. Environment variables        — ``TICKWISE_*`` prefix (API keys un-prefixed)
  5. CLI flags                    — passed in as ``overrides``

Entry point: ``load_config(config_path=None, overrides=None) -> AppConfig``

Invalid weights and percentages never abort a run.  They are replaced with a
documented default and a WARNING is logged naming the field and the reason:

  weights                   finite and within [0.5, 3.0], otherwise 1.0
  bb_bandwidth_squeeze_pct  clamped to [0, 100]; non-finite becomes 0
  stance                    buyer / seller / holder, otherwise holder
  news.count                clamped to [1, 50]

Free-text inputs that reach external services (custom news query, LLM extra
note) are validated strictly and raise instead, like any other bad config.
"""

from __future__ import annotations

import logging
import math
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from tickwise.taxonomy.indicator_taxonomy import IndicatorKind
from tickwise.taxonomy.stance_taxonomy import Stance

logger = logging.getLogger(__name__)

WEIGHT_MIN = 0.5
WEIGHT_MAX = 3.0
DEFAULT_WEIGHT = 1.0

_FORBIDDEN_TEXT_CHARS = (";", "|", "`")


# ── Sanitizers ────────────────────────────────────────────────────────────────


def sanitize_weight(value: Any, label: str, default: float = DEFAULT_WEIGHT) -> float:
    """Return ``value`` as a weight, or ``default`` with a warning.

    Accepts anything ``float()`` accepts.  Unparseable, non-finite, negative
    and out-of-range values each log a distinct warning.
    """
    try:
        weight = float(value)
    except (TypeError, ValueError):
        logger.warning("Weight %s=%r is not a number; using default %.1f.", label, value, default)
        return default
    if not math.isfinite(weight):
        logger.warning("Weight %s=%s is not finite (NaN/inf); using default %.1f.", label, weight, default)
        return default
    if weight < 0:
        logger.warning("Weight %s=%s is negative; using default %.1f.", label, weight, default)
        return default
    if not WEIGHT_MIN <= weight <= WEIGHT_MAX:
        logger.warning(
            "Weight %s=%s is outside %.1f-%.1f; using default %.1f.",
            label, weight, WEIGHT_MIN, WEIGHT_MAX, default,
        )
        return default
    return weight


def sanitize_percent(value: Any, label: str, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a percentage into [lo, hi]; non-finite or unparseable becomes ``lo``."""
    try:
        pct = float(value)
    except (TypeError, ValueError):
        logger.warning("%s=%r is not a number; using %s.", label, value, lo)
        return lo
    if not math.isfinite(pct):
        logger.warning("%s=%s is not finite (NaN/inf); using %s.", label, pct, lo)
        return lo
    clamped = min(max(pct, lo), hi)
    if clamped != pct:
        logger.warning("%s=%s is out of range %s-%s; using %s.", label, pct, lo, hi, clamped)
    return clamped


def sanitize_free_text(value: str, label: str, max_length: int) -> str:
    """Collapse whitespace and reject shell-ish characters and overlong text.

    Raises:
        ValueError: If ``value`` contains ``;``, ``|`` or a backtick, or is
            longer than ``max_length`` after cleaning.
    """
    if any(ch in value for ch in _FORBIDDEN_TEXT_CHARS):
        raise ValueError(f"{label} must not contain any of ; | `")
    cleaned = " ".join(value.split())
    if len(cleaned) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters, got {len(cleaned)}.")
    return cleaned


# ── Sub-config models ─────────────────────────────────────────────────────────


class ThresholdConfig(BaseModel):
    """Baseline MACD + RSI decision thresholds."""

    model_config = ConfigDict(frozen=True)

    buy_rsi: float = 30.0
    sell_rsi: float = 70.0
    macd_diff_low: float = 2.0
    macd_diff_mid: float = 10.0
    macd_minus_ok: bool = False


class IndicatorConfig(BaseModel):
    """Which extension indicators run, plus indicator-specific display settings."""

    model_config = ConfigDict(frozen=True)

    enabled: list[IndicatorKind] = []
    bb_bandwidth_squeeze_pct: float = 8.0

    @field_validator("enabled", mode="before")
    @classmethod
    def normalize_enabled(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",") if part.strip()]
        if isinstance(v, (list, tuple)):
            if any(str(item).strip().lower() == "all" for item in v):
                return list(IndicatorKind)
            requested = {str(item).strip().lower() for item in v}
            unknown = requested - {k.value for k in IndicatorKind}
            if unknown:
                raise ValueError(
                    f"Unknown indicators {sorted(unknown)}. "
                    f"Valid: {[k.value for k in IndicatorKind]} or 'all'."
                )
            # Registry order, duplicates dropped
            return [k for k in IndicatorKind if k.value in requested]
        return v

    @field_validator("bb_bandwidth_squeeze_pct", mode="before")
    @classmethod
    def validate_squeeze_pct(cls, v: Any) -> float:
        return sanitize_percent(v, "indicators.bb_bandwidth_squeeze_pct")

    def is_enabled(self, kind: IndicatorKind) -> bool:
        return kind in self.enabled


class WeightConfig(BaseModel):
    """Per-indicator score weights; ``basic`` weighs the MACD + RSI baseline."""

    model_config = ConfigDict(frozen=True)

    basic: float = DEFAULT_WEIGHT
    ema: float = DEFAULT_WEIGHT
    sma: float = DEFAULT_WEIGHT
    roc: float = DEFAULT_WEIGHT
    adx: float = DEFAULT_WEIGHT
    stochastics: float = DEFAULT_WEIGHT
    bollinger: float = DEFAULT_WEIGHT
    fibonacci: float = DEFAULT_WEIGHT
    vwap: float = DEFAULT_WEIGHT
    ichimoku: float = DEFAULT_WEIGHT

    @field_validator("*", mode="before")
    @classmethod
    def validate_weight(cls, v: Any, info) -> float:
        return sanitize_weight(v, f"weights.{info.field_name}")

    def for_kind(self, kind: IndicatorKind) -> float:
        return getattr(self, kind.value)


class PresentationConfig(BaseModel):
    """Terminal report settings."""

    model_config = ConfigDict(frozen=True)

    stance: Stance = Stance.HOLDER
    unipolar_width: int = 25
    bipolar_width: int = 51
    silent: bool = False

    @field_validator("stance", mode="before")
    @classmethod
    def validate_stance(cls, v: Any) -> Any:
        value = str(v).strip().lower()
        if value not in {s.value for s in Stance}:
            logger.warning("Unknown stance %r; falling back to 'holder'.", v)
            return Stance.HOLDER
        return value


class TechnicalLogConfig(BaseModel):
    """Per-run CSV / JSON technical log output."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    format: str = "csv"
    log_dir: str = "log"
    append: bool = False
    flat: bool = False
    stdout: bool = False

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in {"csv", "json"}:
            raise ValueError(f"technical_log.format must be 'csv' or 'json', got '{v}'.")
        return v.lower()


class NewsConfig(BaseModel):
    """Brave news search settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    show: bool = False
    filter: bool = False
    count: Optional[int] = None
    freshness: Optional[str] = None
    custom_query: Optional[str] = None
    brave_api_key: str = ""

    @field_validator("custom_query")
    @classmethod
    def validate_custom_query(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return sanitize_free_text(v, "news.custom_query", max_length=200)

    @model_validator(mode="after")
    def apply_filter_defaults(self) -> "NewsConfig":
        # Filtered searches are narrower: fewer, fresher articles by default.
        if self.count is None:
            object.__setattr__(self, "count", 20 if self.filter else 50)
        elif not 1 <= self.count <= 50:
            clamped = min(max(self.count, 1), 50)
            logger.warning("news.count=%s is out of range 1-50; using %s.", self.count, clamped)
            object.__setattr__(self, "count", clamped)
        if self.freshness is None:
            object.__setattr__(self, "freshness", "pw" if self.filter else "pm")
        return self


class LLMConfig(BaseModel):
    """LLM prompt composition and delivery settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    provider: str = "openai"
    model: str = "gpt-4.1-nano"
    openai_api_key: str = ""
    extra_note: Optional[str] = None
    debug_prompt: bool = False
    max_note_length: int = 300
    max_shortterm_length: int = 150
    max_midterm_length: int = 150
    max_news_length: int = 600
    max_review_length: int = 1000

    @field_validator("extra_note")
    @classmethod
    def validate_extra_note(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return sanitize_free_text(v, "llm.extra_note", max_length=2000)


class ProviderConfig(BaseModel):
    """Daily bar provider (Yahoo Finance chart API) settings."""

    model_config = ConfigDict(frozen=True)

    chart_url: str = "https://query2.finance.yahoo.com/v8/finance/chart/{symbol}"
    range: str = "3mo"
    interval: str = "1d"
    timeout_seconds: float = 30.0
    user_agent: str = "Mozilla/5.0 (Tickwise)"
    alias_csv: Optional[str] = None


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Every evaluator, consumer and CLI command receives an ``AppConfig``
    instance constructed by ``load_config()``.
    """

    model_config = ConfigDict(frozen=True)

    thresholds: ThresholdConfig = ThresholdConfig()
    indicators: IndicatorConfig = IndicatorConfig()
    weights: WeightConfig = WeightConfig()
    presentation: PresentationConfig = PresentationConfig()
    technical_log: TechnicalLogConfig = TechnicalLogConfig()
    news: NewsConfig = NewsConfig()
    llm: LLMConfig = LLMConfig()
    provider: ProviderConfig = ProviderConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

_SECTIONS = (
    "thresholds", "indicators", "weights", "presentation", "technical_log",
    "news", "llm", "provider", "logging",
)


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``; when that default file is
            absent (e.g. a non-editable install) built-in defaults are used.
        overrides: Nested dict of CLI-level values merged last, e.g.
            ``{"weights": {"ema": 2.0}, "presentation": {"stance": "buyer"}}``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load env files (silently skip if missing); the process env wins.
    for env_file in (Path.cwd() / "tickwise.env", root / "tickwise.env", root / ".env"):
        load_dotenv(dotenv_path=env_file, override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is None:
        default_path = root / "config" / "default.toml"
        if default_path.exists():
            config_path = default_path
        else:
            logger.debug("No %s found; using built-in defaults.", default_path)
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                "Pass --config with an existing file or create config/default.toml."
            )

    if config_path is not None:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

        # Also merge local.toml if present (gitignored local overrides)
        local_config_path = config_path.parent / "local.toml"
        if local_config_path.exists():
            with open(local_config_path, "rb") as f:
                local_raw: dict[str, Any] = tomllib.load(f)
            raw = _deep_merge(raw, local_raw)

    # 3. Apply TICKWISE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. CLI flags
    if overrides:
        raw = _deep_merge(raw, overrides)

    # 5. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      TICKWISE_LOG_LEVEL         → raw["logging"]["level"]
      TICKWISE_DEBUG             → raw["debug"]
      TICKWISE_STANCE            → raw["presentation"]["stance"]
      TICKWISE_INDICATORS        → raw["indicators"]["enabled"] (comma list or "all")
      TICKWISE_MACD_MINUS_OK     → raw["thresholds"]["macd_minus_ok"]
      TICKWISE_WEIGHT_<NAME>     → raw["weights"][<name>]
      TICKWISE_LOG_DIR           → raw["technical_log"]["log_dir"]
      TICKWISE_ALIAS_CSV         → raw["provider"]["alias_csv"]
      OPENAI_API_KEY             → raw["llm"]["openai_api_key"]
      BRAVE_API_KEY              → raw["news"]["brave_api_key"]
    """
    raw = {k: (dict(v) if isinstance(v, dict) else v) for k, v in raw.items()}

    if log_level := os.environ.get("TICKWISE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("TICKWISE_DEBUG"):
        raw["debug"] = _env_flag(debug)

    if stance := os.environ.get("TICKWISE_STANCE"):
        raw.setdefault("presentation", {})["stance"] = stance

    if indicators := os.environ.get("TICKWISE_INDICATORS"):
        raw.setdefault("indicators", {})["enabled"] = indicators

    if minus_ok := os.environ.get("TICKWISE_MACD_MINUS_OK"):
        raw.setdefault("thresholds", {})["macd_minus_ok"] = _env_flag(minus_ok)

    for name in WeightConfig.model_fields:
        if (weight := os.environ.get(f"TICKWISE_WEIGHT_{name.upper()}")) is not None:
            raw.setdefault("weights", {})[name] = weight

    if log_dir := os.environ.get("TICKWISE_LOG_DIR"):
        raw.setdefault("technical_log", {})["log_dir"] = log_dir

    if alias_csv := os.environ.get("TICKWISE_ALIAS_CSV"):
        raw.setdefault("provider", {})["alias_csv"] = alias_csv

    if openai_key := os.environ.get("OPENAI_API_KEY"):
        raw.setdefault("llm", {}).setdefault("openai_api_key", openai_key)

    if brave_key := os.environ.get("BRAVE_API_KEY"):
        raw.setdefault("news", {}).setdefault("brave_api_key", brave_key)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    unknown = set(raw) - set(_SECTIONS) - {"debug"}
    if unknown:
        logger.warning("Ignoring unknown config sections: %s", sorted(unknown))

    return AppConfig(
        thresholds=ThresholdConfig(**raw.get("thresholds", {})),
        indicators=IndicatorConfig(**raw.get("indicators", {})),
        weights=WeightConfig(**raw.get("weights", {})),
        presentation=PresentationConfig(**raw.get("presentation", {})),
        technical_log=TechnicalLogConfig(**raw.get("technical_log", {})),
        news=NewsConfig(**raw.get("news", {})),
        llm=LLMConfig(**raw.get("llm", {})),
        provider=ProviderConfig(**raw.get("provider", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", False),
    )
