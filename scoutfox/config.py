from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".scoutfox"
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (
    ("db_path", Path("state.db")),
    ("log_dir", Path("logs")),
)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = ("telemetry_enabled",)
_OPTIONAL_TEXT_FIELDS: tuple[str, ...] = ("proxy_base_url", "youtube_api_key", "groq_api_key")
_BASE_URL_FIELDS: tuple[str, ...] = (
    "youtube_api_base_url",
    "groq_base_url",
    "marketplace_search_url",
)


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{SCOUTFOX_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in {0, 1}:
            return bool(value)
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    return normalized or None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from a `SCOUTFOX_*` environment variable (or `.env`).
    Per-request credentials travel in `ResolutionConfig`; the keys here are
    only defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCOUTFOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for the search cache and logs.",
    )
    db_path: Path = Field(
        default=_default_in_data_dir(Path("state.db")),
        description=f"SQLite database path. {_data_dir_default_note(Path('state.db'))}",
    )

    # Remote proxy.
    proxy_base_url: str | None = Field(
        default=None,
        description="Base URL of the hosted search/extraction proxy. Unset disables it.",
    )
    proxy_search_timeout_seconds: float = Field(
        default=20.0,
        ge=1.0,
        description="Timeout for proxy search-by-product calls.",
    )
    proxy_extract_timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        description="Timeout for proxy extract-product calls.",
    )

    # Direct YouTube Data API access.
    youtube_api_key: str | None = Field(
        default=None,
        description="Default YouTube Data API key used when the proxy is unavailable.",
    )
    youtube_api_base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        description="YouTube Data API base URL.",
    )
    youtube_timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        description="Timeout for each YouTube Data API request.",
    )
    youtube_max_results: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Videos returned per search.",
    )

    # AI title rewrite.
    groq_api_key: str | None = Field(
        default=None,
        description="Groq API key for AI title optimization. Unset disables the rewrite.",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible base URL used for title optimization.",
    )
    groq_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Chat model used for title optimization.",
    )
    groq_timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        description="Timeout for title optimization calls.",
    )

    # Cache and retry policy.
    search_cache_ttl_seconds: int = Field(
        default=86_400,
        ge=1,
        description="TTL for cached search results.",
    )
    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per YouTube call when rate limited (403/429).",
    )
    retry_initial_backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="First backoff delay; doubles after every rate-limited attempt.",
    )

    # Video -> product direction.
    candidate_confidence_threshold: float = Field(
        default=0.5,
        description="Minimum confidence for AI product candidates.",
    )
    marketplace_search_url: str = Field(
        default="https://www.amazon.com/s",
        description="Marketplace search endpoint used to build product search links.",
    )

    # Logging.
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for log files. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description="Telemetry sink backend: `log` writes structured events, `none` drops them.",
    )

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("SCOUTFOX_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("SCOUTFOX_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("candidate_confidence_threshold")
    @classmethod
    def _validate_confidence_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("SCOUTFOX_CANDIDATE_CONFIDENCE_THRESHOLD must be between 0 and 1.")
        return value

    @field_validator(*_BASE_URL_FIELDS, mode="before")
    @classmethod
    def _normalize_base_urls(cls, value: Any, info: ValidationInfo) -> str:
        env_name = f"SCOUTFOX_{str(info.field_name).upper()}"
        if not isinstance(value, str):
            raise ValueError(f"{env_name} must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError(f"{env_name} must not be empty.")
        return normalized

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator(*_OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any, info: ValidationInfo) -> str | None:
        normalized = _normalize_optional_text(value)
        if normalized is not None and info.field_name == "proxy_base_url":
            return normalized.rstrip("/")
        return normalized


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name)) for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings() -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    return _resolve_path_fields(settings)
