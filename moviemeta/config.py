from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "MOVIEMETA_"
DEFAULT_DATA_DIR = Path(".moviemeta")
DEFAULT_TMDB_BASE_URL = "https://api.themoviedb.org/3"
TELEMETRY_SINKS: frozenset[str] = frozenset({"none", "log", "memory"})

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off"})

TelemetrySinkName = Literal["none", "log", "memory"]


def _env_name(info: ValidationInfo) -> str:
    return f"{ENV_PREFIX}{(info.field_name or '').upper()}"


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    return default


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


class AppSettings(BaseSettings):
    """
    Runtime configuration for the TMDb movie provider.

    Every option is read from a `MOVIEMETA_*` environment variable (or `.env`).
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Root directory for runtime files.",
    )

    # TMDb access.
    tmdb_api_key: str | None = Field(
        default=None,
        description="TMDb v3 API key, sent as the `api_key` query parameter.",
    )
    tmdb_base_url: str = Field(
        default=DEFAULT_TMDB_BASE_URL,
        description="TMDb REST API base URL, without a trailing slash.",
    )
    tmdb_http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for one TMDb request; the client never goes below 0.5s.",
    )

    # Lookup behaviour.
    tmdb_base_language: str = Field(
        default="en",
        description="Language whose record backfills a blank translated plot, title or tagline.",
    )
    tmdb_default_language: str = Field(
        default="en",
        description="Language used when a search or scrape request does not carry one.",
    )
    tmdb_certification_country: str | None = Field(
        default=None,
        description="Keep only this country's certifications (ISO 3166-1 alpha-2).",
    )
    tmdb_include_adult: bool = Field(
        default=False,
        description="Ask TMDb to include adult titles in text searches.",
    )
    tmdb_search_result_limit: int = Field(
        default=20,
        ge=1,
        description="Candidates kept from a plain text search (one TMDb results page).",
    )
    tmdb_retry_result_limit: int = Field(
        default=60,
        ge=1,
        description="Candidates kept when a search is retried without its trailing year.",
    )

    # Logging.
    log_dir: Path | None = Field(
        default=None,
        description="Log file directory; `<data_dir>/logs` when unset.",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level.",
    )
    log_to_file: bool = Field(
        default=True,
        description="Also write JSON logs and a telemetry log under `log_dir`.",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Emit `tmdb.request` telemetry events.",
    )
    telemetry_sink: TelemetrySinkName = Field(
        default="log",
        description=(
            "`log` writes events to the telemetry log, `memory` keeps per-operation "
            "counters in process, `none` discards them."
        ),
    )

    @field_validator("tmdb_include_adult", "log_to_file", "telemetry_enabled", mode="before")
    @classmethod
    def _lenient_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        assert info.field_name is not None
        default = cls.model_fields[info.field_name].default
        return _coerce_bool(value, default=bool(default))

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("tmdb_base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, str) or not value.strip().rstrip("/"):
            raise ValueError(f"{_env_name(info)} must be a non-empty URL.")
        return value.strip().rstrip("/")

    @field_validator("tmdb_base_language", "tmdb_default_language", mode="before")
    @classmethod
    def _require_language(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{_env_name(info)} must be a non-empty language code.")
        return value.strip()

    @field_validator("tmdb_certification_country", mode="before")
    @classmethod
    def _upper_country(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _known_sink(cls, value: Any, info: ValidationInfo) -> str:
        normalized = value.strip().lower() if isinstance(value, str) else ""
        if normalized not in TELEMETRY_SINKS:
            choices = ", ".join(sorted(TELEMETRY_SINKS))
            raise ValueError(f"{_env_name(info)} must be one of: {choices}.")
        return normalized

    @model_validator(mode="after")
    def _resolve_directories(self) -> AppSettings:
        self.data_dir = self.data_dir.expanduser().resolve()
        log_dir = self.log_dir if self.log_dir is not None else self.data_dir / "logs"
        self.log_dir = log_dir.expanduser().resolve()
        return self

    @property
    def resolved_log_dir(self) -> Path:
        assert self.log_dir is not None
        return self.log_dir


def _configuration_errors(settings: AppSettings, *, require_api_key: bool) -> list[str]:
    errors: list[str] = []
    if require_api_key and settings.tmdb_api_key is None:
        errors.append(f"{ENV_PREFIX}TMDB_API_KEY is required to query TMDb.")
    if settings.tmdb_retry_result_limit <= settings.tmdb_search_result_limit:
        errors.append(
            f"{ENV_PREFIX}TMDB_RETRY_RESULT_LIMIT must be greater than "
            f"{ENV_PREFIX}TMDB_SEARCH_RESULT_LIMIT."
        )
    return errors


def load_settings(*, require_api_key: bool = True) -> AppSettings:
    settings = AppSettings()
    errors = _configuration_errors(settings, require_api_key=require_api_key)
    if errors:
        bullets = "\n".join(f"- {message}" for message in errors)
        raise ValueError(f"Invalid configuration:\n{bullets}")
    return settings
