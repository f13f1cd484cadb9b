from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from moviemeta.config import AppSettings, load_settings
from moviemeta.dependencies import get_movie_provider, get_settings, get_tmdb_client


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:  # pyright: ignore[reportUnusedFunction]
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MOVIEMETA_TMDB_API_KEY", raising=False)
    monkeypatch.delenv("MOVIEMETA_LOG_DIR", raising=False)


def test_load_settings_reads_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIEMETA_DATA_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("MOVIEMETA_TMDB_API_KEY", "  key-123  ")
    monkeypatch.setenv("MOVIEMETA_TMDB_BASE_URL", "https://tmdb.test/3/")
    monkeypatch.setenv("MOVIEMETA_TMDB_CERTIFICATION_COUNTRY", " de ")
    monkeypatch.setenv("MOVIEMETA_TMDB_INCLUDE_ADULT", "yes")
    monkeypatch.setenv("MOVIEMETA_TELEMETRY_SINK", " NONE ")

    settings = load_settings()

    assert settings.tmdb_api_key == "key-123"
    assert settings.tmdb_base_url == "https://tmdb.test/3"
    assert settings.tmdb_certification_country == "DE"
    assert settings.tmdb_include_adult is True
    assert settings.telemetry_sink == "none"
    assert settings.data_dir == (tmp_path / "state").resolve()
    assert settings.log_dir == (tmp_path / "state" / "logs").resolve()


def test_load_settings_requires_api_key() -> None:
    with pytest.raises(ValueError, match="MOVIEMETA_TMDB_API_KEY is required"):
        load_settings()

    assert load_settings(require_api_key=False).tmdb_api_key is None


def test_unparseable_booleans_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIEMETA_LOG_TO_FILE", "maybe")
    monkeypatch.setenv("MOVIEMETA_TELEMETRY_ENABLED", "0")

    settings = load_settings(require_api_key=False)

    assert settings.log_to_file is True
    assert settings.telemetry_enabled is False


@pytest.mark.parametrize(
    ("env_name", "value"),
    [
        ("MOVIEMETA_TELEMETRY_SINK", "otlp"),
        ("MOVIEMETA_TMDB_BASE_URL", " / "),
        ("MOVIEMETA_TMDB_BASE_LANGUAGE", "   "),
        ("MOVIEMETA_TMDB_SEARCH_RESULT_LIMIT", "0"),
    ],
)
def test_invalid_values_are_rejected(
    monkeypatch: pytest.MonkeyPatch,
    env_name: str,
    value: str,
) -> None:
    monkeypatch.setenv(env_name, value)

    with pytest.raises(ValidationError):
        AppSettings()


def test_dependencies_are_built_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIEMETA_TMDB_API_KEY", "key-123")
    monkeypatch.setattr(
        "moviemeta.services.tmdb_client.TmdbApiClient.get_image_base_url",
        lambda self: "http://img/",
    )

    provider = get_movie_provider()

    assert provider is get_movie_provider()
    assert get_tmdb_client() is get_tmdb_client()
    assert get_settings().tmdb_api_key == "key-123"
    assert provider.image_base_url == "http://img/"


def test_retry_limit_must_exceed_search_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIEMETA_TMDB_SEARCH_RESULT_LIMIT", "40")
    monkeypatch.setenv("MOVIEMETA_TMDB_RETRY_RESULT_LIMIT", "40")

    with pytest.raises(ValueError, match="TMDB_RETRY_RESULT_LIMIT must be greater") as exc_info:
        load_settings()

    assert "TMDB_API_KEY is required" in str(exc_info.value)
    with pytest.raises(ValueError, match="TMDB_RETRY_RESULT_LIMIT must be greater"):
        load_settings(require_api_key=False)


def test_explicit_log_dir_and_memory_sink(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MOVIEMETA_LOG_DIR", str(tmp_path / "elsewhere"))
    monkeypatch.setenv("MOVIEMETA_TELEMETRY_SINK", "Memory")

    settings = load_settings(require_api_key=False)

    assert settings.resolved_log_dir == (tmp_path / "elsewhere").resolve()
    assert settings.telemetry_sink == "memory"
