from __future__ import annotations

from functools import lru_cache

from moviemeta.config import AppSettings, load_settings
from moviemeta.services.movie_metadata_provider import MovieMetadataProvider
from moviemeta.services.tmdb_client import TmdbApiClient
from moviemeta.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_telemetry_client() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


@lru_cache(maxsize=1)
def get_tmdb_client() -> TmdbApiClient:
    settings = get_settings()
    assert settings.tmdb_api_key is not None
    return TmdbApiClient(
        api_key=settings.tmdb_api_key,
        base_url=settings.tmdb_base_url,
        http_timeout_seconds=settings.tmdb_http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_movie_provider() -> MovieMetadataProvider:
    settings = get_settings()
    return MovieMetadataProvider(
        get_tmdb_client(),
        telemetry=get_telemetry_client(),
        base_language=settings.tmdb_base_language,
        default_language=settings.tmdb_default_language,
        include_adult=settings.tmdb_include_adult,
        search_result_limit=settings.tmdb_search_result_limit,
        retry_result_limit=settings.tmdb_retry_result_limit,
        certification_country=settings.tmdb_certification_country,
    )


def reset_cached_dependencies() -> None:
    get_movie_provider.cache_clear()
    get_tmdb_client.cache_clear()
    get_telemetry_client.cache_clear()
    get_settings.cache_clear()
