from __future__ import annotations

import logging

from structlog.contextvars import bind_contextvars, reset_contextvars

from moviemeta.models.metadata import (
    MediaMetadata,
    MediaTrailer,
    MediaType,
    ScrapeOptions,
    SearchCandidate,
    SearchQuery,
)
from moviemeta.models.tmdb_contracts import TmdbKeyword, TmdbMovie
from moviemeta.services.metadata_normalizer import MetadataNormalizer
from moviemeta.services.movie_resolver import MovieResolver
from moviemeta.services.remote_calls import LookupOutcome, call_remote
from moviemeta.services.tmdb_client import DEFAULT_IMAGE_BASE_URL, MovieDatabaseApi
from moviemeta.services.trailer_service import TrailerService
from moviemeta.telemetry import TelemetryClient

LOGGER = logging.getLogger("moviemeta.provider")

SUPPORTED_MEDIA_TYPE: MediaType = "movie"
FULL_RECORD_APPENDS: tuple[str, ...] = ("credits", "releases")
ALLOWED_KEYWORD_TAGS: frozenset[str] = frozenset({"aftercreditsstinger", "duringcreditsstinger"})


class UnsupportedMediaTypeError(ValueError):
    def __init__(self, media_type: str) -> None:
        super().__init__(f"TMDb movie provider cannot handle media type: {media_type}")
        self.media_type = media_type


class MovieMetadataProvider:
    """
    Movie lookups against TMDb for a host scraper.

    Remote failures never escape: `search` and `get_trailers` degrade to empty
    lists and `get_metadata` to an empty `MediaMetadata`. Only a request for a
    media type other than `movie` raises (`UnsupportedMediaTypeError`).
    """

    def __init__(
        self,
        api: MovieDatabaseApi,
        *,
        telemetry: TelemetryClient,
        base_language: str = "en",
        default_language: str = "en",
        include_adult: bool = False,
        search_result_limit: int = 20,
        retry_result_limit: int = 60,
        certification_country: str | None = None,
    ) -> None:
        self._api = api
        self._telemetry = telemetry
        self._base_language = base_language
        self._default_language = default_language
        self._certification_country = certification_country

        self._image_base_url = self._load_image_base_url()
        self._resolver = MovieResolver(
            api,
            telemetry=telemetry,
            image_base_url=self._image_base_url,
            default_language=default_language,
            include_adult=include_adult,
            search_result_limit=search_result_limit,
            retry_result_limit=retry_result_limit,
        )
        self._normalizer = MetadataNormalizer(self._image_base_url)
        self._trailers = TrailerService(api, telemetry=telemetry)

    @property
    def image_base_url(self) -> str:
        return self._image_base_url

    def search(self, query: SearchQuery) -> list[SearchCandidate]:
        _require_movie(query.media_type)
        tokens = bind_contextvars(tmdb_operation="search")
        try:
            return self._resolver.resolve(query)
        finally:
            reset_contextvars(**tokens)

    def get_metadata(self, options: ScrapeOptions) -> MediaMetadata:
        _require_movie(options.media_type)
        language = options.language or self._default_language
        country = options.country or self._certification_country
        tokens = bind_contextvars(tmdb_operation="get_metadata")
        try:
            tmdb_id = self._resolve_tmdb_id(options)
            if tmdb_id is None:
                LOGGER.warning(
                    "tmdb metadata skipped reason=no_usable_id imdb_id=%s",
                    options.imdb_id,
                )
                return MediaMetadata()

            record = self._fetch_record(tmdb_id, language=language)
            if not record.found or record.value is None:
                LOGGER.info(
                    "tmdb metadata unavailable tmdb_id=%s language=%s status=%s",
                    tmdb_id,
                    language,
                    record.status,
                )
                return MediaMetadata()

            movie = record.value
            metadata = self._normalizer.normalize(movie, language=language, country=country)
            if _is_blank(movie.overview) and not self._is_base_language(language):
                self._backfill_from_base_language(metadata, movie)
            self._add_keyword_tags(metadata, movie.id)
            return metadata
        finally:
            reset_contextvars(**tokens)

    def get_trailers(self, options: ScrapeOptions) -> list[MediaTrailer]:
        _require_movie(options.media_type)
        language = options.language or self._default_language
        tokens = bind_contextvars(tmdb_operation="get_trailers")
        try:
            tmdb_id = self._resolve_tmdb_id(options)
            if tmdb_id is None:
                LOGGER.info("tmdb trailers skipped reason=no_usable_id imdb_id=%s", options.imdb_id)
                return []
            return self._trailers.fetch(tmdb_id, language=language)
        finally:
            reset_contextvars(**tokens)

    def _load_image_base_url(self) -> str:
        outcome = call_remote(
            "get_image_base_url",
            self._api.get_image_base_url,
            telemetry=self._telemetry,
            is_empty=_is_blank,
        )
        if outcome.found and outcome.value:
            return outcome.value
        return DEFAULT_IMAGE_BASE_URL

    def _resolve_tmdb_id(self, options: ScrapeOptions) -> int | None:
        if options.result is not None and options.result.tmdb_id:
            return options.result.tmdb_id
        if options.provider_id:
            try:
                provider_id = int(options.provider_id)
            except ValueError:
                LOGGER.debug("ignoring non-numeric provider id value=%s", options.provider_id)
            else:
                if provider_id > 0:
                    return provider_id
        if options.tmdb_id is not None:
            return options.tmdb_id
        return self._resolver.lookup_tmdb_id(options.imdb_id)

    def _fetch_record(self, tmdb_id: int, *, language: str) -> LookupOutcome[TmdbMovie]:
        return call_remote(
            "get_movie",
            lambda: self._api.get_movie(
                tmdb_id,
                language=language,
                append_to_response=FULL_RECORD_APPENDS,
            ),
            telemetry=self._telemetry,
            tmdb_id=tmdb_id,
            language=language,
        )

    def _backfill_from_base_language(self, metadata: MediaMetadata, movie: TmdbMovie) -> None:
        # One extra fetch in the base language; it never triggers another fallback.
        fallback = self._fetch_record(movie.id, language=self._base_language)
        if not fallback.found or fallback.value is None:
            LOGGER.info(
                "tmdb locale fallback unavailable tmdb_id=%s base_language=%s",
                movie.id,
                self._base_language,
            )
            return
        base = fallback.value
        # A field is replaced only when it is blank here and filled in the base record.
        if _is_blank(movie.overview) and not _is_blank(base.overview):
            metadata.plot = base.overview
        if _is_blank(movie.title) and not _is_blank(base.title):
            metadata.title = base.title
        if _is_blank(movie.original_title) and not _is_blank(base.original_title):
            metadata.original_title = base.original_title
        if _is_blank(movie.tagline) and not _is_blank(base.tagline):
            metadata.tagline = base.tagline
        LOGGER.debug(
            "tmdb locale fallback applied tmdb_id=%s base_language=%s",
            movie.id,
            self._base_language,
        )

    def _add_keyword_tags(self, metadata: MediaMetadata, tmdb_id: int) -> None:
        outcome: LookupOutcome[list[TmdbKeyword]] = call_remote(
            "get_keywords",
            lambda: self._api.get_keywords(tmdb_id),
            telemetry=self._telemetry,
            tmdb_id=tmdb_id,
        )
        for keyword in outcome.value or []:
            if keyword.name in ALLOWED_KEYWORD_TAGS:
                metadata.add_tag(keyword.name)

    def _is_base_language(self, language: str) -> bool:
        return _primary_subtag(language) == _primary_subtag(self._base_language)


def _require_movie(media_type: str) -> None:
    if media_type != SUPPORTED_MEDIA_TYPE:
        raise UnsupportedMediaTypeError(media_type)


def _primary_subtag(language: str) -> str:
    return language.replace("_", "-").split("-", 1)[0].strip().casefold()


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()
