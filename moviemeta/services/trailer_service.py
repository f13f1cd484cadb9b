from __future__ import annotations

import logging

from moviemeta.models.metadata import MediaTrailer
from moviemeta.models.tmdb_contracts import TmdbVideo
from moviemeta.services.remote_calls import call_remote
from moviemeta.services.tmdb_client import MovieDatabaseApi
from moviemeta.telemetry import TelemetryClient

LOGGER = logging.getLogger("moviemeta.trailers")

TRAILER_TYPE = "Trailer"
YOUTUBE_SITE = "youtube"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={key}"
HD_MARKER = "&hd=1"
HD_MIN_SIZE = 720


class TrailerService:
    def __init__(self, api: MovieDatabaseApi, *, telemetry: TelemetryClient) -> None:
        self._api = api
        self._telemetry = telemetry

    def fetch(self, tmdb_id: int, *, language: str) -> list[MediaTrailer]:
        """
        Collect trailers for `tmdb_id` from a language-scoped and an unscoped
        videos request, dropping entries without a key and exact duplicates.
        """
        videos: list[TmdbVideo] = []
        for scope in (language, None):
            outcome = call_remote(
                "get_videos",
                lambda: self._api.get_videos(tmdb_id, language=scope),
                telemetry=self._telemetry,
                tmdb_id=tmdb_id,
                language=scope,
            )
            if outcome.found and outcome.value:
                videos.extend(outcome.value)

        trailers: list[MediaTrailer] = []
        for video in videos:
            trailer = to_trailer(video)
            if trailer is not None and trailer not in trailers:
                trailers.append(trailer)

        LOGGER.info(
            "tmdb trailers fetched tmdb_id=%s language=%s videos=%s trailers=%s",
            tmdb_id,
            language,
            len(videos),
            len(trailers),
        )
        return trailers


def to_trailer(video: TmdbVideo) -> MediaTrailer | None:
    if video.type != TRAILER_TYPE:
        return None
    key = (video.key or "").strip()
    if not key:
        return None
    return MediaTrailer(
        name=video.name,
        provider=video.site,
        quality=str(video.size),
        url=_trailer_url(video.site, key, video.size),
    )


def _trailer_url(site: str | None, key: str, size: int) -> str:
    if (site or "").strip().casefold() != YOUTUBE_SITE:
        return key
    url = YOUTUBE_WATCH_URL.format(key=key)
    if size >= HD_MIN_SIZE and HD_MARKER not in key:
        url += HD_MARKER
    return url
