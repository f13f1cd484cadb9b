from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeVar, cast
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from pydantic import BaseModel, ValidationError

from moviemeta.models.tmdb_contracts import (
    TmdbFindResults,
    TmdbKeyword,
    TmdbKeywords,
    TmdbMovie,
    TmdbMovieResultsPage,
    TmdbVideo,
    TmdbVideos,
)

LOGGER = logging.getLogger("moviemeta.tmdb_client")

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/"

ModelT = TypeVar("ModelT", bound=BaseModel)


class TmdbClientError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class MovieDatabaseApi(Protocol):
    """
    Typed operations the lookup services need from the remote movie database.

    Implementations raise `TmdbClientError` on transport or service failures and
    must be safe to call from several threads at once.
    """

    def get_movie(
        self,
        tmdb_id: int,
        *,
        language: str | None,
        append_to_response: Sequence[str] = (),
    ) -> TmdbMovie | None:
        ...

    def find_by_imdb_id(self, imdb_id: str, *, language: str | None) -> list[TmdbMovie]:
        ...

    def search_movies(
        self,
        query: str,
        *,
        page: int,
        language: str | None,
        include_adult: bool,
        year: int | None,
        primary_release_year: int | None,
        search_type: str,
    ) -> TmdbMovieResultsPage:
        ...

    def get_keywords(self, tmdb_id: int) -> list[TmdbKeyword]:
        ...

    def get_videos(self, tmdb_id: int, *, language: str | None) -> list[TmdbVideo]:
        ...

    def get_image_base_url(self) -> str:
        ...


class TmdbApiClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        http_timeout_seconds: float,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http_timeout_seconds = max(0.5, http_timeout_seconds)
        self._image_base_url: str | None = None

    def get_movie(
        self,
        tmdb_id: int,
        *,
        language: str | None,
        append_to_response: Sequence[str] = (),
    ) -> TmdbMovie | None:
        params: dict[str, str] = {}
        if language:
            params["language"] = language
        if append_to_response:
            params["append_to_response"] = ",".join(append_to_response)
        try:
            payload = self._get_json(f"/movie/{int(tmdb_id)}", params)
        except TmdbClientError as exc:
            if exc.status_code == 404:
                return None
            raise
        return _validate(TmdbMovie, payload)

    def find_by_imdb_id(self, imdb_id: str, *, language: str | None) -> list[TmdbMovie]:
        params = {"external_source": "imdb_id"}
        if language:
            params["language"] = language
        payload = self._get_json(f"/find/{quote(imdb_id.strip(), safe='')}", params)
        return _validate(TmdbFindResults, payload).movie_results

    def search_movies(
        self,
        query: str,
        *,
        page: int,
        language: str | None,
        include_adult: bool,
        year: int | None,
        primary_release_year: int | None,
        search_type: str,
    ) -> TmdbMovieResultsPage:
        params: dict[str, str] = {
            "query": query,
            "page": str(max(1, page)),
            "include_adult": "true" if include_adult else "false",
            "search_type": search_type,
        }
        if language:
            params["language"] = language
        if year is not None:
            params["year"] = str(year)
        if primary_release_year is not None:
            params["primary_release_year"] = str(primary_release_year)
        payload = self._get_json("/search/movie", params)
        return _validate(TmdbMovieResultsPage, payload)

    def get_keywords(self, tmdb_id: int) -> list[TmdbKeyword]:
        payload = self._get_json(f"/movie/{int(tmdb_id)}/keywords", {})
        return _validate(TmdbKeywords, payload).keywords

    def get_videos(self, tmdb_id: int, *, language: str | None) -> list[TmdbVideo]:
        params: dict[str, str] = {}
        if language:
            params["language"] = language
        payload = self._get_json(f"/movie/{int(tmdb_id)}/videos", params)
        return _validate(TmdbVideos, payload).results

    def get_image_base_url(self) -> str:
        if self._image_base_url is not None:
            return self._image_base_url
        try:
            payload = self._get_json("/configuration", {})
        except TmdbClientError as exc:
            LOGGER.warning(
                "tmdb configuration unavailable; using default image base url status=%s error=%s",
                exc.status_code,
                exc,
            )
            return DEFAULT_IMAGE_BASE_URL
        self._image_base_url = _image_base_url_from_configuration(payload)
        return self._image_base_url

    def _get_json(self, path: str, params: Mapping[str, str]) -> dict[str, Any]:
        query = urlencode({"api_key": self._api_key, **params})
        request = Request(
            url=f"{self._base_url}{path}?{query}",
            headers={"Accept": "application/json"},
            method="GET",
        )
        try:
            with urlopen(request, timeout=self._http_timeout_seconds) as response:
                raw_body = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            response_body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            raise TmdbClientError(
                f"TMDb request failed with HTTP {exc.code}: {path}",
                status_code=exc.code,
                body_snippet=response_body[:400],
            ) from exc
        except (URLError, TimeoutError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            raise TmdbClientError(f"TMDb request failed: {reason}") from exc

        try:
            parsed = json.loads(raw_body)
        except json.JSONDecodeError as exc:
            raise TmdbClientError(
                "TMDb returned non-JSON response.",
                body_snippet=raw_body[:400],
            ) from exc
        if not isinstance(parsed, dict):
            raise TmdbClientError("TMDb returned unexpected JSON shape (not an object).")
        return cast(dict[str, Any], parsed)


def _validate(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise TmdbClientError(
            f"TMDb returned an unexpected {model.__name__} payload: {exc.error_count()} errors"
        ) from exc


def _image_base_url_from_configuration(payload: Mapping[str, Any]) -> str:
    images = payload.get("images")
    if isinstance(images, Mapping):
        images_map = cast(Mapping[str, object], images)
        for key in ("secure_base_url", "base_url"):
            value = images_map.get(key)
            if isinstance(value, str) and value.strip():
                base = value.strip()
                return base if base.endswith("/") else f"{base}/"
    return DEFAULT_IMAGE_BASE_URL
