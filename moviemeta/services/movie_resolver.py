from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from moviemeta.models.metadata import SearchCandidate, SearchQuery
from moviemeta.models.tmdb_contracts import TmdbMovie, TmdbMovieResultsPage
from moviemeta.services.remote_calls import LookupOutcome, call_remote
from moviemeta.services.title_matching import (
    is_valid_imdb_id,
    search_safe,
    strip_trailing_year,
    title_similarity,
)
from moviemeta.services.tmdb_client import MovieDatabaseApi
from moviemeta.telemetry import TelemetryClient

LOGGER = logging.getLogger("moviemeta.resolver")

POSTER_SEARCH_SIZE = "w342"
SEARCH_TYPE = "phrase"


@dataclass(frozen=True)
class _Strategy:
    name: str
    scoring_text: str
    run: Callable[[], LookupOutcome[list[TmdbMovie]]]


class MovieResolver:
    """
    Turns free-text search criteria into scored TMDb candidates.

    Strategies run in a fixed order (TMDb id, IMDb id, text search, text search
    without a trailing year) and the first one that yields a candidate wins.
    A failing strategy only contributes nothing; it never aborts resolution.
    """

    def __init__(
        self,
        api: MovieDatabaseApi,
        *,
        telemetry: TelemetryClient,
        image_base_url: str,
        default_language: str,
        include_adult: bool = False,
        search_result_limit: int = 20,
        retry_result_limit: int = 60,
    ) -> None:
        self._api = api
        self._telemetry = telemetry
        self._image_base_url = image_base_url
        self._default_language = default_language
        self._include_adult = include_adult
        self._search_result_limit = max(1, search_result_limit)
        self._retry_result_limit = max(self._search_result_limit + 1, retry_result_limit)

    def resolve(self, query: SearchQuery) -> list[SearchCandidate]:
        search_text = search_safe(query.query)
        imdb_id = query.imdb_id if is_valid_imdb_id(query.imdb_id) else None
        if not search_text:
            LOGGER.debug("tmdb search skipped reason=empty_query")
            return []

        language = query.language or self._default_language
        LOGGER.info(
            "tmdb search start query=%s year=%s tmdb_id=%s imdb_id=%s language=%s",
            search_text,
            query.year,
            query.tmdb_id,
            imdb_id,
            language,
        )

        records: list[TmdbMovie] = []
        scoring_text = search_text
        for strategy in self._strategies(query, search_text, imdb_id, language):
            outcome = strategy.run()
            LOGGER.debug(
                "tmdb search strategy=%s status=%s results=%s",
                strategy.name,
                outcome.status,
                len(outcome.value or []),
            )
            if outcome.found and outcome.value:
                records = outcome.value
                scoring_text = strategy.scoring_text
                break

        candidates = [
            self._score(
                self._candidate_from_movie(movie),
                scoring_text=scoring_text,
                tmdb_id=query.tmdb_id,
                imdb_id=imdb_id,
            )
            for movie in records
        ]
        LOGGER.info("tmdb search done query=%s results=%s", search_text, len(candidates))
        return candidates

    def lookup_tmdb_id(self, imdb_id: str | None) -> int | None:
        """Resolve a TMDb id through the IMDb find endpoint (first movie result only)."""
        if not is_valid_imdb_id(imdb_id):
            return None
        assert imdb_id is not None
        outcome = self._find_by_imdb_id(imdb_id.strip(), language=None)
        if not outcome.found or not outcome.value:
            return None
        return outcome.value[0].id

    def _strategies(
        self,
        query: SearchQuery,
        search_text: str,
        imdb_id: str | None,
        language: str,
    ) -> list[_Strategy]:
        strategies: list[_Strategy] = []
        tmdb_id = query.tmdb_id
        if tmdb_id is not None:
            strategies.append(
                _Strategy(
                    name="tmdb_id",
                    scoring_text=search_text,
                    run=lambda: self._lookup_by_tmdb_id(tmdb_id, language=language),
                )
            )
        if imdb_id is not None:
            strategies.append(
                _Strategy(
                    name="imdb_id",
                    scoring_text=search_text,
                    run=lambda: self._find_by_imdb_id(imdb_id, language=language),
                )
            )
        if search_text:
            strategies.append(
                _Strategy(
                    name="text",
                    scoring_text=search_text,
                    run=lambda: self._search_text(
                        search_text,
                        year=query.year,
                        language=language,
                        limit=self._search_result_limit,
                    ),
                )
            )
            without_year = strip_trailing_year(search_text)
            if without_year is not None:
                strategies.append(
                    _Strategy(
                        name="text_without_trailing_year",
                        scoring_text=without_year,
                        run=lambda: self._search_text(
                            without_year,
                            year=query.year,
                            language=language,
                            limit=self._retry_result_limit,
                        ),
                    )
                )
        return strategies

    def _lookup_by_tmdb_id(self, tmdb_id: int, *, language: str) -> LookupOutcome[list[TmdbMovie]]:
        outcome = call_remote(
            "get_movie",
            lambda: self._api.get_movie(tmdb_id, language=language),
            telemetry=self._telemetry,
            tmdb_id=tmdb_id,
            language=language,
        )
        if not outcome.found or outcome.value is None:
            return LookupOutcome(status=outcome.status, error=outcome.error)
        return LookupOutcome.of([outcome.value])

    def _find_by_imdb_id(
        self,
        imdb_id: str,
        *,
        language: str | None,
    ) -> LookupOutcome[list[TmdbMovie]]:
        return call_remote(
            "find_by_imdb_id",
            lambda: self._api.find_by_imdb_id(imdb_id, language=language),
            telemetry=self._telemetry,
            imdb_id=imdb_id,
            language=language,
        )

    def _search_text(
        self,
        text: str,
        *,
        year: int | None,
        language: str,
        limit: int,
    ) -> LookupOutcome[list[TmdbMovie]]:
        collected: list[TmdbMovie] = []
        page = 1
        while len(collected) < limit:
            current_page = page
            outcome = call_remote(
                "search_movies",
                lambda: self._api.search_movies(
                    text,
                    page=current_page,
                    language=language,
                    include_adult=self._include_adult,
                    year=year,
                    primary_release_year=year,
                    search_type=SEARCH_TYPE,
                ),
                telemetry=self._telemetry,
                is_empty=_is_empty_page,
                query=text,
                page=current_page,
                year=year,
            )
            if outcome.status == "error" and not collected:
                return LookupOutcome.failed(outcome.error or "search failed")
            results_page = outcome.value
            if not outcome.found or results_page is None:
                break
            collected.extend(results_page.results)
            if current_page >= results_page.total_pages:
                break
            page += 1
        return LookupOutcome.of(collected[:limit])

    def _candidate_from_movie(self, movie: TmdbMovie) -> SearchCandidate:
        poster_url = None
        if movie.poster_path:
            poster_url = f"{self._image_base_url}{POSTER_SEARCH_SIZE}{movie.poster_path}"
        return SearchCandidate(
            tmdb_id=movie.id,
            imdb_id=movie.imdb_id,
            title=movie.title,
            original_title=movie.original_title,
            year=movie.release_date.year if movie.release_date is not None else None,
            poster_url=poster_url,
        )

    def _score(
        self,
        candidate: SearchCandidate,
        *,
        scoring_text: str,
        tmdb_id: int | None,
        imdb_id: str | None,
    ) -> SearchCandidate:
        exact_imdb = imdb_id is not None and candidate.imdb_id == imdb_id
        exact_tmdb = tmdb_id is not None and candidate.tmdb_id == tmdb_id
        if exact_imdb or exact_tmdb:
            score = 1.0
        else:
            score = title_similarity(scoring_text, candidate.title)
        return _with_score(candidate, score)


def _with_score(candidate: SearchCandidate, score: float) -> SearchCandidate:
    return SearchCandidate(
        tmdb_id=candidate.tmdb_id,
        imdb_id=candidate.imdb_id,
        title=candidate.title,
        original_title=candidate.original_title,
        year=candidate.year,
        poster_url=candidate.poster_url,
        score=round(score, 4),
        provider=candidate.provider,
    )


def _is_empty_page(page: TmdbMovieResultsPage) -> bool:
    return not page.results
