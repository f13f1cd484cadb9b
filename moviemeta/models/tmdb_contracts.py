from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _TmdbModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class TmdbGenre(_TmdbModel):
    id: int
    name: str | None = None


class TmdbSpokenLanguage(_TmdbModel):
    iso_639_1: str
    name: str | None = None


class TmdbProductionCountry(_TmdbModel):
    iso_3166_1: str
    name: str | None = None


class TmdbProductionCompany(_TmdbModel):
    id: int | None = None
    name: str = ""


class TmdbCollection(_TmdbModel):
    id: int
    name: str | None = None


class TmdbCastMember(_TmdbModel):
    id: int | None = None
    name: str | None = None
    character: str | None = None
    profile_path: str | None = None
    order: int | None = None


class TmdbCrewMember(_TmdbModel):
    id: int | None = None
    name: str | None = None
    department: str | None = None
    job: str | None = None
    profile_path: str | None = None


class TmdbCredits(_TmdbModel):
    cast: list[TmdbCastMember] | None = None
    crew: list[TmdbCrewMember] | None = None


class TmdbCountryRelease(_TmdbModel):
    iso_3166_1: str
    certification: str | None = None


class TmdbReleases(_TmdbModel):
    countries: list[TmdbCountryRelease] | None = None


class TmdbMovie(_TmdbModel):
    """
    A movie as returned by `/movie/{id}`, `/search/movie` and `/find/{id}`.

    Search and find results only carry the summary fields; credits and releases
    are present when the detail request appended them.
    """

    id: int
    imdb_id: str | None = None
    title: str | None = None
    original_title: str | None = None
    overview: str | None = None
    tagline: str | None = None
    poster_path: str | None = None
    release_date: date | None = None
    runtime: int | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    spoken_languages: list[TmdbSpokenLanguage] | None = None
    production_countries: list[TmdbProductionCountry] | None = None
    production_companies: list[TmdbProductionCompany] | None = None
    genres: list[TmdbGenre] | None = None
    belongs_to_collection: TmdbCollection | None = None
    credits: TmdbCredits | None = None
    releases: TmdbReleases | None = None

    @field_validator("release_date", mode="before")
    @classmethod
    def _blank_release_date(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TmdbMovieResultsPage(_TmdbModel):
    page: int = 1
    total_pages: int = 0
    total_results: int = 0
    results: list[TmdbMovie] = Field(default_factory=list)


class TmdbFindResults(_TmdbModel):
    movie_results: list[TmdbMovie] = Field(default_factory=list)


class TmdbKeyword(_TmdbModel):
    id: int | None = None
    name: str


class TmdbKeywords(_TmdbModel):
    id: int | None = None
    keywords: list[TmdbKeyword] = Field(default_factory=list)


class TmdbVideo(_TmdbModel):
    id: str | None = None
    name: str | None = None
    site: str | None = None
    key: str | None = None
    size: int = 0
    type: str | None = None


class TmdbVideos(_TmdbModel):
    id: int | None = None
    results: list[TmdbVideo] = Field(default_factory=list)
