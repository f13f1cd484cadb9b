from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROVIDER_ID = "tmdb"
IMDB_ID_KEY = "imdb"
TMDB_SET_ID_KEY = "tmdbSet"

MediaType = Literal["movie", "tv"]
CastRole = Literal["actor", "director", "writer", "producer"]
ArtworkKind = Literal["poster"]
MediaGenre = Literal[
    "action",
    "adventure",
    "animation",
    "comedy",
    "crime",
    "documentary",
    "drama",
    "family",
    "fantasy",
    "history",
    "horror",
    "music",
    "mystery",
    "romance",
    "science_fiction",
    "tv_movie",
    "thriller",
    "war",
    "western",
    "unknown",
]


@dataclass(frozen=True)
class SearchCandidate:
    tmdb_id: int
    title: str | None
    original_title: str | None
    year: int | None
    poster_url: str | None
    imdb_id: str | None = None
    score: float = 0.0
    provider: str = PROVIDER_ID


@dataclass(frozen=True)
class MediaArtwork:
    preview_url: str | None
    default_url: str | None
    language: str
    tmdb_id: int
    kind: ArtworkKind = "poster"
    provider: str = PROVIDER_ID


@dataclass(frozen=True)
class MediaCastMember:
    role: CastRole
    name: str | None
    character: str | None = None
    part: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class Certification:
    country: str
    label: str


@dataclass(frozen=True)
class MediaTrailer:
    name: str | None
    provider: str | None
    quality: str
    url: str


@dataclass
class MediaMetadata:
    """Host-side metadata for one title. Filled in place, one instance per fetch."""

    provider: str = PROVIDER_ID
    ids: dict[str, int | str] = field(default_factory=dict)
    title: str | None = None
    original_title: str | None = None
    plot: str | None = None
    tagline: str | None = None
    year: int | None = None
    release_date: date | None = None
    runtime: int | None = None
    rating: float = 0.0
    vote_count: int = 0
    artwork: list[MediaArtwork] = field(default_factory=list)
    spoken_languages: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    production_companies: list[str] = field(default_factory=list)
    certifications: list[Certification] = field(default_factory=list)
    cast_members: list[MediaCastMember] = field(default_factory=list)
    genres: list[MediaGenre] = field(default_factory=list)
    collection_id: int | None = None
    collection_name: str | None = None
    tags: list[str] = field(default_factory=list)

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)


def _zero_as_missing(value: Any) -> Any:
    if value == 0 or value == "":
        return None
    return value


class SearchQuery(BaseModel):
    """
    User supplied search criteria.

    Either a non-blank `query` or one of the identifiers must be present for a
    search to reach TMDb.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    query: str = ""
    year: int | None = None
    tmdb_id: int | None = None
    imdb_id: str | None = None
    language: str | None = None
    media_type: MediaType = "movie"

    @field_validator("year", "tmdb_id", mode="before")
    @classmethod
    def _zero_means_absent(cls, value: Any) -> Any:
        return _zero_as_missing(value)

    @field_validator("imdb_id", "language", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value


class ScrapeOptions(BaseModel):
    """Identifies the title whose metadata or trailers should be fetched."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    result: SearchCandidate | None = None
    provider_id: str | None = None
    tmdb_id: int | None = None
    imdb_id: str | None = None
    language: str | None = None
    country: str | None = Field(
        default=None,
        description="ISO 3166-1 alpha-2 filter for certifications.",
    )
    media_type: MediaType = "movie"

    @field_validator("tmdb_id", mode="before")
    @classmethod
    def _zero_means_absent(cls, value: Any) -> Any:
        return _zero_as_missing(value)

    @field_validator("provider_id", "imdb_id", "language", "country", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value
