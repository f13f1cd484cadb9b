from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from moviemeta.models.metadata import MediaGenre
from moviemeta.models.tmdb_contracts import TmdbGenre

UNKNOWN_GENRE: Final[MediaGenre] = "unknown"

# TMDb movie genre ids (https://api.themoviedb.org/3/genre/movie/list).
TMDB_GENRE_TABLE: Final[Mapping[int, MediaGenre]] = MappingProxyType(
    {
        28: "action",
        12: "adventure",
        16: "animation",
        35: "comedy",
        80: "crime",
        99: "documentary",
        18: "drama",
        10751: "family",
        14: "fantasy",
        36: "history",
        27: "horror",
        10402: "music",
        9648: "mystery",
        10749: "romance",
        878: "science_fiction",
        10770: "tv_movie",
        53: "thriller",
        10752: "war",
        37: "western",
    }
)


def map_genre_id(genre_id: int) -> MediaGenre:
    mapped = TMDB_GENRE_TABLE.get(genre_id)
    if mapped is None:
        return UNKNOWN_GENRE
    return mapped


def map_genres(genres: list[TmdbGenre] | None) -> list[MediaGenre]:
    """Map TMDb genres in order; ids missing from the table become `unknown`."""
    return [map_genre_id(genre.id) for genre in genres or []]
