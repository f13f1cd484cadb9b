from __future__ import annotations

from moviemeta.models.tmdb_contracts import TmdbGenre
from moviemeta.services.genre_mapping import (
    TMDB_GENRE_TABLE,
    UNKNOWN_GENRE,
    map_genre_id,
    map_genres,
)


def test_every_table_entry_maps_to_a_known_genre() -> None:
    assert len(TMDB_GENRE_TABLE) == 19
    assert UNKNOWN_GENRE not in TMDB_GENRE_TABLE.values()
    assert map_genre_id(878) == "science_fiction"


def test_map_genres_preserves_order_and_marks_unknown() -> None:
    genres = [TmdbGenre(id=10749), TmdbGenre(id=1), TmdbGenre(id=35)]

    assert map_genres(genres) == ["romance", UNKNOWN_GENRE, "comedy"]
    assert map_genres(None) == []
