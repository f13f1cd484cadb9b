from __future__ import annotations

import pytest

from moviemeta.services.title_matching import (
    is_valid_imdb_id,
    search_safe,
    strip_trailing_year,
    title_similarity,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Spider-Man: Homecoming", "Spider Man Homecoming"),
        ("  Amélie   ", "Amélie"),
        ("snake_case__title", "snake case title"),
        ("!!!", ""),
        (None, ""),
    ],
)
def test_search_safe(raw: str | None, expected: str) -> None:
    assert search_safe(raw) == expected


def test_strip_trailing_year() -> None:
    assert strip_trailing_year("Blade Runner 1982") == "Blade Runner"
    assert strip_trailing_year("1917") is None
    assert strip_trailing_year("Blade Runner") is None
    assert strip_trailing_year("Alien 3") is None


def test_title_similarity_bounds() -> None:
    assert title_similarity("The Matrix", "the matrix") == 1.0
    assert title_similarity("", "The Matrix") == 0.0
    assert title_similarity("The Matrix", None) == 0.0
    partial = title_similarity("Matrix", "The Matrix Reloaded")
    assert 0.0 < partial < 1.0


def test_is_valid_imdb_id() -> None:
    assert is_valid_imdb_id("tt0133093")
    assert is_valid_imdb_id(" tt12345678 ")
    assert not is_valid_imdb_id("tt123")
    assert not is_valid_imdb_id("nm0000206")
    assert not is_valid_imdb_id(None)
