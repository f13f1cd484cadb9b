from __future__ import annotations

import pytest

from moviemeta.models.metadata import MediaMetadata, ScrapeOptions, SearchCandidate, SearchQuery
from moviemeta.models.tmdb_contracts import TmdbKeyword, TmdbVideo
from moviemeta.services.movie_metadata_provider import (
    MovieMetadataProvider,
    UnsupportedMediaTypeError,
)
from moviemeta.services.tmdb_client import DEFAULT_IMAGE_BASE_URL
from moviemeta.telemetry import TelemetryClient
from tests.fakes import FakeMovieDatabase, movie


def _provider(
    api: FakeMovieDatabase,
    telemetry: TelemetryClient,
    *,
    certification_country: str | None = None,
) -> MovieMetadataProvider:
    return MovieMetadataProvider(
        api,
        telemetry=telemetry,
        base_language="en",
        default_language="en",
        certification_country=certification_country,
    )


def test_image_base_url_is_read_once_at_startup(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    provider = _provider(fake_api, telemetry)

    assert provider.image_base_url == "http://img/"
    assert len(fake_api.calls_to("get_image_base_url")) == 1


def test_image_base_url_falls_back_to_default(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.fail("get_image_base_url")

    provider = _provider(fake_api, telemetry)

    assert provider.image_base_url == DEFAULT_IMAGE_BASE_URL


def test_non_movie_requests_are_rejected(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    provider = _provider(fake_api, telemetry)
    fake_api.calls.clear()

    with pytest.raises(UnsupportedMediaTypeError):
        provider.search(SearchQuery(query="Lost", media_type="tv"))
    with pytest.raises(UnsupportedMediaTypeError):
        provider.get_metadata(ScrapeOptions(tmdb_id=4607, media_type="tv"))
    with pytest.raises(ValueError):
        provider.get_trailers(ScrapeOptions(tmdb_id=4607, media_type="tv"))
    assert fake_api.calls == []


def test_search_delegates_to_resolver(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_search_results("Up", [movie(14160, "Up", poster_path="/up.jpg")])
    provider = _provider(fake_api, telemetry)

    candidates = provider.search(SearchQuery(query="Up"))

    assert candidates == [
        SearchCandidate(
            tmdb_id=14160,
            title="Up",
            original_title=None,
            year=None,
            poster_url="http://img/w342/up.jpg",
            score=1.0,
        )
    ]


def test_get_metadata_fetches_full_record_and_keyword_tags(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(
        movie(
            27205,
            "Inception",
            overview="Dreams within dreams.",
            releases={
                "countries": [
                    {"iso_3166_1": "US", "certification": "PG-13"},
                    {"iso_3166_1": "DE", "certification": "12"},
                ]
            },
        ),
        language="en",
    )
    fake_api.keywords[27205] = [
        TmdbKeyword(name="dream"),
        TmdbKeyword(name="aftercreditsstinger"),
        TmdbKeyword(name="duringcreditsstinger"),
        TmdbKeyword(name="aftercreditsstinger"),
    ]
    provider = _provider(fake_api, telemetry, certification_country="DE")

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=27205))

    assert metadata.title == "Inception"
    assert metadata.tags == ["aftercreditsstinger", "duringcreditsstinger"]
    assert [certification.label for certification in metadata.certifications] == ["12"]
    get_movie_call = fake_api.calls_to("get_movie")[0]
    assert get_movie_call["append_to_response"] == ("credits", "releases")
    assert get_movie_call["language"] == "en"
    assert fake_api.calls_to("get_keywords") == [{"tmdb_id": 27205}]


def test_get_metadata_id_resolution_order(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(movie(1, "From result"))
    fake_api.add_movie(movie(2, "From provider id"))
    fake_api.add_movie(movie(3, "From tmdb id"))
    fake_api.add_movie(movie(4, "From imdb"))
    fake_api.find_results["tt0000004"] = [movie(4, "From imdb")]
    provider = _provider(fake_api, telemetry)
    result = SearchCandidate(
        tmdb_id=1,
        title="From result",
        original_title=None,
        year=None,
        poster_url=None,
    )

    requests = [
        ScrapeOptions(result=result, provider_id="2"),
        ScrapeOptions(provider_id="2", tmdb_id=3),
        ScrapeOptions(provider_id="abc", tmdb_id=3),
        ScrapeOptions(imdb_id="tt0000004"),
    ]

    titles = [provider.get_metadata(options).title for options in requests]

    assert titles == ["From result", "From provider id", "From tmdb id", "From imdb"]


def test_get_metadata_without_usable_id_returns_empty_metadata(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    provider = _provider(fake_api, telemetry)
    fake_api.calls.clear()

    metadata = provider.get_metadata(ScrapeOptions(imdb_id="not-an-imdb-id"))

    assert metadata == MediaMetadata()
    assert fake_api.calls == []


def test_get_metadata_swallows_remote_failures(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.fail("get_movie", status_code=503)
    provider = _provider(fake_api, telemetry)

    assert provider.get_metadata(ScrapeOptions(tmdb_id=99)) == MediaMetadata()
    assert fake_api.calls_to("get_keywords") == []


def test_keyword_failure_does_not_block_metadata(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(movie(5, "Tagless", overview="Plot."))
    fake_api.fail("get_keywords")
    provider = _provider(fake_api, telemetry)

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=5))

    assert metadata.title == "Tagless"
    assert metadata.tags == []


def test_blank_translated_plot_is_backfilled_from_base_language(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(
        movie(27205, "Origen", original_title="", overview="", tagline=None),
        language="es-ES",
    )
    fake_api.add_movie(
        movie(
            27205,
            "Inception",
            original_title="Inception",
            overview="Dreams within dreams.",
            tagline="Your mind is the scene of the crime.",
        ),
        language="en",
    )
    provider = _provider(fake_api, telemetry)

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=27205, language="es-ES"))

    assert metadata.title == "Origen"
    assert metadata.original_title == "Inception"
    assert metadata.plot == "Dreams within dreams."
    assert metadata.tagline == "Your mind is the scene of the crime."
    languages = [call["language"] for call in fake_api.calls_to("get_movie")]
    assert languages == ["es-ES", "en"]


def test_base_language_record_never_triggers_fallback(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(movie(8, "No plot", overview=""), language="en-US")
    provider = _provider(fake_api, telemetry)

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=8, language="en-US"))

    assert metadata.plot == ""
    assert len(fake_api.calls_to("get_movie")) == 1


def test_failed_fallback_keeps_translated_metadata(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(movie(9, "Titre", overview=None), language="fr")
    provider = _provider(fake_api, telemetry)

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=9, language="fr"))

    assert metadata.title == "Titre"
    assert metadata.plot is None
    assert [call["language"] for call in fake_api.calls_to("get_movie")] == ["fr", "en"]


def test_get_trailers_resolves_imdb_id(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.find_results["tt1375666"] = [movie(27205, "Inception")]
    fake_api.videos[(27205, "de")] = [
        TmdbVideo(name="Trailer", site="YouTube", key="abc", size=1080, type="Trailer"),
    ]
    provider = _provider(fake_api, telemetry)

    trailers = provider.get_trailers(ScrapeOptions(imdb_id="tt1375666", language="de"))

    assert [trailer.url for trailer in trailers] == ["https://www.youtube.com/watch?v=abc&hd=1"]


def test_get_trailers_without_id_returns_empty_list(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.fail("find_by_imdb_id")
    provider = _provider(fake_api, telemetry)

    assert provider.get_trailers(ScrapeOptions(imdb_id="tt1375666")) == []
    assert fake_api.calls_to("get_videos") == []


def test_blank_base_language_fields_do_not_replace_translated_ones(
    fake_api: FakeMovieDatabase,
    telemetry: TelemetryClient,
) -> None:
    fake_api.add_movie(
        movie(11, "", original_title="Sternenkrieg", overview="", tagline=""),
        language="de",
    )
    fake_api.add_movie(
        movie(11, None, original_title="Star Wars", overview="A long time ago.", tagline=" "),
        language="en",
    )
    provider = _provider(fake_api, telemetry)

    metadata = provider.get_metadata(ScrapeOptions(tmdb_id=11, language="de"))

    assert metadata.plot == "A long time ago."
    assert metadata.title == ""
    assert metadata.original_title == "Sternenkrieg"
    assert metadata.tagline == ""
