from __future__ import annotations

from collections.abc import Iterator

import pytest

from moviemeta.dependencies import reset_cached_dependencies
from moviemeta.telemetry import TelemetryClient
from tests.fakes import CaptureSink, FakeMovieDatabase


@pytest.fixture(autouse=True)
def _reset_dependencies() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    reset_cached_dependencies()
    yield
    reset_cached_dependencies()


@pytest.fixture
def fake_api() -> FakeMovieDatabase:
    return FakeMovieDatabase()


@pytest.fixture
def capture_sink() -> CaptureSink:
    return CaptureSink()


@pytest.fixture
def telemetry(capture_sink: CaptureSink) -> TelemetryClient:
    return TelemetryClient(enabled=True, sink=capture_sink)
