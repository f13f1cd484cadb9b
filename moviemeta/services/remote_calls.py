from __future__ import annotations

import logging
from collections.abc import Callable, Sized
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from moviemeta.services.tmdb_client import TmdbClientError
from moviemeta.telemetry import TelemetryClient

LOGGER = logging.getLogger("moviemeta.remote")

T = TypeVar("T")

LookupStatus = Literal["found", "empty", "error"]


@dataclass(frozen=True)
class LookupOutcome(Generic[T]):
    """Result of one remote lookup step: data, nothing, or a logged failure."""

    status: LookupStatus
    value: T | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.status == "found"

    @classmethod
    def empty(cls) -> LookupOutcome[T]:
        return cls(status="empty")

    @classmethod
    def failed(cls, error: str) -> LookupOutcome[T]:
        return cls(status="error", error=error)

    @classmethod
    def of(
        cls,
        value: T | None,
        *,
        is_empty: Callable[[T], bool] | None = None,
    ) -> LookupOutcome[T]:
        if value is None:
            return cls.empty()
        check = is_empty if is_empty is not None else _is_empty_value
        if check(value):
            return cls(status="empty", value=value)
        return cls(status="found", value=value)


def call_remote(
    operation: str,
    call: Callable[[], T | None],
    *,
    telemetry: TelemetryClient,
    is_empty: Callable[[T], bool] | None = None,
    **attributes: Any,
) -> LookupOutcome[T]:
    """
    Run a single collaborator call and fold its result into a `LookupOutcome`.

    `TmdbClientError` is logged and reported as an `error` outcome; it never
    propagates to the caller.
    """
    try:
        value = call()
    except TmdbClientError as exc:
        LOGGER.warning(
            "tmdb %s failed status_code=%s error=%s attributes=%s",
            operation,
            exc.status_code,
            exc,
            attributes,
        )
        telemetry.remote_call(
            operation,
            outcome="error",
            status_code=exc.status_code,
            **attributes,
        )
        return LookupOutcome.failed(str(exc))

    outcome = LookupOutcome.of(value, is_empty=is_empty)
    telemetry.remote_call(
        operation,
        outcome="ok" if outcome.found else "empty",
        **attributes,
    )
    return outcome


def _is_empty_value(value: object) -> bool:
    if isinstance(value, Sized):
        return len(value) == 0
    return False
