from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import structlog

from moviemeta.config import TelemetrySinkName

AttributeValue = bool | int | float | str | None

REMOTE_CALL_EVENT = "tmdb.request"
RemoteCallOutcome = Literal["ok", "empty", "error"]

# Any attribute whose key contains one of these is replaced before it leaves the process.
_REDACTED_KEY_PARTS: tuple[str, ...] = (
    "api_key",
    "authorization",
    "body",
    "cookie",
    "payload",
    "secret",
    "token",
)
_REDACTED = "[redacted]"
_STRING_LIMIT = 160

logger = logging.getLogger("moviemeta.telemetry")


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        ...


class NoOpTelemetrySink:
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        del event_name, attributes


class StructuredLogTelemetrySink:
    """Writes each event as one structlog record on the telemetry logger."""

    def __init__(self, logger_name: str = "moviemeta.telemetry") -> None:
        self._log = structlog.get_logger(logger_name)

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self._log.info("telemetry", telemetry_event=event_name, **attributes)


class RemoteUsageSink:
    """
    Counts `tmdb.request` events per operation and outcome, in memory.

    Other events are ignored. Safe to share between threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[tuple[str, str]] = Counter()

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        if event_name != REMOTE_CALL_EVENT:
            return
        key = (str(attributes.get("operation")), str(attributes.get("outcome")))
        with self._lock:
            self._counts[key] += 1

    def snapshot(self) -> dict[tuple[str, str], int]:
        with self._lock:
            return dict(self._counts)

    def total(self, operation: str | None = None) -> int:
        with self._lock:
            return sum(
                count
                for (counted_operation, _outcome), count in self._counts.items()
                if operation is None or counted_operation == operation
            )


@dataclass(frozen=True)
class TelemetryClient:
    enabled: bool
    sink: TelemetrySink = field(default_factory=NoOpTelemetrySink)

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls(enabled=False)

    def emit(self, event_name: str, **attributes: Any) -> None:
        if self.enabled:
            self.sink.emit(event_name=event_name, attributes=sanitize_attributes(attributes))

    def remote_call(
        self,
        operation: str,
        *,
        outcome: RemoteCallOutcome,
        **attributes: Any,
    ) -> None:
        """Record one call against the remote movie database."""
        self.emit(REMOTE_CALL_EVENT, operation=operation, outcome=outcome, **attributes)


def build_telemetry_client(*, enabled: bool, sink: TelemetrySinkName) -> TelemetryClient:
    if not enabled or sink == "none":
        return TelemetryClient.disabled()
    if sink == "log":
        return TelemetryClient(enabled=True, sink=StructuredLogTelemetrySink())
    if sink == "memory":
        return TelemetryClient(enabled=True, sink=RemoteUsageSink())
    logger.warning("telemetry disabled reason=unknown_sink sink=%s", sink)
    return TelemetryClient.disabled()


def sanitize_attributes(attributes: Mapping[str, Any]) -> dict[str, AttributeValue]:
    """
    Flatten event attributes into log-safe scalars.

    Keys are lower-cased and blank keys dropped. Sensitive keys are redacted,
    strings are whitespace-compacted and capped, sequences of strings or ints
    are comma-joined, and anything else is reduced to its type name.
    """
    cleaned: dict[str, AttributeValue] = {}
    for raw_key, raw_value in attributes.items():
        key = str(raw_key).strip().lower()
        if not key:
            continue
        if any(part in key for part in _REDACTED_KEY_PARTS):
            cleaned[key] = _REDACTED
        else:
            cleaned[key] = _scalar(raw_value)
    return cleaned


def _scalar(value: Any) -> AttributeValue:
    if value is None or isinstance(value, bool | int | float):
        return value
    if isinstance(value, str):
        return _cap(" ".join(value.split()))
    if isinstance(value, Sequence) and all(
        isinstance(item, str | int) and not isinstance(item, bool) for item in value
    ):
        return _cap(",".join(str(item) for item in value))
    return type(value).__name__


def _cap(text: str) -> str:
    if len(text) > _STRING_LIMIT:
        return text[:_STRING_LIMIT] + "..."
    return text
