from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor

from moviemeta.config import AppSettings

LOG_FILE_NAME = "moviemeta.log"
TELEMETRY_LOG_FILE_NAME = "moviemeta-telemetry.log"
ROOT_LOGGER_NAME = "moviemeta"
TELEMETRY_LOGGER_NAME = "moviemeta.telemetry"

# JSON key -> LogRecord attribute
_RECORD_METADATA: dict[str, str] = {
    "pathname": "pathname",
    "lineno": "lineno",
    "func_name": "funcName",
    "thread_name": "threadName",
}


def configure_application_logging(
    settings: AppSettings,
    *,
    console_stream: TextIO | None = None,
) -> Path | None:
    """
    Route `moviemeta.*` loggers through structlog formatters.

    The console gets human-readable output at `settings.log_level`. With
    `settings.log_to_file`, a DEBUG-level JSON log and a separate telemetry log
    are written under the log directory and the JSON log path is returned;
    otherwise telemetry records are dropped and `None` is returned.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    stream = console_stream or sys.stdout
    console = _handler(
        logging.StreamHandler(stream),
        level=_level_from_name(settings.log_level),
        formatter=_console_formatter(colors=_stream_supports_color(stream)),
    )

    if not settings.log_to_file:
        _install(ROOT_LOGGER_NAME, logging.DEBUG, console)
        _install(TELEMETRY_LOGGER_NAME, logging.INFO, logging.NullHandler())
        logging.getLogger(ROOT_LOGGER_NAME).info(
            "logging configured console_level=%s file_logging=disabled",
            settings.log_level.upper(),
        )
        return None

    log_dir = settings.resolved_log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    telemetry_file = log_dir / TELEMETRY_LOG_FILE_NAME

    _install(
        ROOT_LOGGER_NAME,
        logging.DEBUG,
        console,
        _handler(_file_handler(log_file), level=logging.DEBUG, formatter=_json_formatter()),
    )
    _install(
        TELEMETRY_LOGGER_NAME,
        logging.INFO,
        _handler(_file_handler(telemetry_file), level=logging.INFO, formatter=_json_formatter()),
    )
    logging.getLogger(ROOT_LOGGER_NAME).info(
        "logging configured console_level=%s path=%s telemetry_path=%s",
        settings.log_level.upper(),
        log_file,
        telemetry_file,
    )
    return log_file


def _install(logger_name: str, level: int, *handlers: logging.Handler) -> None:
    # Telemetry is a child of the root logger but must not reach the console.
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    for handler in handlers:
        logger.addHandler(handler)


def _handler(
    handler: logging.Handler,
    *,
    level: int,
    formatter: logging.Formatter,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: Path) -> logging.FileHandler:
    return logging.FileHandler(path, encoding="utf-8")


def _level_from_name(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.strip().upper(), logging.INFO)


def _console_formatter(*, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            _add_record_metadata,
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
    )


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _add_record_metadata(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        for key, attribute in _RECORD_METADATA.items():
            event_dict[key] = getattr(record, attribute)
    return event_dict


def _stream_supports_color(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if not callable(isatty):
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False
