"""
Structured logging for labrules.

Every module obtains its logger through :func:`get_logger` and logs
snake_case event names with key/value context::

    logger = get_logger(__name__)
    logger.info("algorithm_saved", algorithm_id=alg.id, parameters=3)

:func:`configure_logging` is called once by each entry point (``labrules serve``,
the CLI root callback).  It builds a structlog processor chain that
renders JSON for log aggregation or a coloured console for development.

Output (JSON format)::

    {
      "@timestamp": "2026-10-19T10:00:00Z",
      "log.level": "info",
      "service.name": "labrules",
      "event": "algorithm_saved",
      "algorithm_id": "65f0c1..."
    }

Tags:
    logging, structlog, observability, labrules-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service_name = "labrules"

# structlog's own level names → ECS field names
_ECS_FIELDS = {"timestamp": "@timestamp", "level": "log.level"}


def _add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _logger_field(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    if "logger_name" in event_dict:
        event_dict.setdefault("logger", event_dict.pop("logger_name"))
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key, ecs_key in _ECS_FIELDS.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


class _StderrLoggerFactory:
    """Looks ``sys.stderr`` up per logger, so redirected streams are honoured."""

    def __call__(self, *args: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(sys.stderr)


def _processor_chain(json_format: bool, stream: TextIO, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = [structlog.processors.TimeStamper(fmt="iso")] if add_timestamp else []
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _logger_field,
        _add_service_name,
    ]
    if json_format:
        return [*chain, structlog.processors.format_exc_info, _ecs_field_names, structlog.processors.JSONRenderer()]
    return [*chain, structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "labrules",
    add_timestamp: bool = True,
    to_stderr: bool = False,
) -> None:
    """Configure structlog (and the stdlib root logger) for this process.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        json_format: JSON lines when true, console rendering when false;
            ``None`` picks JSON unless the stream is a terminal.
        service: Value of the ``service.name`` field.
        add_timestamp: Add an ISO ``@timestamp``.
        to_stderr: Log to stderr so command output on stdout stays parseable.
    """
    global _service_name
    _service_name = service

    stream = sys.stderr if to_stderr else sys.stdout
    if json_format is None:
        json_format = not stream.isatty()
    numeric_level = logging.getLevelName(level.upper())

    structlog.configure(
        processors=_processor_chain(json_format, stream, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_StderrLoggerFactory() if to_stderr else structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    # uvicorn and other stdlib loggers share the stream
    logging.basicConfig(format="%(message)s", stream=stream, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structured logger; log lines carry ``logger=<name>`` when *name* is given.

    The returned proxy resolves the structlog configuration on every call, so
    module-level loggers follow a later :func:`configure_logging`.
    """
    # "logger" itself would collide with wrap_logger's first parameter
    return structlog.get_logger(logger_name=name) if name else structlog.get_logger()


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind *values* for the duration of a ``with`` block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


__all__ = [
    "configure_logging",
    "get_logger",
    "log_context",
]
