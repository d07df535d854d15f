"""
Structured logging for the staffing cache.

The cache logs what it does to opportunities, not how: each event name says
which step of a mutation or load happened and the key/value pairs say to
which entity and partition.

Events:
    ==========================  =======  ==========================================
    ``mutation_dispatched``     info     optimistic write done, remote call queued
    ``mutation_rejected``       warning  invalid move or payload, nothing written
    ``mutation_settled``        info     server entity reconciled into the store
    ``mutation_rolled_back``    warning  snapshot restored after a remote failure
    ``partition_loaded``        info     descriptor fetched and written
    ``partition_cache_hit``     debug    fresh descriptor served without a fetch
    ``partition_fallback_used`` warning  strict parse failed, valid elements kept
    ``opportunity_dropped``     warning  payload element failed validation
    ``remote_http_error``       warning  remote answered with a non-2xx status
    ==========================  =======  ==========================================

    ``mutation_dispatched`` names ``mutation_id`` and ``mutation_kind``
    itself. Everything logged while the mutation settles gets both keys from
    a :class:`LogContext` entered around the remote call, so one mutation can
    be followed even while others on the same entity are in flight.

Usage:
    >>> from staffing.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="staffing")
    >>> logger = get_logger(__name__)
    >>> logger.info("partition_loaded", partition="in-progress", count=3)

Output (JSON format)::

    {
      "@timestamp": "2026-01-12T10:00:00Z",
      "log.level": "info",
      "service.name": "staffing",
      "logger": "staffing.cache.loader",
      "event": "partition_loaded",
      "partition": "in-progress",
      "count": 3
    }

Tags:
    logging, structlog, observability, staffing-cache
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "staffing"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp ``service.name`` so cache events can be told apart from the host app's."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename ``timestamp`` and ``level`` to their ECS field names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "staffing",
    add_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging with the staffing processor chain.

    Called once by the CLI callback; library code only calls :func:`get_logger`.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Module logger; every staffing module calls ``get_logger(__name__)`` once."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach keys to every later event logged from the current context.

    Per-mutation keys go through :class:`LogContext` instead, so they are
    dropped when the mutation settles.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Binds keys for the duration of one mutation or load.

    Each settle runs in its own asyncio task, which starts from a copy of the
    dispatcher's context, so concurrent mutations on one entity never see each
    other's ``mutation_id``. On exit the previous values are restored, which
    keeps an outer binding of the same key (a load wrapping a mutation, say)
    intact.

    Example:
        async with LogContext(mutation_id=mutation.id, mutation_kind="move"):
            entity = await resource.move_entity(entity_id, status)
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: Mapping[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args: object) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *args: object) -> None:
        self.__exit__(*args)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
