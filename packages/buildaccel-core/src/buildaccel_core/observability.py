"""Logging setup and tracing spans for the planner.

Log lines are structlog events rendered through stdlib logging on stderr.
Planner phases run inside OpenTelemetry spans; with only opentelemetry-api
installed the tracer is a no-op and the spans cost nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer

TRACER_NAME = "buildaccel"

logger = structlog.get_logger(TRACER_NAME)


@lru_cache(maxsize=1)
def get_tracer() -> Tracer:
    """Return the buildaccel tracer."""
    return trace.get_tracer(TRACER_NAME)


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging at the given level.

    stdout is reserved for command output, so records go to the stdlib
    handler on stderr.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_format: Render one JSON object per line instead of console text.
        add_timestamp: Prefix records with an ISO timestamp.
    """
    processors: list[Any] = [structlog.stdlib.filter_by_level]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", level=log_level.upper(), force=True)


@contextmanager
def span(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
    log_start: bool = True,
) -> Iterator[Span]:
    """Run a block inside a span, logging ``<name>_started`` and ``<name>_completed``.

    A failing block is logged as ``<name>_failed`` at error level, recorded
    on the span and re-raised.

    Example:
        >>> with span("plan_snapshot", attributes={"store": "/ws/.buildaccel"}):
        ...     snapshot = store.scan()
    """
    attrs = attributes or {}
    with get_tracer().start_as_current_span(
        name, kind=SpanKind.INTERNAL, attributes=attrs
    ) as current:
        if log_start:
            logger.debug(f"{name}_started", **attrs)
        try:
            yield current
        except Exception as exc:
            current.set_status(Status(StatusCode.ERROR, str(exc)))
            current.record_exception(exc)
            logger.error(f"{name}_failed", error=str(exc), **attrs)
            raise
        current.set_status(Status(StatusCode.OK))
        logger.debug(f"{name}_completed", **attrs)
