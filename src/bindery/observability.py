"""Structured logging and OpenTelemetry spans for bindery.

This module provides:
- Structured logging setup via structlog
- OpenTelemetry span helper for provisioning steps
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

_tracer: Tracer | None = None

TRACER_NAME = "bindery"


def get_logger(component: str | None = None) -> BoundLogger:
    """Get a bindery logger, optionally bound to a component name.

    Example:
        >>> log = get_logger("provisioner")
        >>> log.info("run_started", targets=["x64"])
    """
    logger: BoundLogger = structlog.get_logger(TRACER_NAME)
    if component:
        return logger.bind(component=component)
    return logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for bindery."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for bindery.

    Logs go to stderr so that stdout stays free for command output
    (e.g. ``--format json``).

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON lines. If False, human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG")
    """
    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


@contextmanager
def stage_span(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Wrap a provisioning step in an OpenTelemetry span.

    The span is marked as errored and the exception recorded when the
    body raises. The exception is re-raised.

    Args:
        name: Span name (e.g. "resolve_abi_version", "download").
        attributes: Optional span attributes.

    Yields:
        OpenTelemetry Span instance.

    Example:
        >>> with stage_span("download", attributes={"arch": "x64"}):
        ...     fetch_archive()
    """
    tracer = get_tracer()
    attrs = attributes or {}

    with tracer.start_as_current_span(name, kind=SpanKind.INTERNAL, attributes=attrs) as s:
        try:
            yield s
            s.set_status(Status(StatusCode.OK))
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            raise
