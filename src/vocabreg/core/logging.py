"""
Structured logging for the vocabulary registry.

Manifesto:
    Workflow tasks touch the filesystem, remote repositories and the
    database in one run. When one subtask fails, operators need to see
    which task, which version and which provider was involved. Every log
    line is therefore a structlog event with bound context.

    - **Standardizes:** Same event naming everywhere (``runner.subtask.completed``)
    - **Structures:** JSON output for log aggregation
    - **Correlates:** task_id, vocabulary_id, version_id propagation
    - **Flexes:** Console output for development, JSON for production

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="vocabreg")
            ↓
        structlog processor chain:
          1. filter_by_level
          2. TimeStamper (iso)
          3. merge_contextvars
          4. add_log_level / add_logger_name
          5. StackInfoRenderer / set_exc_info
          6. _add_service_metadata
          7. _elasticsearch_compatible (JSON only)
          8. JSONRenderer or ConsoleRenderer
            ↓
        stdlib logging handler on stderr

Examples:
    >>> from vocabreg.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> log = get_logger(__name__)
    >>> with LogContext(task_id=12):
    ...     log.info("runner.started", subtasks=3)

Tags:
    logging, structlog, observability, vocabreg

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "vocabreg"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "vocabreg",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Rendered events go through stdlib logging, which owns the stream.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    On exit every key is restored to the value it had before, so nested
    contexts may rebind the same key.

    Example:
        with LogContext(task_id=12, vocabulary_id=3):
            log.info("runner.started")
    """

    def __init__(self, **kwargs: Any):
        self._context = {k: v for k, v in kwargs.items() if v is not None}
        self._bound: AbstractContextManager[None] | None = None

    def __enter__(self) -> LogContext:
        self._bound = structlog.contextvars.bound_contextvars(**self._context)
        self._bound.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self._bound is not None:
            self._bound.__exit__(*args)
            self._bound = None


@dataclass
class StepTimer:
    """Timing for one logged step."""

    step: str
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    def stop(self) -> StepTimer:
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_ms(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return (end - self.started_at) * 1000

    def add_metric(self, key: str, value: Any) -> StepTimer:
        """Add a metric to include in the completion log."""
        self.metrics[key] = value
        return self


@contextmanager
def log_step(event: str, level: str = "info", **fields: Any) -> Iterator[StepTimer]:
    """
    Log a step's start and end with timing.

    Logs ``<event>.started`` at DEBUG, then ``<event>.completed`` with
    ``duration_ms`` or ``<event>.failed`` with the error (re-raised).

    Usage:
        with log_step("sesame.upload", repository=repo_id) as timer:
            count = upload(paths)
            timer.add_metric("files", count)
    """
    log = get_logger("vocabreg.timing")
    timer = StepTimer(step=event, metrics=dict(fields))
    log.debug(f"{event}.started", **fields)
    try:
        yield timer
    except Exception as e:
        timer.stop()
        log.error(
            f"{event}.failed",
            duration_ms=round(timer.duration_ms, 2),
            error_type=type(e).__name__,
            error_message=str(e),
            error_stack=traceback.format_exc(),
            **timer.metrics,
        )
        raise
    timer.stop()
    getattr(log, level)(f"{event}.completed", duration_ms=round(timer.duration_ms, 2), **timer.metrics)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    "StepTimer",
    "log_step",
]
