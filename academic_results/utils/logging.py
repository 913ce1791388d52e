# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for the results service.

Application modules log through the standard library. Their records are
rendered by structlog, so the request and actor details bound by the actor
middleware and the result identifiers bound with result_context() appear
on every line. Output is JSON outside development.

Example:
    >>> from academic_results.utils.logging import result_context, setup_logging
    >>> from academic_results.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> with result_context(session_id=session_id, semester="first"):
    ...     logger.info("Published %d results", 42)
"""

import logging
import sys
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Iterator

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from academic_results.core.config.settings import Settings

HANDLER_NAME = "academic_results"

RESULT_CONTEXT_KEYS = ("result_id", "student_id", "session_id", "semester")

# Per-request and per-statement chatter; errors still get through
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "sqlalchemy.pool", "asyncio")


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and route standard library records through it.

    Args:
        settings: Application settings with log_level, environment and debug.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    shared_processors = _shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_processors(settings),
            ],
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("academic_results").setLevel(log_level)


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_processors(settings: "Settings") -> list[Processor]:
    if settings.is_development or settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger that shares the standard library handler."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind request-wide values, such as request_id and actor_id, to the log context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop everything bound for the current request."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def result_context(**values: object) -> Iterator[None]:
    """Bind result identifiers to log lines emitted inside the block.

    Only RESULT_CONTEXT_KEYS are accepted. None values are skipped and enum
    members are logged by value. Previous bindings are restored on exit.

    Raises:
        TypeError: If an unknown key is given.
    """
    unknown = sorted(set(values) - set(RESULT_CONTEXT_KEYS))
    if unknown:
        raise TypeError(f"Unknown result context keys: {', '.join(unknown)}")

    bound = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in values.items()
        if value is not None
    }
    with structlog.contextvars.bound_contextvars(**bound):
        yield
