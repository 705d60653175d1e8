"""
Logging setup for CoupleSwipe.

structlog renders to the console in development and to JSON in production.
While an intent is handled, the session id, acting user and phase are bound as
structlog context variables, so every event emitted on the way carries them.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

SESSION_KEYS = ('session_id', 'user', 'phase')


def configure_logging(json_output: bool = False, log_level: str | None = None) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: JSON lines (production) instead of the console renderer
        log_level: Override for config.LOG_LEVEL
    """
    level = getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def session_context(**values: str | None) -> Generator[None, None, None]:
    """
    Bind session keys for the duration of the block; None values are skipped.

    Usage:
        with session_context(session_id=sid, user='You', phase='round1'):
            machine.dispatch(intent)
    """
    unknown = set(values) - set(SESSION_KEYS)
    if unknown:
        raise TypeError(f"Unknown session context keys: {sorted(unknown)}")
    bound = {k: v for k, v in values.items() if v is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def current_session_context() -> dict[str, Any]:
    """Session keys currently bound, for tests and error reports."""
    bound = structlog.contextvars.get_contextvars()
    return {k: bound[k] for k in SESSION_KEYS if k in bound}


@contextmanager
def log_duration(logger: Any, event: str, **fields: Any) -> Generator[dict[str, Any], None, None]:
    """
    Log ``event`` with ``duration_ms`` when the block exits.

    The yielded dict is logged with the event, so the block can add results to it.
    Nothing is logged if the block raises.
    """
    extra = dict(fields)
    start = time.perf_counter()
    yield extra
    logger.info(event, duration_ms=round((time.perf_counter() - start) * 1000, 2), **extra)


# Development mode by default; production calls configure_logging(json_output=True)
configure_logging(json_output=False)
