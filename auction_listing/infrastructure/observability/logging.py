"""Contextual logging for the listing engine.

A listing request fans out into several sub-queries; attaching the request's
kind and page to a context variable lets every log line emitted on its behalf
carry them without threading a logger adapter through each call.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


class ContextualFormatter(logging.Formatter):
    """Formatter that appends the active context fields as ``[k=v ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        ctx = _log_context.get()
        if not ctx:
            return message
        fields = " ".join(f"{key}={value}" for key, value in ctx.items())
        first_line, sep, rest = message.partition("\n")
        return f"{first_line} [{fields}]{sep}{rest}"


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to every log line emitted inside the block.

    Usage::

        with log_context(kind="items", page=2):
            logger.debug("Listing page")  # ... Listing page [kind=items page=2]

    Nested blocks merge their fields; the outer context is restored on exit.
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    """Return a copy of the fields currently attached to log messages."""
    return dict(_log_context.get())


_configured = False


def configure_logging(
    level: int = logging.INFO,
    third_party_level: int = logging.WARNING,
) -> None:
    """Install a single stderr handler on the root logger.

    Called once by the CLI entry point; later calls are ignored.

    Args:
        level: Level for the root logger.
        third_party_level: Level for chatty library loggers such as asyncio.
    """
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ContextualFormatter(LOG_FORMAT))
    root.addHandler(handler)

    logging.getLogger("asyncio").setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name`` (typically ``__name__``).

    When neither :func:`configure_logging` nor the host application has set
    up handlers, a contextual stderr handler is attached so library use
    still produces readable output.
    """
    logger = logging.getLogger(name)
    if not _configured and not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ContextualFormatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """Log ``exc`` with its traceback and extra context fields.

    Args:
        logger: Logger instance.
        message: Short description of the failed operation.
        exc: The exception being handled.
        **context: Fields added to the log context for this line only.
    """
    with log_context(**context):
        logger.exception("%s: %s", message, exc)
