"""Structured logging setup."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from nestbox.settings import ClientSettings


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time.

    Test runners and embedding hosts swap ``sys.stderr`` per invocation;
    holding on to the stream seen at setup would write to a closed file.
    """

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def setup_logging(settings: ClientSettings, *, verbose: bool = False) -> None:
    """Configure structlog for a single CLI invocation.

    Logs go to stderr so that command output on stdout stays parseable.
    structlog renders the event and hands it to the standard library, which
    also carries httpx's request logs.

    In debug mode (NESTBOX_DEBUG=true or --verbose):
    - Console formatted logs with colors at debug level

    Otherwise:
    - Console formatted logs at the configured level (warning by default)
    """
    level_name = "debug" if verbose else settings.effective_log_level
    level = getattr(logging, level_name.upper(), logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, StderrHandler)]:
        root.removeHandler(existing)
    handler = StderrHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger(__name__)
    logger.debug("Logging configured", log_level=level_name)
