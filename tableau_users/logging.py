"""Configure structlog output for the command line."""

import logging
import sys

import structlog

from .config import DEFAULT_LOG_LEVEL

__all__ = ['configure_logging']


def configure_logging(level=DEFAULT_LOG_LEVEL):
    """
    Sends log output at or above 'level' to stderr.

    An unknown level name is reported and the default level is used instead.
    Returns the level name that was applied.
    """
    name = (level or '').strip().lower()
    numeric = logging.getLevelName(name.upper())
    unknown = not isinstance(numeric, int)
    if unknown:
        name = DEFAULT_LOG_LEVEL
        numeric = logging.getLevelName(name.upper())

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        # sys.stderr is looked up on every call
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    log = structlog.get_logger(__name__)
    if unknown:
        log.warning('Failed to parse log level', requested=level, level=name)
    log.debug('Log level set', level=name)
    return name
