"""Logging setup for command-line use.

Library code only calls `structlog.get_logger(__name__)`; hosts embedding the
package configure structlog themselves. The CLI calls `configure_logging`,
which routes everything to stderr so that documents written to stdout stay
clean.
"""
import logging
import os
import sys

import structlog

LOG_LEVEL_ENV = "CLAUSE_WEAVER_LOG_LEVEL"
LOG_FORMAT_ENV = "CLAUSE_WEAVER_LOG_FORMAT"


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog to write to stderr.

    Args:
        level: Log level name. Defaults to `$CLAUSE_WEAVER_LOG_LEVEL`, then
            `WARNING`.
        fmt: `console` for human-readable lines or `json` for one JSON object
            per event. Defaults to `$CLAUSE_WEAVER_LOG_FORMAT`, then `console`.

    Raises:
        ValueError: If the level or format is unknown.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level_name}'.")

    fmt = (fmt or os.environ.get(LOG_FORMAT_ENV) or "console").lower()
    if fmt == "json":
        processors = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    elif fmt == "console":
        processors = [structlog.dev.ConsoleRenderer(colors=False)]
    else:
        raise ValueError(f"Unknown log format '{fmt}'. Expected 'console' or 'json'.")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *processors,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
