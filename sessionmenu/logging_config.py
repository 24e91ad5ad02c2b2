"""sessionmenu logging configuration.

Logging goes through `structlog` on top of the stdlib `logging` backend, so
third-party loggers and ours share one handler. Modules obtain a logger with
`get_logger(__name__)` and log key/value fields:

    logger.info("Refresh settled", rows=12, forced=True)

`SESSIONMENU_LOG_LEVEL` selects the level (default INFO).
`SESSIONMENU_LOG_JSON=1` switches to JSON lines.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional

import structlog

LOG_LEVEL_ENV = "SESSIONMENU_LOG_LEVEL"
LOG_JSON_ENV = "SESSIONMENU_LOG_JSON"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure sessionmenu logging.

    Args:
        level: Optional override for `SESSIONMENU_LOG_LEVEL`.
    """
    if level:
        os.environ[LOG_LEVEL_ENV] = level

    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    json_logs = os.getenv(LOG_JSON_ENV, "") in ("1", "true", "yes")

    logging.basicConfig(
        level=numeric_level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
        format="%(message)s",
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs or not sys.stderr.isatty():
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to `name`."""
    return structlog.get_logger(name)
