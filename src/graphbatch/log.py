"""
Structured logging setup.

Every event carries the SDK marker and user agent of the configuration,
so log lines from several clients in one process can be told apart.
"""

import logging
import sys
from typing import Optional

import structlog

from graphbatch.config import GraphBatchConfig, get_config

# Chatty third-party loggers, only shown at DEBUG
HTTP_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    config: Optional[GraphBatchConfig] = None,
) -> None:
    """
    Configure structured logging for graphbatch.

    Args:
        level: Logging level, defaults to config.log_level
        json_format: Render JSON lines, defaults to config.log_json
        config: Configuration supplying the defaults and the bound context
    """
    config = config or get_config()
    level = (level or config.log_level).upper()
    json_format = config.log_json if json_format is None else json_format

    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(sdk=config.sdk_marker, user_agent=config.user_agent)

    logging.basicConfig(format="%(message)s", level=getattr(logging, level), stream=sys.stderr)
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
