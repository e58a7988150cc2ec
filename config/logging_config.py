import logging
import sys

import structlog

from config.settings import settings

# Client libraries that log every HTTP request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "botocore", "urllib3")


def configure_logging() -> None:
    """Configure structlog for JSON (default) or console output to stderr."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Standard library logging config (sqlalchemy, langchain, uvicorn)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )
    if log_level > logging.DEBUG:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format.lower() == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
