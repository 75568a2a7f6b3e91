"""
Structured logging (structlog over stdlib logging).

Usage:
    from portfolio_ask.logging_config import get_logger

    log = get_logger(__name__)
    log.info("ask_answered", tier="local", citations=3, query_length=len(query))

Log the length of a visitor question, never its text. As a second line of
defence a stray ``query`` field is replaced by ``query_length`` once
``configure_logging`` has run.
"""
import logging
import logging.handlers
import sys
from typing import Optional

import structlog

# Client libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "opik", "dbos", "sqlalchemy.engine")


def redact_query_text(logger, method_name: str, event_dict: dict) -> dict:
    """Swap a raw ``query`` value for its length."""
    query = event_dict.pop("query", None)
    if query is not None:
        event_dict.setdefault("query_length", len(str(query)))
    return event_dict


SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.ExtraAdder(),
    redact_query_text,
]


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
    use_stderr: bool = False,
) -> None:
    """
    Route structlog and stdlib records through one set of handlers.

    Args:
        log_level: Root level (DEBUG also un-mutes the HTTP client libraries)
        json_format: JSON lines (production) or colored console output (dev)
        log_file: Also write JSON lines to this file, rotated at midnight
        use_stderr: Log to stderr; the MCP server owns stdout for its protocol
    """
    structlog.configure(
        processors=SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    console_renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer(colors=True)
    )
    console_handler = logging.StreamHandler(sys.stderr if use_stderr else sys.stdout)
    console_handler.setFormatter(_formatter(console_renderer))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.handlers.TimedRotatingFileHandler(log_file, when="midnight", backupCount=7)
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values) -> None:
    """
    Start a fresh logging context for one request (or one workflow run).

    Example:
        bind_request_context(request_id="3f9c2a1b", path="/ask")
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)
