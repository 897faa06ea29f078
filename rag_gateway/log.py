"""
Structured Logging
==================
JSON logging through structlog. The trace id of the request being handled
is carried in structlog's context variables, so every line logged while
serving a request is correlated with the error envelope the client sees.

Usage:
    from rag_gateway.log import configure_logging, log_event

    configure_logging(level="INFO")
    log_event("chat_request_succeeded", mode="grounded")
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines (production) or console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


def bind_trace_id(trace_id: str) -> None:
    """Attach the trace id to every log line emitted in the current context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)


def log_event(event: str, level: str = "info", **details) -> None:
    """
    Log a named gateway event.

    Args:
        event: Event name (e.g. "chat_request_succeeded")
        level: debug, info, warning or error
        **details: Additional event fields (never secrets or file contents)
    """
    logger = structlog.get_logger("rag_gateway.events")
    getattr(logger, level.lower(), logger.info)(event, **details)
