"""Logging configuration for the Sales domain."""

import logging

import structlog

_configured = False


def configure_logging(json_output: bool = False, level: int = logging.INFO) -> None:
    """Configure structlog once per process.

    Callers pass ``json_output`` from ``Settings.log_json``.
    """
    global _configured
    if _configured:
        return

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Suppress noisy library loggers
    logging.getLogger("protean").setLevel(logging.WARNING)
    _configured = True
