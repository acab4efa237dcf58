"""
Structured logging setup.

Usage:
    from rbac_engine.core.logging import configure_logging
    configure_logging(level="DEBUG", fmt="text")

    logger = structlog.get_logger()
    logger.info("Policy granted", role="admin", policy_id=str(policy.id))
"""

import logging

import structlog


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ...)
        fmt: "json" for machine-readable output, "text" for console output
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            # batch_id and friends bound via structlog.contextvars
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
