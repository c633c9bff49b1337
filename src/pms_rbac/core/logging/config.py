"""Structured logging setup.

Configures structlog once for the process. JSON output in production,
console output everywhere else.
"""

import logging

import structlog

from pms_rbac.config import Settings, settings


def configure_logging(app_settings: Settings | None = None) -> None:
    """Configure structlog processors and the level filter.

    Args:
        app_settings: Settings to read the level and environment from,
            defaults to the global settings
    """
    app_settings = app_settings or settings
    level = logging.getLevelName(app_settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if app_settings.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
