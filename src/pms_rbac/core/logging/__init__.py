"""Logging module with structured logging."""

from pms_rbac.core.logging.config import configure_logging


__all__ = [
    "configure_logging",
]
