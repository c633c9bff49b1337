"""Database layer - session management, base models, and mixins."""

from pms_rbac.core.database.base import Base, TimestampMixin, UUIDMixin
from pms_rbac.core.database.session import get_db, get_engine, get_session_factory


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_db",
    "get_engine",
    "get_session_factory",
]
