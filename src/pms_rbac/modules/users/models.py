"""User database models."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pms_rbac.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_USERNAME_LENGTH,
)
from pms_rbac.core.database.base import Base, TimestampMixin, UUIDMixin
from pms_rbac.core.permissions.schemas import UserStatus


if TYPE_CHECKING:
    from pms_rbac.core.permissions.models import Role


class User(Base, UUIDMixin, TimestampMixin):
    """User model representing an account of the application.

    Attributes:
        username: Unique login name
        email: Unique email address
        full_name: User's display name
        status: One of "active", "inactive", "suspended"
        is_superuser: Whether every permission and role check passes for this user
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(MAX_USERNAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
    )
    full_name: Mapped[str | None] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )
    is_superuser: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Relationships
    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary="user_roles",
        back_populates="users",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
