"""Pydantic schemas exchanged between the identity provider and the checker."""

from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserStatus(str, Enum):
    """Account status. Only active accounts pass check_user_status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# ============================================================
# Identity Schemas
# ============================================================


class PermissionInfo(BaseModel):
    """A permission assigned to the user through one of their roles."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID | None = None
    name: str
    description: str | None = None


class RoleInfo(BaseModel):
    """A role assigned to the user."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID | None = None
    name: str
    description: str | None = None
    permissions: list[PermissionInfo] = Field(default_factory=list)


class UserInfo(BaseModel):
    """The current user together with their roles and permissions.

    ``permissions`` is the distinct union of the permissions of every
    assigned role. Instances are built fresh for every lookup.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    username: str
    email: str | None = None
    full_name: str | None = None
    status: UserStatus = UserStatus.ACTIVE
    is_superuser: bool = False
    roles: list[RoleInfo] = Field(default_factory=list)
    permissions: list[PermissionInfo] = Field(default_factory=list)

    @property
    def role_names(self) -> set[str]:
        """Names of the directly assigned roles."""
        return {role.name for role in self.roles}

    @property
    def permission_names(self) -> set[str]:
        """Names of the directly held permissions."""
        return {permission.name for permission in self.permissions}


# ============================================================
# Requirement Schemas
# ============================================================


class RouteMeta(BaseModel):
    """Access requirements attached to a route.

    Accepts both snake_case and the camelCase keys used by route tables
    (``requiresPermission`` / ``requiresRole``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    requires_permission: str | None = Field(default=None, alias="requiresPermission")
    requires_role: str | None = Field(default=None, alias="requiresRole")

    @property
    def is_public(self) -> bool:
        return not self.requires_permission and not self.requires_role


class PermissionRequirement(BaseModel):
    """A declarative access requirement.

    The first non-empty field wins, in the order permission, role,
    permissions, roles. ``mode`` decides whether every entry of a list
    must pass ("all") or just one of them ("any"). An empty requirement
    always passes.
    """

    model_config = ConfigDict(extra="forbid")

    permission: str | None = None
    role: str | None = None
    permissions: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    mode: Literal["all", "any"] = "all"

    @field_validator("permissions", "roles", mode="before")
    @classmethod
    def coerce_none_to_list(cls, v: Any) -> Any:
        """Allow explicit None for the list fields."""
        return [] if v is None else v
