"""Permission decision engine.

This module answers every allow/deny question asked by route guards,
visibility checks and services. Answers are always booleans: identity
lookup failures, timeouts and missing users all resolve to a deny.
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from pms_rbac.config import Settings, settings
from pms_rbac.core.constants import (
    DEFAULT_DATA_ACTION,
    DEFAULT_PAGE_ACTION,
    LEGACY_SUPERUSER_USERNAME,
    MODULE_ACCESS_ACTIONS,
    PERMISSION_KEY_SEPARATOR,
    SUPER_ADMIN_ROLE,
    SYSTEM_ADMIN_ROLES,
)
from pms_rbac.core.permissions.catalog import DEFAULT_CATALOG, PermissionCatalog
from pms_rbac.core.permissions.identity import IdentityProvider, StaticIdentityProvider
from pms_rbac.core.permissions.resolver import InclusionResolver
from pms_rbac.core.permissions.schemas import (
    PermissionRequirement,
    RouteMeta,
    UserInfo,
    UserStatus,
)


logger = structlog.get_logger()


@dataclass(frozen=True)
class SuperuserPolicy:
    """Decides which users skip every permission and role check.

    Attributes:
        honor_superuser_flag: Whether UserInfo.is_superuser grants the bypass
        legacy_username: Username that grants the bypass regardless of
            assignments, None to disable
    """

    honor_superuser_flag: bool = True
    legacy_username: str | None = LEGACY_SUPERUSER_USERNAME

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "SuperuserPolicy":
        return cls(
            honor_superuser_flag=app_settings.honor_superuser_flag,
            legacy_username=app_settings.superuser_username,
        )

    def applies_to(self, user: UserInfo) -> bool:
        if self.honor_superuser_flag and user.is_superuser:
            return True
        return self.legacy_username is not None and user.username == self.legacy_username


def permission_error_message(
    permission_name: str | None = None,
    role_name: str | None = None,
) -> str:
    """Build the denial message shown to the end user.

    Args:
        permission_name: The permission that was missing
        role_name: The role that was missing

    Returns:
        A message naming the missing permission (preferred) or role, or a
        generic message if neither is given
    """
    if permission_name:
        return f'You do not have the "{permission_name}" permission required for this feature'
    if role_name:
        return f'You do not have the "{role_name}" role required for this feature'
    return "You do not have sufficient permissions to access this feature"


class PermissionChecker:
    """Service for checking the current user's permissions and roles.

    A permission is granted when the user is a superuser, holds the key
    directly, or holds a key whose catalog includes reach it. Roles are
    matched by name only.

    Example:
        checker = PermissionChecker(DatabaseIdentityProvider(session, user_id))
        if await checker.check_permission("project:budget:view"):
            ...
    """

    def __init__(
        self,
        identity: IdentityProvider,
        catalog: PermissionCatalog = DEFAULT_CATALOG,
        policy: SuperuserPolicy | None = None,
        identity_timeout: float | None = None,
        resolver: InclusionResolver | None = None,
    ) -> None:
        self.identity = identity
        self.catalog = catalog
        self.policy = policy or SuperuserPolicy.from_settings(settings)
        self.identity_timeout = (
            identity_timeout
            if identity_timeout is not None
            else settings.identity_timeout_seconds
        )
        self.resolver = resolver or InclusionResolver(catalog)

    # ============================================================
    # Identity
    # ============================================================

    async def get_current_user(self) -> UserInfo | None:
        """Resolve the current user, failing closed.

        Returns:
            The user, or None when nobody is logged in, the lookup raised,
            or it did not finish within the identity timeout
        """
        try:
            return await asyncio.wait_for(
                self.identity.get_current_user(),
                timeout=self.identity_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "identity_resolution_timeout",
                timeout_seconds=self.identity_timeout,
            )
            return None
        except Exception as exc:
            logger.exception("identity_resolution_failed", error=str(exc))
            return None

    def is_superuser(self, user: UserInfo) -> bool:
        return self.policy.applies_to(user)

    def get_user_permissions(self, user: UserInfo) -> list[str]:
        """Get the permission names a user holds directly.

        Superusers are reported as holding every module-level catalog key.
        """
        if self.is_superuser(user):
            return list(self.catalog.module_keys())
        return [permission.name for permission in user.permissions]

    def user_has_permission(self, user: UserInfo, permission_key: str) -> bool:
        """Evaluate a permission for an already resolved, non-superuser user."""
        held = self.get_user_permissions(user)
        if permission_key in held:
            return True
        return any(self.resolver.includes_key(name, permission_key) for name in held)

    @staticmethod
    def user_has_role(user: UserInfo, role_name: str) -> bool:
        return role_name in user.role_names

    async def _decide(
        self,
        check: str,
        decide: Callable[[UserInfo], bool],
        **context: Any,
    ) -> bool:
        """Resolve the user once, apply the superuser bypass, then decide."""
        user = await self.get_current_user()
        if user is None:
            logger.debug("access_denied_no_user", check=check, **context)
            return False

        if self.is_superuser(user):
            logger.warning(
                "superuser_bypass",
                user_id=str(user.id) if user.id else None,
                username=user.username,
                check=check,
                **context,
            )
            return True

        try:
            return decide(user)
        except Exception as exc:
            logger.exception("access_check_failed", check=check, error=str(exc), **context)
            return False

    # ============================================================
    # Permission checks
    # ============================================================

    async def check_permission(self, permission_key: str) -> bool:
        """Check if the current user holds a permission.

        Args:
            permission_key: Catalog key or persisted permission name

        Returns:
            True if the user is a superuser, holds the key directly, or
            holds a key that includes it
        """
        return await self._decide(
            "permission",
            lambda user: self.user_has_permission(user, permission_key),
            permission=permission_key,
        )

    async def check_any_permission(self, permission_keys: Iterable[str]) -> bool:
        """Check if the current user holds at least one of the permissions."""
        keys = list(permission_keys)
        return await self._decide(
            "any_permission",
            lambda user: any(self.user_has_permission(user, key) for key in keys),
            permissions=keys,
        )

    async def check_all_permissions(self, permission_keys: Iterable[str]) -> bool:
        """Check if the current user holds every one of the permissions."""
        keys = list(permission_keys)
        return await self._decide(
            "all_permissions",
            lambda user: all(self.user_has_permission(user, key) for key in keys),
            permissions=keys,
        )

    async def check_module_permission(self, module: str) -> bool:
        """Check if the current user has any access to a module at all.

        Passes for the module key itself or its view/read keys.
        """
        return await self.check_any_permission(
            [module, *(_join(module, action) for action in MODULE_ACCESS_ACTIONS)]
        )

    async def check_page_permission(
        self, module: str, action: str = DEFAULT_PAGE_ACTION
    ) -> bool:
        return await self.check_permission(_join(module, action))

    async def check_button_permission(self, module: str, action: str) -> bool:
        return await self.check_permission(_join(module, action))

    async def check_data_permission(
        self, module: str, action: str = DEFAULT_DATA_ACTION
    ) -> bool:
        return await self.check_permission(_join(module, action))

    # ============================================================
    # Role checks
    # ============================================================

    async def check_role(self, role_name: str) -> bool:
        """Check if the current user has a role. No inclusion expansion."""
        return await self._decide(
            "role",
            lambda user: self.user_has_role(user, role_name),
            role=role_name,
        )

    async def check_any_role(self, role_names: Iterable[str]) -> bool:
        roles = list(role_names)
        return await self._decide(
            "any_role",
            lambda user: any(self.user_has_role(user, role) for role in roles),
            roles=roles,
        )

    async def check_all_roles(self, role_names: Iterable[str]) -> bool:
        roles = list(role_names)
        return await self._decide(
            "all_roles",
            lambda user: all(self.user_has_role(user, role) for role in roles),
            roles=roles,
        )

    async def is_super_admin(self) -> bool:
        return await self.check_role(SUPER_ADMIN_ROLE)

    async def is_system_admin(self) -> bool:
        return await self.check_any_role(SYSTEM_ADMIN_ROLES)

    # ============================================================
    # Composite checks
    # ============================================================

    async def check_route_permission(self, route: Any) -> bool:
        """Check the access requirements of a route.

        Args:
            route: A RouteMeta, a mapping of route metadata, or a route-like
                object/mapping carrying that metadata under ``meta``

        Returns:
            True for routes without requirements; otherwise True only if
            every stated requirement (permission and role) passes
        """
        try:
            meta = _route_meta(route)
        except PydanticValidationError as exc:
            logger.warning("route_meta_invalid", errors=exc.errors())
            return False

        if meta.is_public:
            return True

        if meta.requires_permission and not await self.check_permission(
            meta.requires_permission
        ):
            logger.warning(
                "route_permission_denied", permission=meta.requires_permission
            )
            return False

        if meta.requires_role and not await self.check_role(meta.requires_role):
            logger.warning("route_role_denied", role=meta.requires_role)
            return False

        return True

    async def check_requirement(
        self, requirement: str | PermissionRequirement | Mapping[str, Any]
    ) -> bool:
        """Evaluate a declarative requirement.

        A bare string is a single permission key. See PermissionRequirement
        for the precedence of its fields.
        """
        if isinstance(requirement, str):
            return await self.check_permission(requirement)

        try:
            req = PermissionRequirement.model_validate(requirement)
        except PydanticValidationError as exc:
            logger.warning("requirement_invalid", errors=exc.errors())
            return False

        if req.permission:
            return await self.check_permission(req.permission)
        if req.role:
            return await self.check_role(req.role)
        if req.permissions:
            if req.mode == "any":
                return await self.check_any_permission(req.permissions)
            return await self.check_all_permissions(req.permissions)
        if req.roles:
            if req.mode == "any":
                return await self.check_any_role(req.roles)
            return await self.check_all_roles(req.roles)
        return True

    async def check_user_status(self) -> bool:
        """Check that the current user's account is active.

        Applies to superusers as well; a suspended admin is still suspended.
        """
        user = await self.get_current_user()
        if user is None:
            return False
        return user.status is UserStatus.ACTIVE


def _join(module: str, action: str) -> str:
    return f"{module}{PERMISSION_KEY_SEPARATOR}{action}"


def _route_meta(route: Any) -> RouteMeta:
    if isinstance(route, RouteMeta):
        return route
    if isinstance(route, Mapping):
        meta = route.get("meta", route)
    else:
        meta = getattr(route, "meta", None)
    if isinstance(meta, RouteMeta):
        return meta
    return RouteMeta.model_validate(meta or {})


async def check_permission(
    user: UserInfo | None,
    permission_key: str,
    catalog: PermissionCatalog = DEFAULT_CATALOG,
) -> bool:
    """Convenience function to check an already resolved user's permission.

    For use where the caller has the user at hand and no session-level
    caching is needed.

    Args:
        user: The user to check, None for an anonymous caller
        permission_key: The permission key
        catalog: Catalog used for inclusion resolution

    Returns:
        True if the user has the permission
    """
    checker = PermissionChecker(StaticIdentityProvider(user), catalog=catalog)
    return await checker.check_permission(permission_key)
