"""Per-session memoization of permission decisions.

Wraps a PermissionChecker so that repeated checks of the same key or
role within one session skip the identity lookup. The cache has no TTL;
it lives exactly as long as the session that owns it and is emptied on
logout or when the session changes.
"""

import asyncio
from collections.abc import Iterable
from types import MappingProxyType
from typing import Any

import structlog

from pms_rbac.core.constants import (
    DEFAULT_DATA_ACTION,
    DEFAULT_PAGE_ACTION,
    MODULE_ACCESS_ACTIONS,
    PERMISSION_KEY_SEPARATOR,
    SUPER_ADMIN_ROLE,
    SYSTEM_ADMIN_ROLES,
)
from pms_rbac.core.permissions.checker import PermissionChecker


logger = structlog.get_logger()


class CachedPermissionChecker:
    """Caching layer over a PermissionChecker for one session.

    ``check_permission`` and ``check_role`` results are memoized, and the
    any/all, module/page/button/data and admin checks are answered from
    those memoized results. ``check_route_permission``,
    ``check_requirement`` and ``check_user_status`` are delegated to the
    wrapped checker and resolve identity on every call.

    Clearing the cache starts a new generation; lookups that were in
    flight when it was cleared never write into the new one.

    Attributes:
        checker: The wrapped decision engine
        session_id: Identity of the session the cached answers belong to
    """

    def __init__(self, checker: PermissionChecker, session_id: str | None = None) -> None:
        self.checker = checker
        self.session_id = session_id
        self._permissions: dict[str, bool] = {}
        self._roles: dict[str, bool] = {}
        self._pending = 0
        self._generation = 0

    def __getattr__(self, name: str) -> Any:
        # Uncached operations go straight to the engine
        return getattr(self.checker, name)

    @property
    def permissions(self) -> MappingProxyType[str, bool]:
        """Read-only view of the cached permission decisions."""
        return MappingProxyType(self._permissions)

    @property
    def roles(self) -> MappingProxyType[str, bool]:
        """Read-only view of the cached role decisions."""
        return MappingProxyType(self._roles)

    @property
    def loading(self) -> bool:
        """Whether any lookup is currently in flight."""
        return self._pending > 0

    def bind_session(self, session_id: str | None) -> None:
        """Attach the cache to a session, dropping answers from a previous one."""
        if session_id != self.session_id:
            self.clear_cache()
            self.session_id = session_id

    def clear_cache(self) -> None:
        """Forget every cached decision, including ones still being looked up."""
        self._generation += 1
        self._permissions.clear()
        self._roles.clear()
        logger.debug("permission_cache_cleared", session_id=self.session_id)

    async def check_permission(self, permission_key: str) -> bool:
        """Check a permission, answering from the cache when possible.

        A lookup that raises is cached as False. A lookup that finishes
        after the cache was cleared is returned but not stored.
        """
        cached = self._permissions.get(permission_key)
        if cached is not None:
            return cached

        generation = self._generation
        self._pending += 1
        try:
            result = await self.checker.check_permission(permission_key)
        except Exception as exc:
            logger.exception(
                "permission_check_failed", permission=permission_key, error=str(exc)
            )
            result = False
        finally:
            self._pending -= 1

        if generation == self._generation:
            self._permissions[permission_key] = result
        else:
            logger.debug("stale_permission_discarded", permission=permission_key)
        return result

    async def check_role(self, role_name: str) -> bool:
        """Check a role, answering from the cache when possible."""
        cached = self._roles.get(role_name)
        if cached is not None:
            return cached

        generation = self._generation
        self._pending += 1
        try:
            result = await self.checker.check_role(role_name)
        except Exception as exc:
            logger.exception("role_check_failed", role=role_name, error=str(exc))
            result = False
        finally:
            self._pending -= 1

        if generation == self._generation:
            self._roles[role_name] = result
        else:
            logger.debug("stale_role_discarded", role=role_name)
        return result

    # ============================================================
    # Composite checks over the cached answers
    # ============================================================

    async def check_any_permission(self, permission_keys: Iterable[str]) -> bool:
        keys = list(permission_keys)
        if not keys:
            return await self.checker.check_any_permission(keys)
        for key in keys:
            if await self.check_permission(key):
                return True
        return False

    async def check_all_permissions(self, permission_keys: Iterable[str]) -> bool:
        keys = list(permission_keys)
        if not keys:
            return await self.checker.check_all_permissions(keys)
        for key in keys:
            if not await self.check_permission(key):
                return False
        return True

    async def check_module_permission(self, module: str) -> bool:
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

    async def check_any_role(self, role_names: Iterable[str]) -> bool:
        roles = list(role_names)
        if not roles:
            return await self.checker.check_any_role(roles)
        for role in roles:
            if await self.check_role(role):
                return True
        return False

    async def check_all_roles(self, role_names: Iterable[str]) -> bool:
        roles = list(role_names)
        if not roles:
            return await self.checker.check_all_roles(roles)
        for role in roles:
            if not await self.check_role(role):
                return False
        return True

    async def is_super_admin(self) -> bool:
        return await self.check_role(SUPER_ADMIN_ROLE)

    async def is_system_admin(self) -> bool:
        return await self.check_any_role(SYSTEM_ADMIN_ROLES)

    # ============================================================
    # Preloading
    # ============================================================

    async def preload_permissions(self, permission_keys: Iterable[str]) -> None:
        """Check several permissions concurrently and cache the answers."""
        await asyncio.gather(*(self.check_permission(key) for key in permission_keys))

    async def preload_roles(self, role_names: Iterable[str]) -> None:
        """Check several roles concurrently and cache the answers."""
        await asyncio.gather(*(self.check_role(role) for role in role_names))


def _join(module: str, action: str) -> str:
    return f"{module}{PERMISSION_KEY_SEPARATOR}{action}"
