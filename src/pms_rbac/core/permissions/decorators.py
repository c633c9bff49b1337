"""Permission decorators for guarding async operations.

The decorated coroutine must receive the checker for the current
session as the ``checker`` keyword argument.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import structlog

from pms_rbac.core.errors import ForbiddenError, UnauthorizedError
from pms_rbac.core.permissions.cache import CachedPermissionChecker
from pms_rbac.core.permissions.checker import PermissionChecker, permission_error_message


logger = structlog.get_logger()

P = ParamSpec("P")
R = TypeVar("R")

Checker = PermissionChecker | CachedPermissionChecker


def _get_checker(kwargs: dict[str, Any]) -> Checker:
    """Extract the checker from keyword arguments.

    Raises:
        UnauthorizedError: If no checker was passed
    """
    checker = kwargs.get("checker")
    if checker is None:
        raise UnauthorizedError(
            "Authentication required",
            error_code="auth_required",
        )
    return checker


def _guard(
    check: Callable[[Checker], Awaitable[bool]],
    message: str,
    details: dict[str, Any],
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            checker = _get_checker(kwargs)

            if not await check(checker):
                logger.info("operation_forbidden", operation=func.__qualname__, **details)
                raise ForbiddenError(
                    message,
                    error_code="permission_denied",
                    details=details,
                )

            return await func(*args, **kwargs)

        return wrapper

    return decorator


def require_permission(
    permission_key: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that requires a specific permission.

    Usage:
        @require_permission("user:delete")
        async def delete_user(user_id: UUID, *, checker: PermissionChecker):
            ...

    Args:
        permission_key: The permission key

    Returns:
        Decorator function

    Raises:
        ForbiddenError: If the user lacks the permission
    """
    return _guard(
        lambda checker: checker.check_permission(permission_key),
        permission_error_message(permission_name=permission_key),
        {"required_permissions": [permission_key]},
    )


def require_any_permission(
    permission_keys: list[str],
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that requires any one of the specified permissions.

    Usage:
        @require_any_permission(["project:view", "business:admin"])
        async def list_projects(*, checker: PermissionChecker):
            ...
    """
    return _guard(
        lambda checker: checker.check_any_permission(permission_keys),
        f"Missing required permission. Need one of: {', '.join(permission_keys)}",
        {"required_permissions": list(permission_keys)},
    )


def require_all_permissions(
    permission_keys: list[str],
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that requires all of the specified permissions."""
    return _guard(
        lambda checker: checker.check_all_permissions(permission_keys),
        f"Missing required permissions: {', '.join(permission_keys)}",
        {"required_permissions": list(permission_keys)},
    )


def require_role(
    role_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator that requires a role.

    Usage:
        @require_role("系统管理员")
        async def reset_password(user_id: UUID, *, checker: PermissionChecker):
            ...
    """
    return _guard(
        lambda checker: checker.check_role(role_name),
        permission_error_message(role_name=role_name),
        {"required_role": role_name},
    )
