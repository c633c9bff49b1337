"""Permission system for role-based access control (RBAC)."""

from pms_rbac.core.permissions.cache import CachedPermissionChecker
from pms_rbac.core.permissions.catalog import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    PermissionDefinition,
    PermissionKey,
    PermissionLevel,
)
from pms_rbac.core.permissions.checker import (
    PermissionChecker,
    SuperuserPolicy,
    check_permission,
    permission_error_message,
)
from pms_rbac.core.permissions.decorators import (
    require_all_permissions,
    require_any_permission,
    require_permission,
    require_role,
)
from pms_rbac.core.permissions.identity import (
    DatabaseIdentityProvider,
    IdentityProvider,
    StaticIdentityProvider,
)
from pms_rbac.core.permissions.models import Permission, Role, UserRole
from pms_rbac.core.permissions.resolver import InclusionResolver
from pms_rbac.core.permissions.schemas import (
    PermissionInfo,
    PermissionRequirement,
    RoleInfo,
    RouteMeta,
    UserInfo,
    UserStatus,
)
from pms_rbac.core.permissions.session import AuthSession


__all__ = [
    # Catalog
    "DEFAULT_CATALOG",
    "AuthSession",
    "CachedPermissionChecker",
    "DatabaseIdentityProvider",
    "IdentityProvider",
    "InclusionResolver",
    # Models
    "Permission",
    "PermissionCatalog",
    # Checker
    "PermissionChecker",
    "PermissionDefinition",
    "PermissionInfo",
    "PermissionKey",
    "PermissionLevel",
    "PermissionRequirement",
    "Role",
    "RoleInfo",
    "RouteMeta",
    "StaticIdentityProvider",
    "SuperuserPolicy",
    "UserInfo",
    "UserRole",
    "UserStatus",
    "check_permission",
    "permission_error_message",
    # Decorators
    "require_all_permissions",
    "require_any_permission",
    "require_permission",
    "require_role",
]
