"""Default roles, users and permission rows.

Seeding is idempotent: rows that already exist (matched by name or
username) are left alone.
"""

from typing import TypedDict

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.constants import (
    GUEST_ROLE,
    LEGACY_SUPERUSER_USERNAME,
    REGULAR_USER_ROLE,
    SUPER_ADMIN_ROLE,
    SYSTEM_ADMIN_ROLE,
)
from pms_rbac.core.errors import NotFoundError
from pms_rbac.core.permissions.catalog import DEFAULT_CATALOG, PermissionCatalog
from pms_rbac.core.permissions.models import Permission, Role
from pms_rbac.core.permissions.schemas import UserStatus
from pms_rbac.modules.users.models import User
from pms_rbac.modules.users.repos import UserRepository


logger = structlog.get_logger()


class RoleSeed(TypedDict):
    name: str
    description: str
    permissions: list[str] | None  # None means every catalog key


class UserSeed(TypedDict):
    username: str
    email: str
    full_name: str
    is_superuser: bool
    roles: list[str]


DEFAULT_ROLES: list[RoleSeed] = [
    {
        "name": SUPER_ADMIN_ROLE,
        "description": "系统超级管理员，拥有所有权限",
        "permissions": None,
    },
    {
        "name": SYSTEM_ADMIN_ROLE,
        "description": "系统管理员，负责用户和权限管理",
        "permissions": ["system:admin", "dashboard"],
    },
    {
        "name": REGULAR_USER_ROLE,
        "description": "普通用户，只能查看基础信息",
        "permissions": ["readonly"],
    },
    {
        "name": GUEST_ROLE,
        "description": "访客用户，只能查看仪表板",
        "permissions": ["dashboard:view"],
    },
]

DEFAULT_USERS: list[UserSeed] = [
    {
        "username": LEGACY_SUPERUSER_USERNAME,
        "email": "admin@example.com",
        "full_name": "系统管理员",
        "is_superuser": True,
        "roles": [SUPER_ADMIN_ROLE],
    },
    {
        "username": "manager",
        "email": "manager@example.com",
        "full_name": "项目经理",
        "is_superuser": False,
        "roles": [SYSTEM_ADMIN_ROLE],
    },
    {
        "username": "user",
        "email": "user@example.com",
        "full_name": "普通用户",
        "is_superuser": False,
        "roles": [REGULAR_USER_ROLE],
    },
    {
        "username": "guest",
        "email": "guest@example.com",
        "full_name": "访客用户",
        "is_superuser": False,
        "roles": [GUEST_ROLE],
    },
]


class SeedResult(TypedDict):
    permissions: int
    roles: int
    users: int


async def seed_permissions(
    session: AsyncSession,
    catalog: PermissionCatalog = DEFAULT_CATALOG,
) -> dict[str, Permission]:
    """Create one permission row per catalog key.

    Returns:
        Every permission row keyed by name, existing and new
    """
    result = await session.execute(select(Permission))
    existing = {permission.name: permission for permission in result.scalars().all()}

    for definition in catalog:
        if definition.key in existing:
            continue
        permission = Permission(name=definition.key, description=definition.description)
        session.add(permission)
        existing[definition.key] = permission
        logger.debug("seed_permission_created", permission=definition.key)

    await session.flush()
    return existing


async def seed_rbac(
    session: AsyncSession,
    catalog: PermissionCatalog = DEFAULT_CATALOG,
    roles: list[RoleSeed] | None = None,
    users: list[UserSeed] | None = None,
) -> SeedResult:
    """Create the default permissions, roles and users.

    Args:
        session: Database session; the caller commits
        catalog: Catalog the permission rows are generated from
        roles: Role seeds, defaults to DEFAULT_ROLES
        users: User seeds, defaults to DEFAULT_USERS

    Returns:
        How many rows of each kind were created

    Raises:
        NotFoundError: If a role seed names an unknown permission,
            or a user seed names a role that is not being seeded
    """
    created: SeedResult = {"permissions": 0, "roles": 0, "users": 0}

    before = await session.execute(select(Permission.name))
    known_names = set(before.scalars().all())
    permissions = await seed_permissions(session, catalog)
    created["permissions"] = len(set(permissions) - known_names)

    role_rows: dict[str, Role] = {}
    for role_seed in roles if roles is not None else DEFAULT_ROLES:
        result = await session.execute(select(Role).where(Role.name == role_seed["name"]))
        role = result.scalar_one_or_none()
        if role is None:
            names = role_seed["permissions"]
            if names is None:
                selected = list(permissions.values())
            else:
                missing = [name for name in names if name not in permissions]
                if missing:
                    raise NotFoundError(
                        f"Role {role_seed['name']} references unknown permissions",
                        resource="permission",
                        resource_id=", ".join(missing),
                    )
                selected = [permissions[name] for name in names]
            role = Role(name=role_seed["name"], description=role_seed["description"])
            role.permissions.extend(selected)
            session.add(role)
            created["roles"] += 1
            logger.info("seed_role_created", role=role.name, permissions=len(selected))
        role_rows[role.name] = role
    await session.flush()

    repo = UserRepository(session)
    for user_seed in users if users is not None else DEFAULT_USERS:
        if await repo.get_by_username(user_seed["username"]) is not None:
            continue
        missing = [name for name in user_seed["roles"] if name not in role_rows]
        if missing:
            raise NotFoundError(
                f"User {user_seed['username']} references unknown roles",
                resource="role",
                resource_id=", ".join(missing),
            )
        user = await repo.create(
            User(
                username=user_seed["username"],
                email=user_seed["email"],
                full_name=user_seed["full_name"],
                status=UserStatus.ACTIVE.value,
                is_superuser=user_seed["is_superuser"],
            )
        )
        await repo.assign_roles(
            user.id,
            [role_rows[name].id for name in user_seed["roles"]],
        )
        created["users"] += 1
        logger.info("seed_user_created", username=user.username)

    logger.info("seed_completed", **created)
    return created
