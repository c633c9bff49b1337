"""Integration tests for default seeding and catalog verification.

These tests verify that seeding creates the default permissions, roles
and users, and that the seeded data resolves through the checker.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.constants import (
    GUEST_ROLE,
    REGULAR_USER_ROLE,
    SUPER_ADMIN_ROLE,
    SYSTEM_ADMIN_ROLE,
)
from pms_rbac.core.errors import CatalogValidationError, NotFoundError
from pms_rbac.core.permissions import (
    DEFAULT_CATALOG,
    DatabaseIdentityProvider,
    PermissionChecker,
    SuperuserPolicy,
)
from pms_rbac.core.permissions.models import Permission, Role
from pms_rbac.core.permissions.validation import (
    find_unknown_permissions,
    verify_assigned_permissions,
)
from pms_rbac.core.seeding import seed_rbac
from pms_rbac.modules.users.repos import UserRepository


pytestmark = pytest.mark.integration


async def _checker_for(db: AsyncSession, username: str) -> PermissionChecker:
    user = await UserRepository(db).get_by_username(username)
    assert user is not None
    return PermissionChecker(
        DatabaseIdentityProvider(db, user.id),
        policy=SuperuserPolicy(honor_superuser_flag=True, legacy_username=None),
    )


# ============================================================
# Seed Default Scenario Tests
# ============================================================


class TestSeedRbac:
    """Tests for seed_rbac."""

    async def test_creates_catalog_permissions(self, db: AsyncSession):
        created = await seed_rbac(db)

        count = await db.scalar(select(func.count()).select_from(Permission))
        assert created["permissions"] == len(DEFAULT_CATALOG)
        assert count == len(DEFAULT_CATALOG)

    async def test_creates_default_roles_and_users(self, db: AsyncSession):
        created = await seed_rbac(db)

        assert created["roles"] == 4
        assert created["users"] == 4
        names = set((await db.execute(select(Role.name))).scalars().all())
        assert names == {SUPER_ADMIN_ROLE, SYSTEM_ADMIN_ROLE, REGULAR_USER_ROLE, GUEST_ROLE}

    async def test_super_admin_role_holds_every_key(self, db: AsyncSession):
        await seed_rbac(db)

        role = (
            await db.execute(select(Role).where(Role.name == SUPER_ADMIN_ROLE))
        ).scalar_one()
        assert role.permission_names == set(DEFAULT_CATALOG.keys())

    async def test_is_idempotent(self, db: AsyncSession):
        await seed_rbac(db)
        second = await seed_rbac(db)

        assert second == {"permissions": 0, "roles": 0, "users": 0}
        count = await db.scalar(select(func.count()).select_from(Role))
        assert count == 4

    async def test_admin_is_superuser(self, db: AsyncSession):
        await seed_rbac(db)

        checker = await _checker_for(db, "admin")

        assert await checker.is_super_admin() is True
        assert await checker.check_permission("not:in:catalog") is True

    async def test_manager_resolves_through_system_admin(self, db: AsyncSession):
        await seed_rbac(db)

        checker = await _checker_for(db, "manager")

        assert await checker.is_system_admin() is True
        assert await checker.check_permission("user:read") is True
        assert await checker.check_permission("role:assign_permission") is True
        assert await checker.check_permission("dashboard:view") is True
        assert await checker.check_permission("project:view") is False

    async def test_regular_user_is_read_only(self, db: AsyncSession):
        await seed_rbac(db)

        checker = await _checker_for(db, "user")

        assert await checker.check_page_permission("project") is True
        assert await checker.check_permission("project:create") is False
        assert await checker.check_user_status() is True

    async def test_guest_sees_dashboard_only(self, db: AsyncSession):
        await seed_rbac(db)

        checker = await _checker_for(db, "guest")

        assert await checker.check_permission("dashboard:view") is True
        assert await checker.check_module_permission("dashboard") is True
        assert await checker.check_module_permission("user") is False


# ============================================================
# Catalog Verification Tests
# ============================================================


class TestVerifyAssignedPermissions:
    """Tests for matching persisted permission names to the catalog."""

    def test_find_unknown_permissions(self):
        unknown = find_unknown_permissions(
            ["user:view", "profile:view", "profile:view", "audit"]
        )

        assert unknown == ["audit", "profile:view"]

    async def test_seeded_data_matches_catalog(self, db: AsyncSession):
        await seed_rbac(db)

        assert await verify_assigned_permissions(db) == []

    async def test_unknown_name_non_strict(self, db: AsyncSession):
        await seed_rbac(db)
        db.add(Permission(name="profile:view"))
        await db.flush()

        unknown = await verify_assigned_permissions(db, strict=False)

        assert unknown == ["profile:view"]

    async def test_unknown_name_strict(self, db: AsyncSession):
        db.add(Permission(name="profile:view"))
        await db.flush()

        with pytest.raises(CatalogValidationError) as exc_info:
            await verify_assigned_permissions(db, strict=True)

        assert exc_info.value.error_code == "catalog_invalid"
        assert exc_info.value.details["errors"] == [
            {"permission": "profile:view", "message": "no catalog entry"}
        ]


# ============================================================
# Seed Reference Errors
# ============================================================


class TestSeedReferences:
    """Tests for seeds that name missing permissions or roles."""

    async def test_role_with_unknown_permission(self, db: AsyncSession):
        roles = [{"name": "审计员", "description": "Auditor", "permissions": ["audit:view"]}]

        with pytest.raises(NotFoundError) as exc_info:
            await seed_rbac(db, roles=roles, users=[])

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {
            "resource": "permission",
            "resource_id": "audit:view",
        }

    async def test_user_with_unknown_role(self, db: AsyncSession):
        users = [
            {
                "username": "auditor",
                "email": "auditor@example.com",
                "full_name": "Auditor",
                "is_superuser": False,
                "roles": [GUEST_ROLE, "审计员"],
            }
        ]

        with pytest.raises(NotFoundError) as exc_info:
            await seed_rbac(db, users=users)

        assert exc_info.value.details["resource"] == "role"
        assert exc_info.value.details["resource_id"] == "审计员"
        assert await UserRepository(db).get_by_username("auditor") is None
