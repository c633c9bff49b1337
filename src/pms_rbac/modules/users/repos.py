"""User repository for database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.permissions.models import Permission, Role, UserRole, role_permissions
from pms_rbac.modules.users.models import User


class UserRepository:
    """Repository for User database operations.

    Reads users and their assignments through the user_roles and
    role_permissions join tables.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user's UUID

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by username.

        Args:
            username: The login name

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_roles(self, user_id: UUID) -> list[Role]:
        """Get all roles assigned to a user, ordered by name.

        Args:
            user_id: The user's UUID

        Returns:
            List of roles with their permissions loaded
        """
        stmt = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_permissions(self, user_id: UUID) -> list[Permission]:
        """Get the distinct permissions a user holds through their roles.

        Args:
            user_id: The user's UUID

        Returns:
            Permissions ordered by name, each listed once
        """
        stmt = (
            select(Permission)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .join(UserRole, UserRole.role_id == role_permissions.c.role_id)
            .where(UserRole.user_id == user_id)
            .distinct()
            .order_by(Permission.name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def assign_roles(self, user_id: UUID, role_ids: list[UUID]) -> None:
        """Replace the roles assigned to a user.

        Args:
            user_id: The user's UUID
            role_ids: Roles the user should hold afterwards
        """
        existing = await self.session.execute(
            select(UserRole).where(UserRole.user_id == user_id)
        )
        for assignment in existing.scalars().all():
            await self.session.delete(assignment)
        await self.session.flush()

        for role_id in dict.fromkeys(role_ids):
            self.session.add(UserRole(user_id=user_id, role_id=role_id))
        await self.session.flush()
