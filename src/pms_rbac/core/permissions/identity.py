"""Identity and assignment providers.

The decision engine never reaches for a global "current user". It is
given a provider whose ``get_current_user`` returns the user of the
session being checked, with roles and permissions already resolved.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.errors import IdentityResolutionError
from pms_rbac.core.permissions.schemas import PermissionInfo, RoleInfo, UserInfo


logger = structlog.get_logger()


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves the active session to a user record.

    Implementations must be free of side effects from the checker's point
    of view and may be called any number of times.
    """

    async def get_current_user(self) -> UserInfo | None:
        """Return the current user, or None if nobody is logged in."""
        ...


class StaticIdentityProvider:
    """Provider for callers that already hold the resolved user.

    Example:
        checker = PermissionChecker(StaticIdentityProvider(user_info))
    """

    def __init__(self, user: UserInfo | None = None) -> None:
        self.user = user

    async def get_current_user(self) -> UserInfo | None:
        return self.user


class DatabaseIdentityProvider:
    """Provider that reads the user and their assignments from the database.

    The record is rebuilt on every call; callers that want to avoid
    repeated lookups wrap the checker in a CachedPermissionChecker.

    Attributes:
        session: Database session used for the lookups
        user_id: ID of the logged-in user, None when logged out
    """

    def __init__(self, session: AsyncSession, user_id: UUID | None = None) -> None:
        self.session = session
        self.user_id = user_id

    async def get_current_user(self) -> UserInfo | None:
        """Load the current user with roles and permissions.

        Returns:
            The user record, or None if no user is set or the user no
            longer exists

        Raises:
            IdentityResolutionError: If the stored record cannot be turned
                into a UserInfo (e.g. an unknown status value)
        """
        if self.user_id is None:
            return None

        from pms_rbac.modules.users.repos import UserRepository  # noqa: PLC0415

        repo = UserRepository(self.session)
        user = await repo.get_by_id(self.user_id)
        if user is None:
            logger.info("identity_user_not_found", user_id=str(self.user_id))
            return None

        roles = await repo.get_roles(user.id)
        permissions = await repo.get_permissions(user.id)

        try:
            return UserInfo(
                id=user.id,
                username=user.username,
                email=user.email,
                full_name=user.full_name,
                status=user.status,
                is_superuser=user.is_superuser,
                roles=[RoleInfo.model_validate(role) for role in roles],
                permissions=[PermissionInfo.model_validate(p) for p in permissions],
            )
        except PydanticValidationError as exc:
            raise IdentityResolutionError(
                "Stored user record is malformed",
                details={"user_id": str(user.id), "errors": exc.errors()},
            ) from exc
