"""Login state for one client session.

Holds the logged-in user and the cached checker that answers for them.
Logging in or out rotates the session id, which empties the cache.
"""

from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pms_rbac.core.permissions.cache import CachedPermissionChecker
from pms_rbac.core.permissions.catalog import DEFAULT_CATALOG, PermissionCatalog
from pms_rbac.core.permissions.checker import PermissionChecker, SuperuserPolicy
from pms_rbac.core.permissions.identity import DatabaseIdentityProvider


logger = structlog.get_logger()


class AuthSession:
    """A client session backed by the database identity provider.

    Usage:
        auth = AuthSession(db)
        auth.login(user.id)
        if await auth.checker.check_permission("project:view"):
            ...
        auth.logout()
    """

    def __init__(
        self,
        db: AsyncSession,
        catalog: PermissionCatalog = DEFAULT_CATALOG,
        policy: SuperuserPolicy | None = None,
        identity_timeout: float | None = None,
    ) -> None:
        self.identity = DatabaseIdentityProvider(db)
        self.checker = CachedPermissionChecker(
            PermissionChecker(
                self.identity,
                catalog=catalog,
                policy=policy,
                identity_timeout=identity_timeout,
            )
        )
        self.session_id: str | None = None

    @property
    def user_id(self) -> UUID | None:
        return self.identity.user_id

    @property
    def is_authenticated(self) -> bool:
        return self.identity.user_id is not None

    def login(self, user_id: UUID) -> str:
        """Start a session for a user.

        Args:
            user_id: The user who logged in

        Returns:
            The new session id
        """
        self.identity.user_id = user_id
        self.session_id = uuid4().hex
        self.checker.bind_session(self.session_id)
        logger.info("session_started", user_id=str(user_id), session_id=self.session_id)
        return self.session_id

    def logout(self) -> None:
        """End the session and drop every cached decision."""
        if self.identity.user_id is not None:
            logger.info(
                "session_ended",
                user_id=str(self.identity.user_id),
                session_id=self.session_id,
            )
        self.identity.user_id = None
        self.session_id = None
        self.checker.bind_session(None)
        self.checker.clear_cache()
