"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pms_rbac.core.database import Base
from pms_rbac.core.permissions import (
    DEFAULT_CATALOG,
    PermissionCatalog,
    PermissionChecker,
    SuperuserPolicy,
)
from pms_rbac.core.permissions.models import Permission, Role, UserRole  # noqa: F401
from pms_rbac.core.permissions.schemas import UserInfo

# Import all models to ensure they're registered with Base.metadata
from pms_rbac.modules.users.models import User  # noqa: F401
from tests.factories import CountingIdentityProvider


# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create a fresh in-memory database with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests.

    Each test gets its own in-memory database, so nothing leaks between tests.
    """
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


# ============================================================
# Checker Fixtures
# ============================================================


@pytest.fixture
def catalog() -> PermissionCatalog:
    """The application's permission catalog."""
    return DEFAULT_CATALOG


@pytest.fixture
def policy() -> SuperuserPolicy:
    """Superuser policy matching the default settings."""
    return SuperuserPolicy(honor_superuser_flag=True, legacy_username="admin")


@pytest.fixture
def make_checker(catalog: PermissionCatalog, policy: SuperuserPolicy):
    """Build a checker around a counting identity provider.

    Usage:
        checker, provider = make_checker(user)
    """

    def _make(
        user: UserInfo | None = None,
        error: Exception | None = None,
        delay: float = 0,
        timeout: float = 1.0,
    ) -> tuple[PermissionChecker, CountingIdentityProvider]:
        provider = CountingIdentityProvider(user=user, error=error, delay=delay)
        checker = PermissionChecker(
            provider,
            catalog=catalog,
            policy=policy,
            identity_timeout=timeout,
        )
        return checker, provider

    return _make
