"""Test factories."""

from tests.factories.identity import CountingIdentityProvider
from tests.factories.user import (
    PermissionInfoFactory,
    RoleInfoFactory,
    UserInfoFactory,
    make_user,
)


__all__ = [
    "CountingIdentityProvider",
    "PermissionInfoFactory",
    "RoleInfoFactory",
    "UserInfoFactory",
    "make_user",
]
