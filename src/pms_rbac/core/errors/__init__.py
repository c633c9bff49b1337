"""Error hierarchy for the access-control layer."""

from pms_rbac.core.errors.exceptions import (
    AppException,
    CatalogValidationError,
    ForbiddenError,
    IdentityResolutionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


__all__ = [
    "AppException",
    "CatalogValidationError",
    "ForbiddenError",
    "IdentityResolutionError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
]
