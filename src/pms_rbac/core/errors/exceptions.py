"""Domain exceptions for the access-control layer.

Decision functions never raise these; they are used by the guards that
turn a denial into an error, by the identity provider, and by the
startup validation of the permission catalog.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP-style status code for callers that need one
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested record is not found.

    Example:
        raise NotFoundError("User not found", resource="user", resource_id=str(user_id))
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ValidationError(AppException):
    """Raised when data fails validation.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=[{"field": "key", "message": "Duplicate permission key"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class CatalogValidationError(ValidationError):
    """Raised when the permission catalog or the persisted assignments are inconsistent.

    This is a configuration error and is meant to stop the application
    at startup rather than surface as a silent deny at runtime.

    Example:
        raise CatalogValidationError(
            "Unknown include target",
            errors=[{"key": "system:admin", "message": "includes unknown key 'usr'"}]
        )
    """

    message = "Permission catalog is invalid"
    error_code = "catalog_invalid"
    status_code = 500


class UnauthorizedError(AppException):
    """Raised when no authenticated user is available.

    Example:
        raise UnauthorizedError("Login required")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when a user lacks permission to access a feature.

    Example:
        raise ForbiddenError(
            "Insufficient permissions",
            details={"required_permission": "user:delete"}
        )
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class IdentityResolutionError(AppException):
    """Raised when the assignment store returns an unusable user record."""

    message = "Could not resolve the current user"
    error_code = "identity_resolution_failed"
    status_code = 503
