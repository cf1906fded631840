"""
Service Error Taxonomy

Every failure the service layer reports carries a human-readable message,
a stable machine-readable error code and the HTTP status the transport
layer should use. Routers convert these into HTTPExceptions with
``handle_service_error``.

Kinds:
- ValidationError: malformed schedule/time strings, wrong-length codes
- ConflictError: overlapping session, duplicate code/key/pilot
- NotFoundError: missing entity, never retried
- InvalidStateError: operation not allowed in the entity's current state
- StoreError: storage collaborator failure, surfaced as a generic failure
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input passes schema parsing but is semantically invalid."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class ScheduleValidationError(ValidationError):
    """Raised when a session schedule field is malformed or out of order."""

    def __init__(self, field: str, message: str):
        super().__init__(message=f"{field}: {message}", field=field)


class ConflictError(ServiceError):
    """Raised when an operation collides with existing data."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
        )


class NotFoundError(ServiceError):
    """Raised when a requested entity does not exist."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class InvalidStateError(ServiceError):
    """Raised when an entity is not in the state an operation requires."""

    def __init__(self, message: str, error_code: str = "INVALID_STATE"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
        )


class StoreError(ServiceError):
    """Raised when the data store fails (connectivity, unexpected constraint)."""

    def __init__(self, message: str = "The data store is temporarily unavailable."):
        super().__init__(
            message=message,
            error_code="STORE_ERROR",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def handle_service_error(e: ServiceError) -> NoReturn:
    """Convert a service error to an HTTPException."""
    detail = {
        "error": e.error_code,
        "message": e.message,
    }
    field = getattr(e, "field", None)
    if field:
        detail["field"] = field

    raise HTTPException(status_code=e.status_code, detail=detail) from e


def internal_error() -> HTTPException:
    """Generic 500 for unexpected failures; the caller logs the exception."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


__all__ = [
    "ServiceError",
    "ValidationError",
    "ScheduleValidationError",
    "ConflictError",
    "NotFoundError",
    "InvalidStateError",
    "StoreError",
    "handle_service_error",
    "internal_error",
]
