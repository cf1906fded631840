"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
This module handles JWT token validation and role-based access control
using the security utilities defined in security.py.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
- The is_production check provides an additional safety layer
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from flight_connect.core.config import Settings, settings
from flight_connect.core.security import decode_token
from flight_connect.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents an authenticated user.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID)
        username: Login name
        role: One of pilot, dispatcher, admin
        name: Display name (optional)
    """

    id: UUID
    username: str
    role: str
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in {r.value for r in roles}

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, username={self.username}, role={self.role})"


def _is_dev_mode_safe(config: Settings = settings) -> bool:
    """
    Check if development mode is safe to enable.

    1. config.is_development must be True (PYTHON_ENV=development; the
       default is production)
    2. config.is_production must be False
    3. PYTHON_ENV environment variable must not be "production" or "staging"

    Returns:
        True only if ALL safety checks pass
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        config.is_development
        and not config.is_production
        and env_var != "production"
        and env_var != "staging"
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


# Development mode flag - allows mock authentication for LOCAL testing ONLY
_DEVELOPMENT_MODE = _is_dev_mode_safe()

# Development users for testing (only used when PYTHON_ENV=development)
_DEV_USERS = {
    "dev-admin-token": CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000001"),
        username="dev-admin",
        role=UserRole.ADMIN.value,
        name="Development Admin",
    ),
    "dev-dispatcher-token": CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000002"),
        username="dev-dispatcher",
        role=UserRole.DISPATCHER.value,
        name="Development Dispatcher",
    ),
}


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract user claims.

    Args:
        token: JWT token string from Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If token is invalid, expired or not an access token
    """
    if _DEVELOPMENT_MODE and token in _DEV_USERS:
        logger.debug("Development mode: Using test token")
        return _DEV_USERS[token]

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return CurrentUser(
            id=UUID(user_id_str),
            username=payload.get("username", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )

    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the caller.

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        CurrentUser for the authenticated caller

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    user = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id} ({user.role})")
    return user


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Build a dependency that only admits callers holding one of ``roles``.

    Usage:
        @router.post("/sessions")
        async def create(
            user: CurrentUser = Depends(require_roles(UserRole.DISPATCHER, UserRole.ADMIN))
        ):
            ...

    Raises:
        HTTPException 403: If the caller's role is not allowed
    """
    allowed = ", ".join(r.value for r in roles)

    async def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_role(*roles):
            logger.warning(
                f"Access denied: User {user.id} ({user.username}) has role '{user.role}', "
                f"one of [{allowed}] is required"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "ACCESS_DENIED",
                    "message": f"This endpoint requires one of the roles: {allowed}.",
                },
            )
        return user

    return _dependency


# Common role guards
require_scheduler = require_roles(UserRole.DISPATCHER, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)


__all__ = [
    "CurrentUser",
    "get_current_user",
    "require_roles",
    "require_scheduler",
    "require_admin",
]
