"""
Authentication Service

Account creation and credential checks. Pilots register themselves;
dispatchers are created by admins. Only dispatchers and admins may log in
to the scheduling API.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.exceptions import ConflictError, ServiceError
from flight_connect.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from flight_connect.modules.auth.schemas import LoginResponse, RegisterRequest, UserResponse
from flight_connect.modules.users.models import User, UserRole
from flight_connect.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class UsernameTakenError(ConflictError):
    """Raised when registering a username that already exists."""

    def __init__(self, username: str):
        super().__init__(
            message=f"Username {username} already exists",
            error_code="USERNAME_TAKEN",
        )


class InvalidCredentialsError(ServiceError):
    """Raised on an unknown username or wrong password."""

    def __init__(self):
        super().__init__(
            message="Invalid username or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


class LoginNotAllowedError(ServiceError):
    """Raised when a pilot tries to log in to the scheduling API."""

    def __init__(self):
        super().__init__(
            message="Only dispatchers and administrators can log in.",
            error_code="LOGIN_NOT_ALLOWED",
            status_code=403,
        )


def issue_tokens(user: User) -> LoginResponse:
    """Build access/refresh tokens carrying the claims the auth layer expects."""
    additional_claims = {
        "username": user.username,
        "role": user.role.value,
        "name": user.display_name,
    }

    return LoginResponse(
        access_token=create_access_token(
            subject=str(user.id),
            additional_claims=additional_claims,
        ),
        refresh_token=create_refresh_token(subject=str(user.id)),
        user=UserResponse.model_validate(user),
    )


async def create_account(db: AsyncSession, data: RegisterRequest, role: UserRole) -> User:
    """
    Create a user account.

    Raises:
        UsernameTakenError: If the username is already registered
    """
    if await UserRepository.username_exists(db, data.username):
        raise UsernameTakenError(data.username)

    try:
        return await UserRepository.create(
            db,
            username=data.username,
            password_hash=hash_password(data.password),
            name=data.name,
            role=role,
        )
    except IntegrityError as e:
        await db.rollback()
        raise UsernameTakenError(data.username) from e


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """
    Check credentials for a scheduling login.

    Raises:
        InvalidCredentialsError: Unknown username or wrong password
        LoginNotAllowedError: The account is a pilot account
    """
    user = await UserRepository.get_by_username(db, username)

    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for username: {username.lower()}")
        raise InvalidCredentialsError()

    if user.role == UserRole.PILOT:
        logger.warning(f"Pilot login refused: {user.username}")
        raise LoginNotAllowedError()

    logger.info(f"User logged in: {user.username} (role: {user.role.value})")
    return user


async def list_dispatchers(db: AsyncSession) -> list[User]:
    return await UserRepository.list_by_role(db, UserRole.DISPATCHER)
