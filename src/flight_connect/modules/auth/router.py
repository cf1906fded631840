"""
Authentication router.

Endpoints:
- POST /auth/register - Pilot self-registration
- POST /auth/login - Dispatcher/admin login
- GET /auth/me - Current user from the bearer token
- POST /auth/dispatchers - Create a dispatcher (admin)
- GET /auth/dispatchers - List dispatchers (admin)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.auth import CurrentUser, get_current_user, require_admin
from flight_connect.core.database import get_db
from flight_connect.core.exceptions import (
    ServiceError,
    StoreError,
    handle_service_error,
    internal_error,
)
from flight_connect.modules.auth import service
from flight_connect.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from flight_connect.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Register a pilot account and return tokens.

    Raises:
        HTTPException 409: Username already exists
    """
    try:
        user = await service.create_account(db, data, UserRole.PILOT)
        return service.issue_tokens(user)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error registering user: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error registering user: {e}")
        raise internal_error() from e


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate a dispatcher or admin and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Pilot accounts cannot log in
    """
    try:
        user = await service.authenticate(db, credentials.username, credentials.password)
        return service.issue_tokens(user)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error during login: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error during login: {e}")
        raise internal_error() from e


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUser = Depends(get_current_user)) -> UserResponse:
    """Return the user identified by the bearer token."""
    return UserResponse(
        id=current_user.id,
        username=current_user.username,
        name=current_user.display_name,
        role=current_user.role,
    )


@router.post(
    "/dispatchers",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_dispatcher(
    data: RegisterRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Create a dispatcher account (admin only)."""
    try:
        user = await service.create_account(db, data, UserRole.DISPATCHER)
        logger.info(f"Dispatcher {user.username} created by {current_user.username}")
        return UserResponse.model_validate(user)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error creating dispatcher: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error creating dispatcher: {e}")
        raise internal_error() from e


@router.get("/dispatchers", response_model=list[UserResponse])
async def list_dispatchers(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    """List dispatcher accounts (admin only)."""
    try:
        users = await service.list_dispatchers(db)
        return [UserResponse.model_validate(u) for u in users]

    except SQLAlchemyError as e:
        logger.error(f"Database error listing dispatchers: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing dispatchers: {e}")
        raise internal_error() from e
