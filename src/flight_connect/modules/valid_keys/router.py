"""
Validation Keys Router

Endpoints used by the attendance bot:
- GET /valid-keys/generate/unique - Generate a free key (rate limited)
- GET /valid-keys/{session_id} - Keys of a session (current + previous month)
- POST /valid-keys - Issue a key to a pilot (rate limited)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.database import get_db
from flight_connect.core.exceptions import (
    ServiceError,
    StoreError,
    handle_service_error,
    internal_error,
)
from flight_connect.core.rate_limit import rate_limit
from flight_connect.modules.valid_keys import service
from flight_connect.modules.valid_keys.schemas import (
    GeneratedKeyResponse,
    SessionKeysResponse,
    ValidKeyCreate,
    ValidKeyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/generate/unique",
    response_model=GeneratedKeyResponse,
    dependencies=[Depends(rate_limit("valid_keys"))],
    summary="Generate Unique Key",
    description="""
Generate a 3-letter key not issued in the current or previous month.

The key is not reserved; issue it with `POST /valid-keys`.
""",
)
async def generate_unique_key(db: AsyncSession = Depends(get_db)) -> GeneratedKeyResponse:
    """Generate a free validation key."""
    try:
        key = await service.generate_unique_validation_key(db)
        return GeneratedKeyResponse(key=key)

    except SQLAlchemyError as e:
        logger.error(f"Database error generating key: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error generating key: {e}")
        raise internal_error() from e


@router.get(
    "/{session_id}",
    response_model=SessionKeysResponse,
    summary="Session Keys",
    responses={404: {"description": "Session not found"}},
)
async def list_session_keys(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> SessionKeysResponse:
    """Keys of a session issued this month or last month."""
    try:
        result = await service.list_session_keys(db, session_id)
        return SessionKeysResponse(
            session_id=result.session_id,
            keys=[ValidKeyResponse.model_validate(k) for k in result.keys],
            count=result.count,
        )

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing keys of {session_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing keys of {session_id}: {e}")
        raise internal_error() from e


@router.post(
    "",
    response_model=ValidKeyResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("valid_keys"))],
    summary="Issue Validation Key",
    responses={
        404: {"description": "Session not found"},
        409: {
            "description": "Key taken or pilot already has a key",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "DUPLICATE_KEY",
                            "message": "Key QKD already exists",
                        }
                    }
                }
            },
        },
        429: {"description": "Rate limit exceeded"},
    },
)
async def issue_validation_key(
    data: ValidKeyCreate,
    db: AsyncSession = Depends(get_db),
) -> ValidKeyResponse:
    """Issue a key to a pilot for a session."""
    try:
        valid_key = await service.issue_validation_key(
            db,
            session_id=data.session_id,
            requested_key=data.key,
            pilot_name=data.pilot_name,
        )
        return ValidKeyResponse.model_validate(valid_key)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error issuing key: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error issuing key: {e}")
        raise internal_error() from e
