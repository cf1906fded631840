"""
Participants Router

Endpoints:
- POST /participants - Register for a session (public, rate limited)
- GET /participants - List participants (optional ?session_id=)
- GET /participants/{id} - Single participant
- PATCH /participants/{id} - Set validity (dispatcher/admin)
- DELETE /participants/{id} - Remove a registration (dispatcher/admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.auth import CurrentUser, require_scheduler
from flight_connect.core.database import get_db
from flight_connect.core.exceptions import (
    ServiceError,
    StoreError,
    handle_service_error,
    internal_error,
)
from flight_connect.core.rate_limit import rate_limit
from flight_connect.modules.participants import service
from flight_connect.modules.participants.schemas import (
    ParticipantCreate,
    ParticipantResponse,
    ParticipantUpdate,
)
from flight_connect.modules.sessions.schemas import MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("participants"))],
    summary="Register Participant",
    description="""
Register a pilot for a session.

Registration is open from the session's registration start time until its
closing time (start time minus closing minutes). The response carries the
participant's personal code.
""",
    responses={
        404: {"description": "Session not found"},
        409: {
            "description": "Registration not open yet or already closed",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "REGISTRATION_CLOSED",
                            "message": "Registration closed at 2024-06-01 09:00 UTC.",
                        }
                    }
                }
            },
        },
        429: {"description": "Rate limit exceeded"},
    },
)
async def register_participant(
    data: ParticipantCreate,
    db: AsyncSession = Depends(get_db),
) -> ParticipantResponse:
    """Register a participant."""
    try:
        participant = await service.register_participant(db, data)
        return ParticipantResponse.model_validate(participant)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error registering participant: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error registering participant: {e}")
        raise internal_error() from e


@router.get("", response_model=list[ParticipantResponse], summary="List Participants")
async def list_participants(
    session_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[ParticipantResponse]:
    """List participants, newest first."""
    try:
        participants = await service.list_participants(db, session_id=session_id)
        return [ParticipantResponse.model_validate(p) for p in participants]

    except SQLAlchemyError as e:
        logger.error(f"Database error listing participants: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing participants: {e}")
        raise internal_error() from e


@router.get(
    "/{participant_id}",
    response_model=ParticipantResponse,
    summary="Get Participant",
    responses={404: {"description": "Participant not found"}},
)
async def get_participant(
    participant_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ParticipantResponse:
    """Get a single participant."""
    try:
        participant = await service.get_participant(db, participant_id)
        return ParticipantResponse.model_validate(participant)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error getting participant {participant_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error getting participant {participant_id}: {e}")
        raise internal_error() from e


@router.patch(
    "/{participant_id}",
    response_model=ParticipantResponse,
    summary="Set Participant Validity",
    description="Set `is_valid` to true, false, or null (unchecked).",
)
async def update_participant(
    participant_id: UUID,
    patch: ParticipantUpdate,
    current_user: CurrentUser = Depends(require_scheduler),
    db: AsyncSession = Depends(get_db),
) -> ParticipantResponse:
    """Mark a registration valid or invalid."""
    try:
        participant = await service.set_participant_validity(db, participant_id, patch.is_valid)
        logger.info(f"Participant {participant_id} checked by {current_user.username}")
        return ParticipantResponse.model_validate(participant)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error updating participant {participant_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error updating participant {participant_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/{participant_id}",
    response_model=MessageResponse,
    summary="Delete Participant",
)
async def delete_participant(
    participant_id: UUID,
    current_user: CurrentUser = Depends(require_scheduler),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Remove a registration."""
    try:
        await service.delete_participant(db, participant_id)
        logger.info(f"Participant {participant_id} removed by {current_user.username}")
        return MessageResponse(message="Participant deleted")

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error deleting participant {participant_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error deleting participant {participant_id}: {e}")
        raise internal_error() from e
