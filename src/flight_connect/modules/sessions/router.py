"""
Sessions Router

API endpoints for registration sessions.

Endpoints:
- GET /sessions - List sessions (optional ?status= filter)
- GET /sessions/upcoming - Sessions that have not completed
- GET /sessions/completed - Archive (dispatcher/admin)
- GET /sessions/{id} - Single session
- POST /sessions - Create a session (dispatcher/admin)
- PATCH /sessions/{id} - Update a session (dispatcher/admin)
- DELETE /sessions/{id} - Delete a completed session (admin)
- GET /sessions/{id}/participants - Participants of a session

Statuses returned by every read are recomputed from the schedule first.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.auth import CurrentUser, require_admin, require_scheduler
from flight_connect.core.database import get_db
from flight_connect.core.exceptions import (
    ServiceError,
    StoreError,
    handle_service_error,
    internal_error,
)
from flight_connect.modules.participants.schemas import ParticipantResponse
from flight_connect.modules.sessions import service
from flight_connect.modules.sessions.models import SessionStatus
from flight_connect.modules.sessions.schemas import (
    MessageResponse,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_FILTER_PATTERN = r"^(all|open|closing|closed|completed)$"


@router.get(
    "",
    response_model=list[SessionResponse],
    summary="List Sessions",
    description="""
List all sessions, newest first.

**Filter:** `status` may be `all` (default), `open`, `closing`, `closed`
or `completed`. The filter is applied after statuses are refreshed.
""",
)
async def list_sessions(
    status_filter: str | None = Query(None, alias="status", pattern=STATUS_FILTER_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> list[SessionResponse]:
    """List sessions with refreshed statuses."""
    selected = None
    if status_filter and status_filter != "all":
        selected = SessionStatus(status_filter)

    try:
        sessions = await service.list_sessions(db, status_filter=selected)
        return [SessionResponse.model_validate(s) for s in sessions]

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing sessions: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing sessions: {e}")
        raise internal_error() from e


@router.get(
    "/upcoming",
    response_model=list[SessionResponse],
    summary="Upcoming Sessions",
)
async def get_upcoming_sessions(
    db: AsyncSession = Depends(get_db),
) -> list[SessionResponse]:
    """Sessions that are not completed, ordered by date and start time."""
    try:
        sessions = await service.get_upcoming_sessions(db)
        return [SessionResponse.model_validate(s) for s in sessions]

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing upcoming sessions: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing upcoming sessions: {e}")
        raise internal_error() from e


@router.get(
    "/completed",
    response_model=list[SessionResponse],
    summary="Completed Sessions",
    description="Dispatchers see the sessions they created; admins see all.",
)
async def get_completed_sessions(
    current_user: CurrentUser = Depends(require_scheduler),
    db: AsyncSession = Depends(get_db),
) -> list[SessionResponse]:
    """Archive of completed sessions."""
    try:
        sessions = await service.get_completed_sessions(db, current_user)
        return [SessionResponse.model_validate(s) for s in sessions]

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing completed sessions: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing completed sessions: {e}")
        raise internal_error() from e


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    summary="Get Session",
    responses={404: {"description": "Session not found"}},
)
async def get_session(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Get a single session with its current status."""
    try:
        session = await service.get_session(db, session_id)
        return SessionResponse.model_validate(session)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error getting session {session_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error getting session {session_id}: {e}")
        raise internal_error() from e


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Session",
    description="""
Create a registration session.

**Rules:**
- `registration_start_time` must not be after `start_time`
- `end_time`, when given, must be after `start_time` (default: start + 2 hours)
- Sessions on the same date must not overlap, whoever created them

The session gets a unique 3-letter code and the next sequential number.
""",
    responses={
        201: {"description": "Session created", "model": SessionResponse},
        400: {
            "description": "Invalid schedule",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "VALIDATION_ERROR",
                            "message": "end_time: must be after start_time",
                            "field": "end_time",
                        }
                    }
                }
            },
        },
        409: {
            "description": "Overlapping session",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "SESSION_OVERLAP",
                            "message": "Overlaps with session QKD by Dispatcher (09:00-11:00)",
                        }
                    }
                }
            },
        },
    },
)
async def create_session(
    data: SessionCreate,
    current_user: CurrentUser = Depends(require_scheduler),
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Create a session on behalf of the authenticated dispatcher/admin."""
    try:
        session = await service.create_session(
            db,
            data,
            creator_id=current_user.id,
            creator_name=current_user.display_name,
        )
        return SessionResponse.model_validate(session)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error creating session: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error creating session: {e}")
        raise internal_error() from e


@router.patch(
    "/{session_id}",
    response_model=SessionResponse,
    summary="Update Session",
    description="""
Partially update a session. Only the fields present in the body are applied.

Schedule changes are re-validated and checked for overlaps (excluding the
session itself); the status is recomputed unless `status` is set explicitly.
""",
)
async def update_session(
    session_id: UUID,
    patch: SessionUpdate,
    current_user: CurrentUser = Depends(require_scheduler),
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """Update comments, status or schedule of a session."""
    try:
        session = await service.update_session(db, session_id, patch)
        logger.info(f"Session {session.session_code} updated by {current_user.username}")
        return SessionResponse.model_validate(session)

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error updating session {session_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error updating session {session_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/{session_id}",
    response_model=MessageResponse,
    summary="Delete Session",
    description="""
Delete a completed session together with its participants.

Validation keys issued for the session are kept. Sessions that are not
completed cannot be deleted (409 `SESSION_NOT_COMPLETED`).
""",
)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a completed session (admin only)."""
    try:
        await service.delete_session(db, session_id)
        logger.info(f"Session {session_id} deleted by {current_user.username}")
        return MessageResponse(message="Session deleted")

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error deleting session {session_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error deleting session {session_id}: {e}")
        raise internal_error() from e


@router.get(
    "/{session_id}/participants",
    response_model=list[ParticipantResponse],
    summary="Session Participants",
)
async def list_session_participants(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> list[ParticipantResponse]:
    """Participants registered for a session, newest first."""
    try:
        participants = await service.list_session_participants(db, session_id)
        return [ParticipantResponse.model_validate(p) for p in participants]

    except ServiceError as e:
        handle_service_error(e)
    except SQLAlchemyError as e:
        logger.error(f"Database error listing participants of {session_id}: {e}")
        handle_service_error(StoreError())
    except Exception as e:
        logger.exception(f"Error listing participants of {session_id}: {e}")
        raise internal_error() from e
