"""
Participants Service Layer

Pilot registrations against sessions.

Registration is accepted only while the session's registration window is
open: from the registration start time until the closing time
(start time minus closing minutes). Each participant receives a personal
code; the dispatcher later marks the registration valid or invalid.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.codes import generate_code
from flight_connect.core.exceptions import InvalidStateError, NotFoundError
from flight_connect.modules.participants import repository
from flight_connect.modules.participants.models import Participant
from flight_connect.modules.participants.schemas import ParticipantCreate
from flight_connect.modules.sessions import repository as sessions_repository
from flight_connect.modules.sessions.schedule import registration_window
from flight_connect.modules.sessions.service import SessionNotFoundError

logger = logging.getLogger(__name__)


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant is not found."""

    def __init__(self, participant_id: UUID | None = None):
        message = (
            f"Participant {participant_id} not found" if participant_id else "Participant not found"
        )
        super().__init__(message=message, error_code="PARTICIPANT_NOT_FOUND")


class RegistrationNotOpenError(InvalidStateError):
    """Raised when registering before the registration start time."""

    def __init__(self, opens_at: datetime):
        super().__init__(
            message=f"Registration opens at {opens_at:%Y-%m-%d %H:%M} UTC.",
            error_code="REGISTRATION_NOT_OPEN",
        )


class RegistrationClosedError(InvalidStateError):
    """Raised when registering at or after the closing time."""

    def __init__(self, closed_at: datetime):
        super().__init__(
            message=f"Registration closed at {closed_at:%Y-%m-%d %H:%M} UTC.",
            error_code="REGISTRATION_CLOSED",
        )


async def register_participant(
    db: AsyncSession,
    data: ParticipantCreate,
    now: datetime | None = None,
) -> Participant:
    """
    Register a pilot for a session.

    Args:
        db: Database session
        data: Session ID, pilot name and 3-letter validation code
        now: Evaluation instant (defaults to the current time)

    Returns:
        The created Participant with its personal code

    Raises:
        SessionNotFoundError: If the session doesn't exist
        RegistrationNotOpenError: Before the registration start time
        RegistrationClosedError: At or after the closing time
    """
    now = now or datetime.now(UTC)

    session = await sessions_repository.get_by_id(db, data.session_id)
    if not session:
        raise SessionNotFoundError(data.session_id)

    opens_at, closes_at = registration_window(session)

    if now < opens_at:
        raise RegistrationNotOpenError(opens_at)
    if now >= closes_at:
        raise RegistrationClosedError(closes_at)

    participant = await repository.create(db, data, code=generate_code())

    logger.info(
        f"Participant registered for session {session.session_code}: "
        f"id={participant.id}, code={participant.code}"
    )
    return participant


async def list_participants(
    db: AsyncSession,
    session_id: UUID | None = None,
) -> list[Participant]:
    """All participants, newest first, optionally for one session."""
    return await repository.list_participants(db, session_id=session_id)


async def get_participant(db: AsyncSession, participant_id: UUID) -> Participant:
    """
    Get a participant by ID.

    Raises:
        ParticipantNotFoundError: If the participant doesn't exist
    """
    participant = await repository.get_by_id(db, participant_id)

    if not participant:
        raise ParticipantNotFoundError(participant_id)

    return participant


async def set_participant_validity(
    db: AsyncSession,
    participant_id: UUID,
    is_valid: bool | None,
) -> Participant:
    """Mark a registration valid, invalid, or back to unchecked (None)."""
    participant = await get_participant(db, participant_id)
    participant = await repository.set_validity(db, participant, is_valid)

    logger.info(f"Participant {participant.id} validity set to {is_valid}")
    return participant


async def delete_participant(db: AsyncSession, participant_id: UUID) -> None:
    """Delete a participant."""
    participant = await get_participant(db, participant_id)
    await repository.delete_participant(db, participant)

    logger.info(f"Participant {participant_id} deleted")
