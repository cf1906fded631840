"""
Participants Repository

Database operations for participant registrations.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Participant
from .schemas import ParticipantCreate


async def create(db: AsyncSession, data: ParticipantCreate, *, code: str) -> Participant:
    """Register a participant with the issued personal code."""
    participant = Participant(
        session_id=data.session_id,
        name=data.name,
        validation_code=data.validation_code.upper(),
        code=code,
        is_valid=None,
    )

    db.add(participant)
    await db.commit()
    await db.refresh(participant)

    return participant


async def get_by_id(db: AsyncSession, id: UUID) -> Participant | None:
    """Get participant by ID."""
    return await db.get(Participant, id)


async def list_participants(db: AsyncSession, session_id: UUID | None = None) -> list[Participant]:
    """Participants, newest registration first, optionally for one session."""
    stmt = select(Participant)

    if session_id:
        stmt = stmt.where(Participant.session_id == session_id)

    result = await db.execute(stmt.order_by(Participant.registered_at.desc()))
    return list(result.scalars().all())


async def set_validity(
    db: AsyncSession, participant: Participant, is_valid: bool | None
) -> Participant:
    """Set the tri-state validity flag."""
    participant.is_valid = is_valid

    await db.commit()
    await db.refresh(participant)

    return participant


async def delete_participant(db: AsyncSession, participant: Participant) -> None:
    """Delete a single participant."""
    await db.delete(participant)
    await db.commit()


async def delete_by_session(db: AsyncSession, session_id: UUID) -> None:
    """
    Delete all participants of a session.

    Does not commit: the caller deletes the session in the same transaction.
    """
    await db.execute(delete(Participant).where(Participant.session_id == session_id))
