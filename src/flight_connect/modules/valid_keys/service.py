"""
Validation Keys Service Layer

Issues and lists validation keys.

Rules:
- A key value is unique within the current and previous month tag
- A pilot holds at most one key per session within the same two months
- Keys are tagged with the month they were issued in and are never deleted;
  they rotate out as their month tag leaves the window

The (key, month) unique constraint is authoritative: an insert rejected by
it is reported as a duplicate key even if the pre-check passed.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.codes import generate_unique_code
from flight_connect.core.exceptions import ConflictError
from flight_connect.modules.sessions import repository as sessions_repository
from flight_connect.modules.sessions.service import SessionNotFoundError
from flight_connect.modules.valid_keys import repository
from flight_connect.modules.valid_keys.models import ValidKey
from flight_connect.modules.valid_keys.months import month_tag, month_window

logger = logging.getLogger(__name__)

PILOT_MONTH_CONSTRAINT = "uq_valid_keys_session_pilot_month"


class DuplicateKeyError(ConflictError):
    """Raised when a key was already issued in the current or previous month."""

    def __init__(self, key: str):
        super().__init__(message=f"Key {key} already exists", error_code="DUPLICATE_KEY")


class DuplicatePilotError(ConflictError):
    """Raised when a pilot already holds a key for the session."""

    def __init__(self, pilot_name: str):
        super().__init__(
            message=f"Pilot {pilot_name} already has a key for this session",
            error_code="DUPLICATE_PILOT",
        )


@dataclass
class SessionKeys:
    session_id: UUID
    keys: list[ValidKey]

    @property
    def count(self) -> int:
        return len(self.keys)


async def is_key_available(db: AsyncSession, key: str, now: datetime | None = None) -> bool:
    """True when no key with this value was issued this month or last month."""
    months = month_window(now or datetime.now(UTC))
    return not await repository.key_exists(db, key, months)


async def generate_unique_validation_key(db: AsyncSession, now: datetime | None = None) -> str:
    """Generate a key that is free in the current month window."""
    now = now or datetime.now(UTC)

    async def is_available(candidate: str) -> bool:
        return await is_key_available(db, candidate, now)

    return await generate_unique_code(is_available)


async def issue_validation_key(
    db: AsyncSession,
    session_id: UUID,
    requested_key: str,
    pilot_name: str,
    now: datetime | None = None,
) -> ValidKey:
    """
    Issue a validation key to a pilot for a session.

    Args:
        db: Database session
        session_id: Session the key is issued for
        requested_key: Key value (normalized to upper case)
        pilot_name: Pilot receiving the key
        now: Evaluation instant (defaults to the current time)

    Returns:
        The stored ValidKey, tagged with the current month

    Raises:
        SessionNotFoundError: If the session doesn't exist
        DuplicateKeyError: If the key is taken in the month window
        DuplicatePilotError: If the pilot already has a key for this session
    """
    now = now or datetime.now(UTC)
    key = requested_key.strip().upper()
    pilot_name = pilot_name.strip()
    months = month_window(now)

    session = await sessions_repository.get_by_id(db, session_id)
    if not session:
        raise SessionNotFoundError(session_id)

    if await repository.key_exists(db, key, months):
        raise DuplicateKeyError(key)

    if await repository.pilot_has_key(db, session_id, pilot_name, months):
        raise DuplicatePilotError(pilot_name)

    try:
        valid_key = await repository.create(
            db,
            session_id=session_id,
            key=key,
            pilot_name=pilot_name,
            month=month_tag(now),
        )
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Key {key} rejected by storage: {e.orig}")
        if PILOT_MONTH_CONSTRAINT in str(e.orig):
            raise DuplicatePilotError(pilot_name) from e
        raise DuplicateKeyError(key) from e

    logger.info(
        f"Issued key {valid_key.key} for session {session.session_code} ({valid_key.month})"
    )
    return valid_key


async def list_session_keys(
    db: AsyncSession,
    session_id: UUID,
    now: datetime | None = None,
) -> SessionKeys:
    """
    Keys of a session issued this month or last month, newest first.

    Raises:
        SessionNotFoundError: If the session doesn't exist
    """
    session = await sessions_repository.get_by_id(db, session_id)
    if not session:
        raise SessionNotFoundError(session_id)

    months = month_window(now or datetime.now(UTC))
    keys = await repository.list_for_session(db, session_id, months)

    return SessionKeys(session_id=session_id, keys=keys)
