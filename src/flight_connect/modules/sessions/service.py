"""
Sessions Service Layer

Business logic for the session lifecycle. Orchestrates repository
operations, status derivation, code generation and overlap checks.

This module implements:
1. Read paths (list, upcoming, completed archive, single session):
   - Status is recomputed from the schedule on every read
   - Only sessions whose status actually changed are written back

2. Creation:
   - Schedule validation (format and ordering)
   - Same-day overlap check across all dispatchers
   - Unique 3-letter session code (no reuse within 60 days)
   - Sequential session number

3. Update and deletion:
   - Schedule edits are re-validated and overlap-checked excluding the session itself
   - Only completed sessions can be deleted; their participants go with them,
     their validation keys are kept

Uniqueness:
- The code lookup is a pre-filter only. The repository re-checks the code
  under a per-code advisory lock inside the insert transaction; a code
  claimed in between is retried with a fresh one.
"""

import logging
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.core.auth import CurrentUser
from flight_connect.core.codes import generate_unique_code
from flight_connect.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ScheduleValidationError,
)
from flight_connect.modules.participants import repository as participants_repository
from flight_connect.modules.participants.models import Participant
from flight_connect.modules.sessions import repository
from flight_connect.modules.sessions.models import Session, SessionStatus
from flight_connect.modules.sessions.overlap import describe_conflict, find_overlap
from flight_connect.modules.sessions.repository import SessionCodeTakenError
from flight_connect.modules.sessions.schedule import compute_status, validate_schedule
from flight_connect.modules.sessions.schemas import SessionCreate, SessionUpdate
from flight_connect.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Constants
SESSION_CODE_REUSE_WINDOW = timedelta(days=60)
SESSION_CODE_INSERT_ATTEMPTS = 3
SCHEDULE_FIELDS = (
    "date",
    "registration_start_time",
    "start_time",
    "end_time",
    "closing_minutes",
)
REQUIRED_SCHEDULE_FIELDS = ("date", "registration_start_time", "start_time", "closing_minutes")


class SessionNotFoundError(NotFoundError):
    """Raised when a session is not found."""

    def __init__(self, session_id: UUID | None = None):
        message = f"Session {session_id} not found" if session_id else "Session not found"
        super().__init__(message=message, error_code="SESSION_NOT_FOUND")


class SessionOverlapError(ConflictError):
    """Raised when a schedule overlaps an existing session on the same day."""

    def __init__(self, conflicting_session: Session):
        self.conflicting_session = conflicting_session
        super().__init__(
            message=describe_conflict(conflicting_session),
            error_code="SESSION_OVERLAP",
        )


class DuplicateSessionCodeError(ConflictError):
    """Raised when storage keeps rejecting generated session codes."""

    def __init__(self):
        super().__init__(
            message="Could not allocate a unique session code. Please try again.",
            error_code="DUPLICATE_SESSION_CODE",
        )


class SessionNotCompletedError(InvalidStateError):
    """Raised when deleting a session that has not completed."""

    def __init__(self, session: Session):
        super().__init__(
            message=(
                f"Only completed sessions can be deleted. "
                f"Session {session.session_code} is {session.status.value}."
            ),
            error_code="SESSION_NOT_COMPLETED",
        )


def _resolve_now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


async def refresh_statuses(
    db: AsyncSession,
    sessions: list[Session],
    now: datetime | None = None,
) -> int:
    """
    Recompute the status of each session and persist the ones that changed.

    Sessions are updated in place. Nothing is written when no status changed.

    Args:
        db: Database session
        sessions: Sessions to refresh
        now: Evaluation instant (defaults to the current time)

    Returns:
        Number of sessions whose status changed
    """
    now = _resolve_now(now)
    changed: list[Session] = []

    for session in sessions:
        new_status = compute_status(session, now)
        if session.status != new_status:
            logger.info(
                f"Session {session.session_code} status changed: "
                f"{session.status.value} -> {new_status.value}"
            )
            session.status = new_status
            changed.append(session)

    if changed:
        await repository.save_all(db, changed)

    return len(changed)


async def list_sessions(
    db: AsyncSession,
    status_filter: SessionStatus | None = None,
    now: datetime | None = None,
) -> list[Session]:
    """
    List sessions, newest first, with refreshed statuses.

    The filter is applied after the refresh so it matches the true state.
    """
    sessions = await repository.list_all(db)
    await refresh_statuses(db, sessions, now)

    if status_filter is not None:
        sessions = [s for s in sessions if s.status == status_filter]

    return sessions


async def get_upcoming_sessions(
    db: AsyncSession,
    now: datetime | None = None,
) -> list[Session]:
    """
    Sessions that have not completed, in schedule order.

    Sessions found to be completed during the refresh are left out.
    """
    sessions = await repository.list_not_completed(db)
    await refresh_statuses(db, sessions, now)

    return [s for s in sessions if s.status != SessionStatus.COMPLETED]


async def get_completed_sessions(
    db: AsyncSession,
    user: CurrentUser,
    now: datetime | None = None,
) -> list[Session]:
    """
    Completed sessions (archive view).

    Dispatchers see only sessions they created; admins see all of them.
    """
    # Bring stale sessions into the archive before reading it
    await refresh_statuses(db, await repository.list_not_completed(db), now)

    created_by_id = user.id if user.role == UserRole.DISPATCHER.value else None
    return await repository.list_completed(db, created_by_id=created_by_id)


async def get_session(
    db: AsyncSession,
    session_id: UUID,
    now: datetime | None = None,
) -> Session:
    """
    Get a session by ID with a refreshed status.

    Raises:
        SessionNotFoundError: If the session doesn't exist
    """
    session = await repository.get_by_id(db, session_id)

    if not session:
        raise SessionNotFoundError(session_id)

    await refresh_statuses(db, [session], now)
    return session


async def _generate_session_code(db: AsyncSession, now: datetime) -> str:
    """Generate a session code not used by any session created in the last 60 days."""
    since = now - SESSION_CODE_REUSE_WINDOW

    async def is_available(code: str) -> bool:
        return not await repository.code_used_since(db, code, since)

    return await generate_unique_code(is_available)


async def _next_session_number(db: AsyncSession) -> int:
    """Highest existing session number + 1, or 1 for the first session."""
    last_number = await repository.get_max_session_number(db)
    if last_number is None:
        return 1
    return last_number + 1


async def _check_overlap(
    db: AsyncSession,
    date: str,
    start_time: str,
    end_time: str | None,
    exclude_id: UUID | None = None,
) -> None:
    """
    Reject a schedule that overlaps another session on the same date.

    Raises:
        SessionOverlapError: Naming the conflicting session and its creator
    """
    same_day = await repository.list_by_date(db, date)
    conflict = find_overlap(date, start_time, end_time, same_day, exclude_id=exclude_id)

    if conflict:
        logger.warning(
            f"Session overlap rejected: {date} {start_time}-{end_time or 'default'} "
            f"conflicts with {conflict.session_code}"
        )
        raise SessionOverlapError(conflict)


async def create_session(
    db: AsyncSession,
    data: SessionCreate,
    creator_id: UUID | None = None,
    creator_name: str | None = None,
    now: datetime | None = None,
) -> Session:
    """
    Create a new session.

    1. Validates the schedule (formats, registration start <= start < end)
    2. Rejects overlaps with any session on the same date
    3. Computes the initial status
    4. Allocates a unique session code and the next session number
    5. Persists, retrying with a new code if another session claimed it first

    Args:
        db: Database session
        data: Schedule and comments from the request
        creator_id: ID of the dispatcher/admin creating the session
        creator_name: Display name stored with the session
        now: Evaluation instant (defaults to the current time)

    Returns:
        The created Session

    Raises:
        ScheduleValidationError: If the schedule is malformed or out of order
        SessionOverlapError: If another session overlaps on the same day
        DuplicateSessionCodeError: If no code could be stored
    """
    now = _resolve_now(now)

    validate_schedule(
        data.date,
        data.registration_start_time,
        data.start_time,
        data.end_time,
        data.closing_minutes,
    )

    await _check_overlap(db, data.date, data.start_time, data.end_time)

    status = compute_status(data, now)

    for attempt in range(1, SESSION_CODE_INSERT_ATTEMPTS + 1):
        session_code = await _generate_session_code(db, now)
        session_number = await _next_session_number(db)

        try:
            session = await repository.create(
                db,
                data,
                session_code=session_code,
                session_number=session_number,
                status=status,
                created_by_id=creator_id,
                created_by_name=creator_name or "Dispatcher",
                reuse_since=now - SESSION_CODE_REUSE_WINDOW,
            )
        except SessionCodeTakenError:
            logger.warning(
                f"Session code {session_code} claimed concurrently "
                f"(attempt {attempt}/{SESSION_CODE_INSERT_ATTEMPTS})"
            )
            continue

        logger.info(
            f"Created session {session.session_code} (#{session.session_number}) "
            f"on {session.date} {session.start_time} by {session.created_by_name}"
        )
        return session

    raise DuplicateSessionCodeError()


async def update_session(
    db: AsyncSession,
    session_id: UUID,
    patch: SessionUpdate,
    now: datetime | None = None,
) -> Session:
    """
    Apply a partial update to a session.

    Schedule changes are validated against the merged schedule, checked for
    overlaps excluding the session itself, and the status is recomputed
    unless the patch sets it explicitly. An explicit status is a manual
    override; the next read derives the status again.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        ScheduleValidationError: If the merged schedule is invalid
        SessionOverlapError: If the new schedule overlaps another session
    """
    session = await repository.get_by_id(db, session_id)

    if not session:
        raise SessionNotFoundError(session_id)

    changes = patch.model_dump(exclude_unset=True)

    # Non-nullable columns: an explicit null means "leave unchanged"
    for key in ("comments", "status"):
        if key in changes and changes[key] is None:
            changes.pop(key)

    if any(field in changes for field in SCHEDULE_FIELDS):
        merged = {field: changes.get(field, getattr(session, field)) for field in SCHEDULE_FIELDS}

        for field in REQUIRED_SCHEDULE_FIELDS:
            if merged[field] is None:
                raise ScheduleValidationError(field, "cannot be cleared")

        validate_schedule(**merged)
        await _check_overlap(
            db,
            merged["date"],
            merged["start_time"],
            merged["end_time"],
            exclude_id=session.id,
        )

        if "status" not in changes:
            changes["status"] = compute_status(SimpleNamespace(**merged), _resolve_now(now))

    if not changes:
        return session

    session = await repository.update(db, session, **changes)
    logger.info(f"Updated session {session.session_code}: {sorted(changes)}")

    return session


async def delete_session(db: AsyncSession, session_id: UUID) -> None:
    """
    Delete a completed session and its participants.

    Validation keys issued for the session are kept.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        SessionNotCompletedError: If the stored status is not completed
    """
    session = await repository.get_by_id(db, session_id)

    if not session:
        raise SessionNotFoundError(session_id)

    if session.status != SessionStatus.COMPLETED:
        logger.warning(
            f"Refused to delete session {session.session_code} in status {session.status.value}"
        )
        raise SessionNotCompletedError(session)

    await participants_repository.delete_by_session(db, session.id)
    await repository.delete(db, session)

    logger.info(f"Deleted session {session.session_code} and its participants")


async def list_session_participants(db: AsyncSession, session_id: UUID) -> list[Participant]:
    """
    Participants registered for a session, newest first.

    Raises:
        SessionNotFoundError: If the session doesn't exist
    """
    session = await repository.get_by_id(db, session_id)

    if not session:
        raise SessionNotFoundError(session_id)

    return await participants_repository.list_participants(db, session_id=session.id)
