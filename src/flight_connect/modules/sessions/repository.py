"""
Sessions Repository

Database operations for registration sessions. All operations are async and
only touch the database; status derivation, code generation and overlap
checks live in the service layer.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Session, SessionStatus
from .schemas import SessionCreate


# Advisory lock namespace (first key of the two-key form) for session codes
SESSION_CODE_LOCK_NAMESPACE = 7301


class SessionCodeTakenError(Exception):
    """Raised when a session inside the reuse window already holds the code."""

    def __init__(self, session_code: str):
        self.session_code = session_code
        super().__init__(f"Session code {session_code} is already in use")


async def _lock_session_code(db: AsyncSession, session_code: str) -> None:
    """
    Take a transaction-scoped advisory lock on ``session_code``.

    Concurrent creates of the same code queue here until the holder commits
    or rolls back. Only PostgreSQL has advisory locks; other dialects skip it.
    """
    if db.get_bind().dialect.name != "postgresql":
        return

    await db.execute(
        select(
            func.pg_advisory_xact_lock(SESSION_CODE_LOCK_NAMESPACE, func.hashtext(session_code))
        )
    )


async def create(
    db: AsyncSession,
    data: SessionCreate,
    *,
    session_code: str,
    session_number: int,
    status: SessionStatus,
    created_by_id: UUID | None,
    created_by_name: str | None,
    reuse_since: datetime,
) -> Session:
    """
    Insert a new session, claiming ``session_code``.

    The code is re-checked under the advisory lock, in the same transaction
    as the insert. Sessions created before ``reuse_since`` do not hold it.

    Raises:
        SessionCodeTakenError: If a session created at or after
            ``reuse_since`` already uses the code
    """
    await _lock_session_code(db, session_code)

    if await code_used_since(db, session_code, reuse_since):
        await db.rollback()
        raise SessionCodeTakenError(session_code)

    new_session = Session(
        session_code=session_code,
        session_number=session_number,
        date=data.date,
        registration_start_time=data.registration_start_time,
        start_time=data.start_time,
        end_time=data.end_time,
        closing_minutes=data.closing_minutes,
        status=status,
        comments=data.comments,
        created_by_id=created_by_id,
        created_by_name=created_by_name,
    )

    db.add(new_session)
    await db.commit()
    await db.refresh(new_session)

    return new_session


async def get_by_id(db: AsyncSession, id: UUID) -> Session | None:
    """Get session by ID."""
    return await db.get(Session, id)


async def list_all(db: AsyncSession) -> list[Session]:
    """All sessions, newest first."""
    result = await db.execute(select(Session).order_by(Session.created_at.desc()))
    return list(result.scalars().all())


async def list_not_completed(db: AsyncSession) -> list[Session]:
    """Sessions whose stored status is not completed, in schedule order."""
    result = await db.execute(
        select(Session)
        .where(Session.status != SessionStatus.COMPLETED)
        .order_by(Session.date, Session.start_time)
    )
    return list(result.scalars().all())


async def list_completed(db: AsyncSession, created_by_id: UUID | None = None) -> list[Session]:
    """Completed sessions, latest first, optionally limited to one creator."""
    stmt = select(Session).where(Session.status == SessionStatus.COMPLETED)

    if created_by_id:
        stmt = stmt.where(Session.created_by_id == created_by_id)

    result = await db.execute(stmt.order_by(Session.date.desc(), Session.start_time.desc()))
    return list(result.scalars().all())


async def list_by_date(db: AsyncSession, date: str) -> list[Session]:
    """All sessions on a calendar date."""
    result = await db.execute(select(Session).where(Session.date == date))
    return list(result.scalars().all())


async def code_used_since(db: AsyncSession, code: str, since: datetime) -> bool:
    """Check whether a session created at or after ``since`` uses ``code``."""
    result = await db.execute(
        select(Session.id)
        .where(
            Session.session_code == code.upper(),
            Session.created_at >= since,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_max_session_number(db: AsyncSession) -> int | None:
    """Highest session number assigned so far, or None if there are no sessions."""
    result = await db.execute(select(func.max(Session.session_number)))
    return result.scalar_one_or_none()


async def save_all(db: AsyncSession, sessions: Iterable[Session]) -> None:
    """Persist pending changes on the given sessions in one commit."""
    db.add_all(list(sessions))
    await db.commit()


async def update(db: AsyncSession, session: Session, **fields) -> Session:
    """
    Apply field changes to a session and persist them.

    Args:
        db: Database session
        session: The session to update
        **fields: Column values to set

    Returns:
        The refreshed session
    """
    for key, value in fields.items():
        if hasattr(session, key):
            setattr(session, key, value)

    await db.commit()
    await db.refresh(session)

    return session


async def delete(db: AsyncSession, session: Session) -> None:
    """Delete a session and commit, together with any pending deletes."""
    await db.delete(session)
    await db.commit()
