"""
Validation Keys Repository

Database operations for validation keys. Month windows are passed in by
the service; the repository does not read the clock.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ValidKey


async def create(
    db: AsyncSession,
    *,
    session_id: UUID,
    key: str,
    pilot_name: str,
    month: str,
) -> ValidKey:
    """
    Insert a validation key.

    Raises:
        sqlalchemy.exc.IntegrityError: If the key already exists for the month
    """
    valid_key = ValidKey(session_id=session_id, key=key, pilot_name=pilot_name, month=month)

    db.add(valid_key)
    await db.commit()
    await db.refresh(valid_key)

    return valid_key


async def key_exists(db: AsyncSession, key: str, months: Sequence[str]) -> bool:
    """Check whether ``key`` was issued in any of ``months``."""
    result = await db.execute(
        select(ValidKey.id).where(ValidKey.key == key.upper(), ValidKey.month.in_(months)).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def pilot_has_key(
    db: AsyncSession,
    session_id: UUID,
    pilot_name: str,
    months: Sequence[str],
) -> bool:
    """Check whether a pilot already holds a key for a session in ``months``."""
    result = await db.execute(
        select(ValidKey.id)
        .where(
            ValidKey.session_id == session_id,
            ValidKey.pilot_name == pilot_name,
            ValidKey.month.in_(months),
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def list_for_session(
    db: AsyncSession,
    session_id: UUID,
    months: Sequence[str],
) -> list[ValidKey]:
    """Keys of a session issued in ``months``, newest first."""
    result = await db.execute(
        select(ValidKey)
        .where(ValidKey.session_id == session_id, ValidKey.month.in_(months))
        .order_by(ValidKey.created_at.desc())
    )
    return list(result.scalars().all())
