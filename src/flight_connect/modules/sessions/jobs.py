"""
Sessions Background Jobs

Periodic status sweep. Statuses are also recomputed on every read, so the
sweep only keeps stored statuses fresh for sessions nobody is looking at.

The job opens its own database session and is idempotent: a run with
nothing to change writes nothing.
"""

import logging
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from flight_connect.core.config import settings
from flight_connect.core.database import async_session_maker
from flight_connect.core.scheduler import register_job
from flight_connect.modules.sessions import repository, service

logger = logging.getLogger(__name__)

JOB_ID_REFRESH_STATUSES = "sessions_refresh_statuses"


async def refresh_session_statuses() -> dict[str, Any]:
    """
    Recompute the status of every session that has not completed.

    Returns:
        Dict with the number of sessions checked and changed
    """
    async with async_session_maker() as db:
        sessions = await repository.list_not_completed(db)
        changed = await service.refresh_statuses(db, sessions)

    if changed:
        logger.info(f"Status sweep: {changed} of {len(sessions)} session(s) changed")

    return {"checked": len(sessions), "changed": changed}


def register_session_jobs() -> None:
    """Register session background jobs with the scheduler."""
    minutes = settings.session_status_sweep_minutes

    register_job(
        job_id=JOB_ID_REFRESH_STATUSES,
        func=refresh_session_statuses,
        trigger=IntervalTrigger(minutes=minutes),
    )
    logger.info(f"Registered job: {JOB_ID_REFRESH_STATUSES} (interval: {minutes} min)")
