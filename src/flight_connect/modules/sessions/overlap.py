"""
Session Overlap Detection

Two sessions conflict when their ``[start, end)`` windows on the same
calendar date intersect. Touching boundaries (one ends at 11:00, the next
starts at 11:00) do not conflict. The check is global per day, not scoped
to a single dispatcher.
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from flight_connect.modules.sessions.models import Session
from flight_connect.modules.sessions.schedule import session_window


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open interval intersection test."""
    return max(a_start, b_start) < min(a_end, b_end)


def find_overlap(
    date: str,
    start_time: str,
    end_time: str | None,
    existing: Iterable[Session],
    exclude_id: UUID | None = None,
) -> Session | None:
    """
    Find the first existing session whose window intersects the candidate.

    Args:
        date: Candidate date (``YYYY-MM-DD``)
        start_time: Candidate start (``HH:mm``)
        end_time: Candidate end, or None for start + 2 hours
        existing: Sessions to compare against; other dates are skipped
        exclude_id: Session to ignore (the one being updated)

    Returns:
        The conflicting session, or None
    """
    new_start, new_end = session_window(date, start_time, end_time)

    for session in existing:
        if exclude_id is not None and session.id == exclude_id:
            continue
        if session.date != date:
            continue

        start, end = session_window(session.date, session.start_time, session.end_time)
        if intervals_overlap(start, end, new_start, new_end):
            return session

    return None


def describe_conflict(session: Session) -> str:
    """Human-readable description of a conflicting session."""
    _, end = session_window(session.date, session.start_time, session.end_time)
    creator = session.created_by_name or "another dispatcher"
    return (
        f"Overlaps with session {session.session_code} by {creator} "
        f"({session.start_time}-{end.strftime('%H:%M')})"
    )
