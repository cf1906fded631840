"""
Session Schedule & Status Engine

Pure functions over a session's schedule fields. All arithmetic happens in
UTC: the stored ``YYYY-MM-DD`` date and ``HH:mm`` times are concatenated and
parsed as UTC instants, so results do not depend on the host time zone.

Status rules, first match wins:
1. now >= end                          -> completed
2. now >= start                        -> closed
3. now < registration start            -> open
4. 0 < (start - closing_minutes) - now <= 30 min -> closing
5. otherwise                           -> open

Once the closing time has passed but the session has not started, rule 5
still reports ``open``. That is the established behavior and is kept.
"""

import re
from datetime import UTC, datetime, timedelta
from typing import Protocol

from flight_connect.core.exceptions import ScheduleValidationError
from flight_connect.modules.sessions.models import SessionStatus

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"

DEFAULT_SESSION_DURATION = timedelta(hours=2)
CLOSING_SOON_WINDOW = timedelta(minutes=30)

_DATE_RE = re.compile(DATE_PATTERN)
_TIME_RE = re.compile(TIME_PATTERN)


class SessionSchedule(Protocol):
    """Anything carrying a session's schedule fields (ORM model or schema)."""

    date: str
    registration_start_time: str
    start_time: str
    end_time: str | None
    closing_minutes: int


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def parse_instant(date: str, time: str, field: str = "start_time") -> datetime:
    """
    Parse a stored date and time-of-day as a UTC instant.

    Args:
        date: ``YYYY-MM-DD``
        time: ``HH:mm`` (24-hour, zero padded)
        field: Name of the time field, used in error messages

    Raises:
        ScheduleValidationError: If either string is malformed
    """
    if not isinstance(date, str) or not _DATE_RE.match(date):
        raise ScheduleValidationError("date", f"'{date}' is not in YYYY-MM-DD format")
    if not isinstance(time, str) or not _TIME_RE.match(time):
        raise ScheduleValidationError(field, f"'{time}' is not in HH:mm format")

    try:
        parsed = datetime.strptime(f"{date}T{time}", "%Y-%m-%dT%H:%M")
    except ValueError as e:
        raise ScheduleValidationError("date", f"'{date}' is not a valid calendar date") from e

    return parsed.replace(tzinfo=UTC)


def session_window(date: str, start_time: str, end_time: str | None) -> tuple[datetime, datetime]:
    """
    Return the ``[start, end)`` window of a session.

    A missing end time means start + 2 hours.
    """
    start = parse_instant(date, start_time, "start_time")
    if end_time:
        end = parse_instant(date, end_time, "end_time")
    else:
        end = start + DEFAULT_SESSION_DURATION
    return start, end


def closing_time(session: SessionSchedule) -> datetime:
    """Instant at which registration closes (start - closing_minutes)."""
    start = parse_instant(session.date, session.start_time, "start_time")
    return start - timedelta(minutes=session.closing_minutes)


def registration_window(session: SessionSchedule) -> tuple[datetime, datetime]:
    """Return ``(opens_at, closes_at)`` for participant registration."""
    opens_at = parse_instant(
        session.date, session.registration_start_time, "registration_start_time"
    )
    return opens_at, closing_time(session)


def compute_status(session: SessionSchedule, now: datetime | None = None) -> SessionStatus:
    """
    Compute a session's lifecycle status at ``now``.

    Deterministic in the schedule fields and ``now``; the stored status is
    never consulted.

    Args:
        session: Object exposing the schedule fields
        now: Evaluation instant; naive values are taken as UTC. Defaults to
            the current time.

    Returns:
        The SessionStatus that applies at ``now``
    """
    now = _as_utc(now or datetime.now(UTC))

    start, end = session_window(session.date, session.start_time, session.end_time)

    if now >= end:
        return SessionStatus.COMPLETED

    if now >= start:
        return SessionStatus.CLOSED

    registration_start = parse_instant(
        session.date, session.registration_start_time, "registration_start_time"
    )
    # Not yet open for registration, but visible as open for planning
    if now < registration_start:
        return SessionStatus.OPEN

    until_closing = start - timedelta(minutes=session.closing_minutes) - now
    if timedelta(0) < until_closing <= CLOSING_SOON_WINDOW:
        return SessionStatus.CLOSING

    return SessionStatus.OPEN


def validate_schedule(
    date: str,
    registration_start_time: str,
    start_time: str,
    end_time: str | None,
    closing_minutes: int,
) -> None:
    """
    Validate a schedule's formats and ordering.

    Enforces registration start <= start, and start < end when an end time is
    given. Sessions cannot cross midnight.

    Raises:
        ScheduleValidationError: Naming the offending field
    """
    if closing_minutes < 0:
        raise ScheduleValidationError("closing_minutes", "must be zero or greater")

    registration_start = parse_instant(date, registration_start_time, "registration_start_time")
    start, end = session_window(date, start_time, end_time)

    if registration_start > start:
        raise ScheduleValidationError(
            "registration_start_time",
            f"registration must open at or before the session start ({start_time})",
        )

    if end_time is not None and end <= start:
        raise ScheduleValidationError(
            "end_time", f"must be later than start_time ({start_time}) on the same day"
        )
