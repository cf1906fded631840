"""
Month tags for validation key rotation.

A key value is unique within the current and the previous month tag, so
a key issued in March frees up again in May.
"""

from datetime import UTC, datetime


def month_tag(reference: datetime) -> str:
    """``YYYY-MM`` of ``reference`` in UTC. Naive datetimes are taken as UTC."""
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=UTC)
    reference = reference.astimezone(UTC)
    return f"{reference.year:04d}-{reference.month:02d}"


def month_window(reference: datetime) -> tuple[str, str]:
    """Return ``(current, previous)`` month tags; January's predecessor is December."""
    current = month_tag(reference)
    year, month = (int(part) for part in current.split("-"))

    if month == 1:
        previous = f"{year - 1:04d}-12"
    else:
        previous = f"{year:04d}-{month - 1:02d}"

    return current, previous
