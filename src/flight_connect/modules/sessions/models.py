"""
Session Models

Database model for registration sessions. Schedule fields are stored as
literal strings (``YYYY-MM-DD`` and ``HH:mm``) and interpreted as UTC.
"""

import enum
import uuid

from sqlalchemy import Enum, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flight_connect.modules.shared import BaseModel


class SessionStatus(str, enum.Enum):
    """Lifecycle status of a session."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    COMPLETED = "completed"


class Session(BaseModel):
    """
    Registration session.

    Status is derived from the schedule and the wall clock; the stored value
    is a cache that read paths and the background sweep keep converged.
    """

    __tablename__ = "sessions"

    session_code: Mapped[str] = mapped_column(String(4), nullable=False)
    session_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Schedule
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    registration_start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    closing_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, name="session_status"),
        nullable=False,
        default=SessionStatus.OPEN,
    )
    comments: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Creator (no FK: sessions outlive dispatcher accounts)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    created_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        Index("ix_sessions_session_code", "session_code"),
        Index("ix_sessions_date_start_time", "date", "start_time"),
        Index("ix_sessions_status", "status"),
        Index("ix_sessions_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, code={self.session_code}, date={self.date})>"
