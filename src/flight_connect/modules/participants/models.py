"""
Participant Models

A participant is a pilot's registration against a session.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flight_connect.modules.shared import BaseModel


class Participant(BaseModel):
    """
    Pilot registration.

    ``is_valid`` is tri-state: None until a dispatcher checks the
    registration, then True or False. It never changes on its own.
    """

    __tablename__ = "participants"

    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # 3-letter code supplied by the pilot, stored upper-case
    validation_code: Mapped[str] = mapped_column(String(3), nullable=False)

    # Personal code issued at registration (not globally unique)
    code: Mapped[str] = mapped_column(String(4), nullable=False)

    is_valid: Mapped[bool | None] = mapped_column(Boolean, nullable=True, default=None)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_participants_session_id", "session_id"),
        Index("ix_participants_session_validation_code", "session_id", "validation_code"),
        Index("ix_participants_registered_at", "registered_at"),
    )

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, session_id={self.session_id}, name={self.name})>"
