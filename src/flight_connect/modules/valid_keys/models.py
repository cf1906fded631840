"""
Validation Key Models

A validation key confirms a pilot's attendance at a session. Keys rotate
by month: uniqueness only spans the current and previous month tags.
"""

import uuid

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flight_connect.modules.shared import BaseModel


class ValidKey(BaseModel):
    """
    Issued validation key.

    ``session_id`` is a plain reference, not a foreign key: keys outlive the
    session they were issued for.
    """

    __tablename__ = "valid_keys"

    session_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    # 3 letters, or 4 characters for a generator fallback key
    key: Mapped[str] = mapped_column(String(4), nullable=False, index=True)

    pilot_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Issuing month, YYYY-MM (UTC)
    month: Mapped[str] = mapped_column(String(7), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("key", "month", name="uq_valid_keys_key_month"),
        UniqueConstraint(
            "session_id", "pilot_name", "month", name="uq_valid_keys_session_pilot_month"
        ),
        Index("ix_valid_keys_session_month", "session_id", "month"),
    )

    def __repr__(self) -> str:
        return f"<ValidKey(key={self.key}, month={self.month}, session_id={self.session_id})>"
