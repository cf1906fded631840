"""
Session Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from flight_connect.modules.sessions.models import SessionStatus
from flight_connect.modules.sessions.schedule import DATE_PATTERN, TIME_PATTERN


class SessionCreate(BaseModel):
    """Request body for POST /sessions."""

    date: str = Field(..., pattern=DATE_PATTERN, examples=["2024-06-01"])
    registration_start_time: str = Field(..., pattern=TIME_PATTERN, examples=["08:00"])
    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["10:00"])
    end_time: str | None = Field(None, pattern=TIME_PATTERN, examples=["12:00"])
    closing_minutes: int = Field(60, ge=0)
    comments: str = ""


class SessionUpdate(BaseModel):
    """
    Request body for PATCH /sessions/{id}.

    Only fields present in the body are applied. Sending ``end_time: null``
    clears the end time (back to the 2 hour default).
    """

    comments: str | None = None
    status: SessionStatus | None = None
    date: str | None = Field(None, pattern=DATE_PATTERN)
    registration_start_time: str | None = Field(None, pattern=TIME_PATTERN)
    start_time: str | None = Field(None, pattern=TIME_PATTERN)
    end_time: str | None = Field(None, pattern=TIME_PATTERN)
    closing_minutes: int | None = Field(None, ge=0)


class SessionResponse(BaseModel):
    """Session as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_code: str
    session_number: int
    date: str
    registration_start_time: str
    start_time: str
    end_time: str | None = None
    closing_minutes: int
    status: SessionStatus
    comments: str
    created_by_id: UUID | None = None
    created_by_name: str | None = None
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
