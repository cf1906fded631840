"""
Participant Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParticipantCreate(BaseModel):
    """Request body for POST /participants."""

    session_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    validation_code: str = Field(..., min_length=3, max_length=3, pattern=r"^[A-Za-z]{3}$")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("validation_code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.upper()


class ParticipantUpdate(BaseModel):
    """
    Request body for PATCH /participants/{id}.

    ``is_valid`` may be true, false or null (back to unchecked).
    """

    is_valid: bool | None = None


class ParticipantResponse(BaseModel):
    """Participant as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    name: str
    validation_code: str
    code: str
    is_valid: bool | None = None
    registered_at: datetime
