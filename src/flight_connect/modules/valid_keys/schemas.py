"""
Validation Key Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ValidKeyCreate(BaseModel):
    """Request body for POST /valid-keys."""

    session_id: UUID
    key: str = Field(..., pattern=r"^[A-Za-z]{3}$", examples=["QKD"])
    pilot_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("key")
    @classmethod
    def normalize_key(cls, value: str) -> str:
        return value.upper()

    @field_validator("pilot_name")
    @classmethod
    def strip_pilot_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("pilot_name must not be blank")
        return value


class ValidKeyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    key: str
    pilot_name: str
    month: str
    created_at: datetime


class SessionKeysResponse(BaseModel):
    """Keys of a session within the current and previous month."""

    session_id: UUID
    keys: list[ValidKeyResponse]
    count: int


class GeneratedKeyResponse(BaseModel):
    key: str
