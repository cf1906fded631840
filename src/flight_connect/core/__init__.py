"""
Core - settings, persistence, security, error taxonomy and short codes.

Auth dependencies live in ``flight_connect.core.auth`` and are imported
from there directly (they depend on the users module).
"""

from flight_connect.core.codes import generate_code, generate_unique_code
from flight_connect.core.config import get_settings, settings
from flight_connect.core.database import Base, async_session_maker, get_db
from flight_connect.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ScheduleValidationError,
    ServiceError,
    StoreError,
    ValidationError,
    handle_service_error,
)
from flight_connect.core.security import create_access_token, decode_token, hash_password

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "async_session_maker",
    "get_db",
    # Errors
    "ServiceError",
    "ValidationError",
    "ScheduleValidationError",
    "ConflictError",
    "NotFoundError",
    "InvalidStateError",
    "StoreError",
    "handle_service_error",
    # Codes
    "generate_code",
    "generate_unique_code",
    # Security
    "hash_password",
    "create_access_token",
    "decode_token",
]
