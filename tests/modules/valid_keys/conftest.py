"""
Fixtures for validation key tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from flight_connect.modules.sessions.models import Session
from flight_connect.modules.valid_keys.models import ValidKey


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def session():
    session = MagicMock(spec=Session)
    session.id = uuid4()
    session.session_code = "QKD"
    return session


@pytest.fixture
def make_key(session):
    """Factory for stored keys."""

    def _make(key="ABC", pilot_name="Jane Pilot", month="2024-06"):
        valid_key = MagicMock(spec=ValidKey)
        valid_key.id = uuid4()
        valid_key.session_id = session.id
        valid_key.key = key
        valid_key.pilot_name = pilot_name
        valid_key.month = month
        valid_key.created_at = datetime(2024, 6, 10, tzinfo=UTC)
        return valid_key

    return _make
