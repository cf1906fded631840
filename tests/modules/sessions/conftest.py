"""
Fixtures for sessions tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from flight_connect.core.auth import CurrentUser
from flight_connect.modules.sessions.models import Session, SessionStatus
from flight_connect.modules.sessions.schemas import SessionCreate
from flight_connect.modules.users.models import UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def make_session():
    """Factory for session models with a 2024-06-01 10:00 schedule by default."""

    def _make(**overrides):
        session = MagicMock(spec=Session)
        session.id = uuid4()
        session.session_code = "QKD"
        session.session_number = 1
        session.date = "2024-06-01"
        session.registration_start_time = "08:00"
        session.start_time = "10:00"
        session.end_time = None
        session.closing_minutes = 60
        session.status = SessionStatus.OPEN
        session.comments = ""
        session.created_by_id = uuid4()
        session.created_by_name = "Dispatcher One"
        session.created_at = datetime(2024, 5, 20, tzinfo=UTC)
        session.updated_at = datetime(2024, 5, 20, tzinfo=UTC)
        for key, value in overrides.items():
            setattr(session, key, value)
        return session

    return _make


@pytest.fixture
def sample_session_create():
    """Scenario session: registration 08:00, start 10:00, closing 60 minutes."""
    return SessionCreate(
        date="2024-06-01",
        registration_start_time="08:00",
        start_time="10:00",
        closing_minutes=60,
    )


@pytest.fixture
def dispatcher_user():
    return CurrentUser(
        id=uuid4(),
        username="dispatcher1",
        role=UserRole.DISPATCHER.value,
        name="Dispatcher One",
    )


@pytest.fixture
def admin_user():
    return CurrentUser(id=uuid4(), username="admin", role=UserRole.ADMIN.value, name="Admin")
