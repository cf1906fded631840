"""
Fixtures for participants tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from flight_connect.modules.participants.models import Participant
from flight_connect.modules.participants.schemas import ParticipantCreate
from flight_connect.modules.sessions.models import Session, SessionStatus


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
    """Session with registration 08:00 and closing time 09:00 on 2024-06-01."""
    session = MagicMock(spec=Session)
    session.id = uuid4()
    session.session_code = "QKD"
    session.date = "2024-06-01"
    session.registration_start_time = "08:00"
    session.start_time = "10:00"
    session.end_time = None
    session.closing_minutes = 60
    session.status = SessionStatus.OPEN
    return session


@pytest.fixture
def registration(session):
    return ParticipantCreate(session_id=session.id, name="  Jane Pilot ", validation_code="abc")


@pytest.fixture
def participant(session):
    participant = MagicMock(spec=Participant)
    participant.id = uuid4()
    participant.session_id = session.id
    participant.name = "Jane Pilot"
    participant.validation_code = "ABC"
    participant.code = "XYZ"
    participant.is_valid = None
    participant.registered_at = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)
    return participant
