"""
Unit tests for the participants service layer.

Registration window for the fixture session: [08:00, 09:00) UTC.
"""

import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from flight_connect.modules.participants.schemas import ParticipantCreate
from flight_connect.modules.participants.service import (
    ParticipantNotFoundError,
    RegistrationClosedError,
    RegistrationNotOpenError,
    delete_participant,
    get_participant,
    list_participants,
    register_participant,
    set_participant_validity,
)
from flight_connect.modules.sessions.service import SessionNotFoundError

SERVICE = "flight_connect.modules.participants.service"


def at(hhmm: str) -> datetime:
    hours, minutes = (int(p) for p in hhmm.split(":"))
    return datetime(2024, 6, 1, hours, minutes, tzinfo=UTC)


class TestParticipantCreateSchema:
    """Tests for ParticipantCreate normalization."""

    def test_name_stripped_and_code_uppercased(self, registration):
        assert registration.name == "Jane Pilot"
        assert registration.validation_code == "ABC"

    @pytest.mark.parametrize("code", ["AB", "ABCD", "A1C", ""])
    def test_rejects_malformed_validation_code(self, code):
        with pytest.raises(ValueError):
            ParticipantCreate(session_id=uuid4(), name="Jane", validation_code=code)

    def test_rejects_blank_name(self):
        with pytest.raises(ValueError):
            ParticipantCreate(session_id=uuid4(), name="   ", validation_code="ABC")


class TestRegisterParticipant:
    """Tests for register_participant."""

    @pytest.mark.asyncio
    async def test_registration_inside_window(self, mock_db, session, registration, participant):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.create = AsyncMock(return_value=participant)

            result = await register_participant(mock_db, registration, now=at("08:30"))

            assert result is participant
            args, kwargs = mock_repo.create.await_args
            assert args == (mock_db, registration)
            assert re.match(r"^[A-Z]{3}$", kwargs["code"])

    @pytest.mark.asyncio
    async def test_registration_start_is_inclusive(
        self, mock_db, session, registration, participant
    ):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.create = AsyncMock(return_value=participant)

            await register_participant(mock_db, registration, now=at("08:00"))

            mock_repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_before_registration_start(self, mock_db, session, registration):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.create = AsyncMock()

            with pytest.raises(RegistrationNotOpenError) as exc_info:
                await register_participant(mock_db, registration, now=at("07:59"))

            assert exc_info.value.error_code == "REGISTRATION_NOT_OPEN"
            mock_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("hhmm", ["09:00", "09:30", "11:00"])
    async def test_at_or_after_closing_time(self, mock_db, session, registration, hhmm):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.create = AsyncMock()

            with pytest.raises(RegistrationClosedError) as exc_info:
                await register_participant(mock_db, registration, now=at(hhmm))

            assert exc_info.value.error_code == "REGISTRATION_CLOSED"
            mock_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_session(self, mock_db, registration):
        with patch(f"{SERVICE}.sessions_repository") as mock_sessions:
            mock_sessions.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(SessionNotFoundError):
                await register_participant(mock_db, registration, now=at("08:30"))


class TestParticipantQueries:
    """Tests for list/get/validity/delete."""

    @pytest.mark.asyncio
    async def test_list_for_session(self, mock_db, session, participant):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_participants = AsyncMock(return_value=[participant])

            result = await list_participants(mock_db, session_id=session.id)

            assert result == [participant]
            mock_repo.list_participants.assert_awaited_once_with(mock_db, session_id=session.id)

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(ParticipantNotFoundError) as exc_info:
                await get_participant(mock_db, uuid4())

            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("is_valid", [True, False, None])
    async def test_set_validity(self, mock_db, participant, is_valid):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=participant)
            mock_repo.set_validity = AsyncMock(return_value=participant)

            await set_participant_validity(mock_db, participant.id, is_valid)

            mock_repo.set_validity.assert_awaited_once_with(mock_db, participant, is_valid)

    @pytest.mark.asyncio
    async def test_delete(self, mock_db, participant):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=participant)
            mock_repo.delete_participant = AsyncMock()

            await delete_participant(mock_db, participant.id)

            mock_repo.delete_participant.assert_awaited_once_with(mock_db, participant)

    @pytest.mark.asyncio
    async def test_delete_not_found(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            mock_repo.delete_participant = AsyncMock()

            with pytest.raises(ParticipantNotFoundError):
                await delete_participant(mock_db, uuid4())

            mock_repo.delete_participant.assert_not_awaited()
