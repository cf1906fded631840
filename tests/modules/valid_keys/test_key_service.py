"""
Unit tests for the validation keys service layer.

These tests cover:
- Key availability across the current and previous month
- Unique key generation
- Issuing keys (duplicate key, duplicate pilot, storage-level conflicts)
- Listing a session's keys
"""

import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import UniqueConstraint
from sqlalchemy.exc import IntegrityError

from flight_connect.modules.sessions.service import SessionNotFoundError
from flight_connect.modules.valid_keys.models import ValidKey
from flight_connect.modules.valid_keys.schemas import ValidKeyCreate
from flight_connect.modules.valid_keys.service import (
    DuplicateKeyError,
    DuplicatePilotError,
    generate_unique_validation_key,
    is_key_available,
    issue_validation_key,
    list_session_keys,
)

SERVICE = "flight_connect.modules.valid_keys.service"
JUNE = datetime(2024, 6, 12, 9, 0, tzinfo=UTC)


class TestKeyAvailability:
    """Tests for is_key_available and generate_unique_validation_key."""

    @pytest.mark.asyncio
    async def test_checks_current_and_previous_month(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.key_exists = AsyncMock(return_value=False)

            assert await is_key_available(mock_db, "ABC", now=JUNE)

            mock_repo.key_exists.assert_awaited_once_with(mock_db, "ABC", ("2024-06", "2024-05"))

    @pytest.mark.asyncio
    async def test_taken_key_is_unavailable(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.key_exists = AsyncMock(return_value=True)

            assert not await is_key_available(mock_db, "ABC", now=JUNE)

    @pytest.mark.asyncio
    async def test_generate_skips_taken_keys(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.key_exists = AsyncMock(side_effect=[True, True, False])

            key = await generate_unique_validation_key(mock_db, now=JUNE)

            assert re.match(r"^[A-Z]{3}$", key)
            assert mock_repo.key_exists.await_count == 3


class TestIssueValidationKey:
    """Tests for issue_validation_key."""

    @pytest.mark.asyncio
    async def test_issue_success(self, mock_db, session, make_key):
        stored = make_key()

        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=False)
            mock_repo.pilot_has_key = AsyncMock(return_value=False)
            mock_repo.create = AsyncMock(return_value=stored)

            result = await issue_validation_key(
                mock_db, session.id, "abc", " Jane Pilot ", now=JUNE
            )

            assert result is stored
            mock_repo.create.assert_awaited_once_with(
                mock_db,
                session_id=session.id,
                key="ABC",
                pilot_name="Jane Pilot",
                month="2024-06",
            )

    @pytest.mark.asyncio
    async def test_duplicate_key(self, mock_db, session):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=True)
            mock_repo.pilot_has_key = AsyncMock()
            mock_repo.create = AsyncMock()

            with pytest.raises(DuplicateKeyError) as exc_info:
                await issue_validation_key(mock_db, session.id, "ABC", "Jane", now=JUNE)

            assert exc_info.value.error_code == "DUPLICATE_KEY"
            assert exc_info.value.status_code == 409
            mock_repo.pilot_has_key.assert_not_awaited()
            mock_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_pilot(self, mock_db, session):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=False)
            mock_repo.pilot_has_key = AsyncMock(return_value=True)
            mock_repo.create = AsyncMock()

            with pytest.raises(DuplicatePilotError) as exc_info:
                await issue_validation_key(mock_db, session.id, "ABC", "Jane", now=JUNE)

            assert exc_info.value.error_code == "DUPLICATE_PILOT"
            mock_repo.pilot_has_key.assert_awaited_once_with(
                mock_db, session.id, "Jane", ("2024-06", "2024-05")
            )
            mock_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_conflict_reported_as_duplicate_key(self, mock_db, session):
        """A concurrent insert that slips past the pre-check still yields DUPLICATE_KEY."""
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=False)
            mock_repo.pilot_has_key = AsyncMock(return_value=False)
            mock_repo.create = AsyncMock(
                side_effect=IntegrityError("INSERT", {}, Exception("uq_valid_keys_key_month"))
            )

            with pytest.raises(DuplicateKeyError):
                await issue_validation_key(mock_db, session.id, "ABC", "Jane", now=JUNE)

            mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_storage_conflict_on_pilot_reported_as_duplicate_pilot(self, mock_db, session):
        """Two concurrent issues for the same pilot: the loser gets DUPLICATE_PILOT."""
        violation = Exception(
            'duplicate key value violates unique constraint "uq_valid_keys_session_pilot_month"'
        )

        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=False)
            mock_repo.pilot_has_key = AsyncMock(return_value=False)
            mock_repo.create = AsyncMock(side_effect=IntegrityError("INSERT", {}, violation))

            with pytest.raises(DuplicatePilotError) as exc_info:
                await issue_validation_key(mock_db, session.id, "XYZ", "Jane", now=JUNE)

            assert exc_info.value.error_code == "DUPLICATE_PILOT"
            mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_january_checks_december(self, mock_db, session, make_key):
        january = datetime(2025, 1, 2, tzinfo=UTC)

        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.key_exists = AsyncMock(return_value=False)
            mock_repo.pilot_has_key = AsyncMock(return_value=False)
            mock_repo.create = AsyncMock(return_value=make_key(month="2025-01"))

            await issue_validation_key(mock_db, session.id, "ABC", "Jane", now=january)

            mock_repo.key_exists.assert_awaited_once_with(mock_db, "ABC", ("2025-01", "2024-12"))
            assert mock_repo.create.await_args.kwargs["month"] == "2025-01"

    @pytest.mark.asyncio
    async def test_unknown_session(self, mock_db):
        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=None)
            mock_repo.key_exists = AsyncMock()

            with pytest.raises(SessionNotFoundError):
                await issue_validation_key(mock_db, uuid4(), "ABC", "Jane", now=JUNE)

            mock_repo.key_exists.assert_not_awaited()


class TestListSessionKeys:
    """Tests for list_session_keys."""

    @pytest.mark.asyncio
    async def test_lists_keys_with_count(self, mock_db, session, make_key):
        keys = [make_key(key="ABC"), make_key(key="DEF", month="2024-05")]

        with (
            patch(f"{SERVICE}.sessions_repository") as mock_sessions,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_sessions.get_by_id = AsyncMock(return_value=session)
            mock_repo.list_for_session = AsyncMock(return_value=keys)

            result = await list_session_keys(mock_db, session.id, now=JUNE)

            assert result.session_id == session.id
            assert result.keys == keys
            assert result.count == 2
            mock_repo.list_for_session.assert_awaited_once_with(
                mock_db, session.id, ("2024-06", "2024-05")
            )

    @pytest.mark.asyncio
    async def test_unknown_session(self, mock_db):
        with patch(f"{SERVICE}.sessions_repository") as mock_sessions:
            mock_sessions.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(SessionNotFoundError):
                await list_session_keys(mock_db, uuid4(), now=JUNE)


class TestValidKeyCreateSchema:
    def test_key_uppercased_and_pilot_stripped(self):
        body = ValidKeyCreate(session_id=uuid4(), key="qkd", pilot_name="  Jane ")
        assert body.key == "QKD"
        assert body.pilot_name == "Jane"

    @pytest.mark.parametrize("key", ["AB", "ABCD", "A1C"])
    def test_rejects_malformed_key(self, key):
        with pytest.raises(ValueError):
            ValidKeyCreate(session_id=uuid4(), key=key, pilot_name="Jane")


class TestValidKeyConstraints:
    """Storage constraints backing the issue-time checks."""

    def test_pilot_limited_to_one_key_per_session_and_month(self):
        constraints = {
            c.name: tuple(col.name for col in c.columns)
            for c in ValidKey.__table__.constraints
            if isinstance(c, UniqueConstraint)
        }

        assert constraints["uq_valid_keys_session_pilot_month"] == (
            "session_id",
            "pilot_name",
            "month",
        )
        assert constraints["uq_valid_keys_key_month"] == ("key", "month")
