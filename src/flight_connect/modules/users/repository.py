"""
User Repository

Database operations for user management.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flight_connect.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        password_hash: str,
        name: str,
        role: UserRole,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            username: Login name (stored lower-cased, unique)
            password_hash: Hashed password
            name: Display name
            role: User's role

        Returns:
            Created User instance
        """
        user = User(
            username=username.lower(),
            password_hash=password_hash,
            name=name,
            role=role,
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.username} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            db: Database session
            user_id: User UUID

        Returns:
            User instance or None if not found
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        result = await db.execute(select(User).where(User.username == username.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def username_exists(db: AsyncSession, username: str) -> bool:
        """Check if a username is already registered."""
        user = await UserRepository.get_by_username(db, username)
        return user is not None

    @staticmethod
    async def list_by_role(db: AsyncSession, role: UserRole) -> list[User]:
        """List users with the given role, oldest first."""
        result = await db.execute(select(User).where(User.role == role).order_by(User.created_at))
        return list(result.scalars().all())
