"""
User Models

Database models for user management and authentication.
"""

from enum import Enum

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from flight_connect.modules.shared import BaseModel


class UserRole(str, Enum):
    """User roles in the system."""

    PILOT = "pilot"
    DISPATCHER = "dispatcher"
    ADMIN = "admin"


class User(BaseModel):
    """
    User model for authentication and authorization.

    Dispatchers and admins schedule sessions; pilots register against them.
    Usernames are stored lower-cased so lookups are case-insensitive.
    """

    __tablename__ = "users"

    # Authentication fields
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Profile
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    # Role and permissions
    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.PILOT,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role.value})>"

    @property
    def display_name(self) -> str:
        """Return the name shown on sessions the user creates."""
        return self.name or self.username
