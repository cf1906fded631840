"""
Users module - User management and authentication.
"""

from flight_connect.modules.users.models import User, UserRole
from flight_connect.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
