"""Authentication module."""

from flight_connect.modules.auth.router import router
from flight_connect.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest

__all__ = ["router", "LoginRequest", "LoginResponse", "RegisterRequest"]
