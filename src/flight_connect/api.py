from fastapi import APIRouter

from flight_connect.modules.auth import router as auth_router
from flight_connect.modules.participants.router import router as participants_router
from flight_connect.modules.sessions import router as sessions_router
from flight_connect.modules.valid_keys.router import router as valid_keys_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(sessions_router, prefix="/sessions", tags=["Sessions"])

api_router.include_router(participants_router, prefix="/participants", tags=["Participants"])

api_router.include_router(valid_keys_router, prefix="/valid-keys", tags=["Validation Keys"])
