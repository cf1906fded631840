"""
Flight Connect API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Background job scheduler (session status sweep)
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from flight_connect.api import api_router
from flight_connect.core.auth import CurrentUser, require_admin
from flight_connect.core.config import settings
from flight_connect.core.database import async_session_maker, close_db, init_db
from flight_connect.core.redis import close_redis, init_redis, ping_redis
from flight_connect.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from flight_connect.modules.sessions import register_session_jobs

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    # Startup
    print(f"Starting Flight Connect API in {settings.python_env} mode...")

    # Redis only backs rate limiting; the API runs without it
    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        register_session_jobs()
        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down Flight Connect API...")

    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Flight Connect API",
    description="Registration sessions, pilot participants and validation keys",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Flight Connect API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: database reachable, Redis reported but optional."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail={"error": "NOT_READY", "message": "Database unavailable"},
        ) from e

    redis_ok = await ping_redis()
    return {"status": "ready", "redis": "connected" if redis_ok else "unavailable"}


# ============================================
# Background Job Endpoints (admin)
# ============================================


@app.get("/admin/jobs", tags=["Admin - Jobs"])
async def list_jobs(_admin: CurrentUser = Depends(require_admin)):
    """List registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@app.post("/admin/jobs/{job_id}/trigger", tags=["Admin - Jobs"])
async def trigger_job(job_id: str, _admin: CurrentUser = Depends(require_admin)):
    """
    Run a background job now, bypassing the schedule.

    Available jobs:
        - sessions_refresh_statuses

    Raises:
        HTTPException 404: If job_id is not registered.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(
            status_code=404,
            detail={"error": "JOB_NOT_FOUND", "message": str(e)},
        ) from e
