"""
RideHub Backend - FastAPI Application

Main application entry point with middleware, routers, and OpenAPI
documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from ridehub.config import settings
from ridehub.database import init_db, close_db, get_db, get_redis
from ridehub.exceptions import (
    DependencyError,
    InvalidReportError,
    NotFoundError,
    RideHubError,
    StateConflictError,
)
from ridehub.middleware.rate_limit import RateLimitMiddleware
from ridehub.routers import (
    surveys,
    reputation,
    ratings,
    meeting_points,
    notifications,
    scheduler,
)
from ridehub.utils.logging_config import setup_logging
from ridehub.utils.telegram_log_handler import setup_telegram_alerts


logger = logging.getLogger(__name__)


def create_scheduler() -> AsyncIOScheduler:
    """Register the attendance sweeps."""
    from ridehub.scheduler import attendance_survey_job, survey_expiry_job

    job_scheduler = AsyncIOScheduler()
    interval = settings.survey_sweep_interval_minutes

    job_scheduler.add_job(
        attendance_survey_job.execute,
        "interval",
        minutes=interval,
        id="attendance_survey",
        name="Attendance Survey Job",
        max_instances=1,
        coalesce=True,  # Skip if previous run is still executing
    )

    job_scheduler.add_job(
        survey_expiry_job.execute,
        "interval",
        minutes=interval,
        id="survey_expiry",
        name="Survey Expiry Job",
        max_instances=1,
        coalesce=True,
    )

    return job_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Configure logging and ops alerts
    - Initialize database connections
    - Start the survey scheduler
    - Cleanup on shutdown
    """
    setup_logging(settings.log_level)

    if setup_telegram_alerts(
        settings.telegram_alert_bot_token, settings.telegram_alert_chat_id
    ):
        logger.info("[Startup] Telegram alerts enabled")

    await init_db()

    logger.info("=" * 50)
    logger.info("RIDEHUB BACKEND STARTUP")
    logger.info("=" * 50)

    try:
        await get_db().client.admin.command("ping")
        logger.info("[Startup] Connected to db")
    except PyMongoError as e:
        logger.error(f"[Startup] FAILED to connect to db: {e}")

    try:
        await get_redis().ping()
        logger.info("[Startup] Redis connected")
    except RedisError as e:
        logger.error(f"[Startup] FAILED to connect to Redis: {e}")

    job_scheduler = create_scheduler()
    job_scheduler.start()
    logger.info(
        f"[Startup] Scheduler started with 2 jobs: Attendance Survey | Survey Expiry "
        f"({settings.survey_sweep_interval_minutes}m)"
    )

    yield

    # Shutdown
    job_scheduler.shutdown()
    logger.info("[Shutdown] Scheduler stopped")

    await close_db()


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="RideHub API",
    description="""
    RideHub - Attendance Consensus & Reputation API

    ## Features
    - Post-ride attendance surveys
    - Majority-vote confirmation of who showed up
    - Reliability-weighted reputation
    - Ratings and meeting point voting

    ## Authentication
    All authenticated endpoints require a valid Firebase ID token in the
    Authorization header: `Authorization: Bearer <firebase_id_token>`
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# Middleware
# =============================================================================

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate Limiting Middleware
app.add_middleware(RateLimitMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


def _status_for(exc: Exception) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, StateConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (InvalidReportError, ValueError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, DependencyError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(RideHubError)
async def domain_exception_handler(request: Request, exc: RideHubError):
    """Map domain errors to HTTP status codes."""
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"[API] {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors.

    SECURITY: In production, do not leak internal error details.
    """
    logger.error(
        f"[API] Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": (
                "Something went wrong. Our team has been notified "
                "and will fix it shortly."
            )
        },
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(surveys.router, prefix=f"{settings.api_v1_str}/surveys", tags=["Surveys"])

app.include_router(
    reputation.router,
    prefix=f"{settings.api_v1_str}/reputation",
    tags=["Reputation"],
)

app.include_router(ratings.router, prefix=f"{settings.api_v1_str}/ratings", tags=["Ratings"])

app.include_router(
    meeting_points.router,
    prefix=f"{settings.api_v1_str}/meeting-points",
    tags=["Meeting Points"],
)

app.include_router(
    notifications.router,
    prefix=f"{settings.api_v1_str}/notifications",
    tags=["Notifications"],
)

# Scheduler monitoring routes
app.include_router(
    scheduler.router,
    prefix=f"{settings.api_v1_str}/scheduler",
    tags=["Scheduler"],
)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "RideHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


def run():
    """Serve the API with uvicorn (``ridehub`` console script)."""
    uvicorn.run(
        "ridehub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
