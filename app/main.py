"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.config import settings
from app.core.exceptions import AppException
from app.core.redis_client import CacheManager, close_redis_connection, get_redis_client
from app.database import AsyncSessionLocal, check_database_connection, engine
from app.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.middleware.logging import LoggingMiddleware, configure_logging
from app.services.schedule_service import ScheduleService

# Configure logging
configure_logging()
logger = structlog.get_logger()


async def _report_weekly_schedule() -> None:
    """Warn when no weekly slot is active, since every weekday then resolves empty."""
    async with AsyncSessionLocal() as session:
        active = await ScheduleService(session).count_active_weekly_slots()
    if active:
        logger.info("weekly_schedule_loaded", active_slots=active)
    else:
        logger.warning("weekly_schedule_empty", hint="run scripts/seed_availability.py")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Checks the database, the weekly schedule and Redis on startup and closes
    connections on shutdown. Only the database is required; Redis backs the
    availability cache alone.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
        cache_ttl=settings.availability_cache_ttl,
    )

    if await check_database_connection():
        logger.info("database_connected")
        try:
            await _report_weekly_schedule()
        except SQLAlchemyError as e:
            logger.error("weekly_schedule_check_failed", error=str(e))
    else:
        logger.error("database_connection_failed")

    if CacheManager(get_redis_client()).ping():
        logger.info("redis_connected")
    else:
        logger.warning("redis_unavailable", detail="availability served uncached")

    yield

    logger.info("application_shutdown")

    await engine.dispose()
    close_redis_connection()
    logger.info("connections_closed")


# Interactive docs are off in production
docs_enabled = not settings.is_production

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Clinic appointment booking: availability resolution and slot allocation",
    docs_url="/docs" if docs_enabled else None,
    redoc_url="/redoc" if docs_enabled else None,
    openapi_url="/openapi.json" if docs_enabled else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Add exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)  # type: ignore[arg-type]

# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)

# Setup Prometheus instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics", ".*/ping"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs" if docs_enabled else "disabled",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
