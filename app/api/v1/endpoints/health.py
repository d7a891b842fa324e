"""Liveness and readiness endpoints."""

from typing import Literal

import structlog
from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.dependencies import CacheManagerDep, DatabaseSession
from app.services.schedule_service import ScheduleService

logger = structlog.get_logger()

router = APIRouter()

ComponentState = Literal["healthy", "unhealthy", "disabled"]


class HealthResponse(BaseModel):
    """Overall service status."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    environment: str


class ReadinessResponse(HealthResponse):
    """Per-component state behind the overall status."""

    database: ComponentState
    cache: ComponentState
    active_weekly_slots: int | None = None
    clinic_timezone: str


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """Answer as long as the process is serving requests."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get("/health/detailed", response_model=ReadinessResponse, summary="Readiness probe")
async def detailed_health_check(
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> ReadinessResponse:
    """
    Report whether the service can resolve availability and take bookings.

    The database is required. A Redis outage only costs the month cache, and
    an empty weekly schedule means nothing is bookable, so both report
    ``degraded`` rather than ``unhealthy``.
    """
    active_slots: int | None = None
    try:
        active_slots = await ScheduleService(db).count_active_weekly_slots()
        database: ComponentState = "healthy"
    except SQLAlchemyError as e:
        logger.error("readiness_database_failed", error=str(e))
        database = "unhealthy"

    if cache is None or settings.availability_cache_ttl == 0:
        cache_state: ComponentState = "disabled"
    else:
        cache_state = "healthy" if cache.ping() else "unhealthy"

    if database == "unhealthy":
        overall = "unhealthy"
    elif cache_state == "unhealthy" or not active_slots:
        overall = "degraded"
    else:
        overall = "healthy"

    return ReadinessResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        cache=cache_state,
        active_weekly_slots=active_slots,
        clinic_timezone=settings.clinic_timezone,
    )


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}
