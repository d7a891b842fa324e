"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    appointments,
    availability,
    bookings,
    health,
    products,
    schedule,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(availability.router, prefix="/availability", tags=["Availability"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(schedule.router, tags=["Schedule"])
api_router.include_router(admin.router, tags=["Admin"])
