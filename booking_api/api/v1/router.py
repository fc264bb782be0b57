"""
API v1 router setup
Organized into: public (no auth), client (client token) and dashboard (business token) routes
"""
from fastapi import APIRouter

from booking_api.api.v1 import appointments
from booking_api.api.v1.dashboard import appointments as dashboard_appointments, working_hours
from booking_api.api.v1.public import availability

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    availability.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# CLIENT ROUTES (client JWT required)
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    tags=["Client"]
)

# ============================================================================
# DASHBOARD ROUTES (business owner / staff JWT required)
# ============================================================================
api_v1_router.include_router(
    dashboard_appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    working_hours.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


@api_v1_router.get("/health", tags=["Info"])
async def health_check():
    """
    Health check endpoint.
    Useful for monitoring and load balancers.
    """
    return {
        "status": "healthy",
        "version": "1.0",
        "service": "Booking Availability API"
    }
