"""
API v1 router setup
All routes require a JWT bearer token for a client or business actor.
"""
from fastapi import APIRouter

from booking.api.v1 import appointments, businesses

api_v1_router = APIRouter()

# ============================================================================
# CATALOGUE + AVAILABILITY
# ============================================================================
api_v1_router.include_router(
    businesses.router,
    prefix="/businesses",
    tags=["Businesses"]
)

# ============================================================================
# BOOKINGS
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    prefix="/appointments",
    tags=["Appointments"]
)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "authentication": "JWT Bearer token required (client or business actor)",
        "endpoints": {
            "businesses": "/api/v1/businesses",
            "availability": "/api/v1/businesses/{business_id}/availability",
            "appointments": "/api/v1/appointments",
        }
    }
