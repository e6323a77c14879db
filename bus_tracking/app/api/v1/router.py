"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bus_tracking.app.api.v1.endpoints import (
    driver_tracking, driver_trips, live_tracking, alerts, public
)

router = APIRouter()

# Driver endpoints
router.include_router(driver_tracking.router)
router.include_router(driver_trips.router)

# Admin endpoints
router.include_router(live_tracking.router)
router.include_router(alerts.router)

# Public endpoints
router.include_router(public.router)
