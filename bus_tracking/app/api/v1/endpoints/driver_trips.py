"""
Driver Trip API Endpoints.

Drivers start a trip on a route, end it, and see their current and recent
trips.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.db.session import get_db
from bus_tracking.app.schemas.trip import TripStartRequest, TripResponse
from bus_tracking.app.core.guards import require_driver
from bus_tracking.app.core.dependencies import get_trip_manager
from bus_tracking.app.services.trip_lifecycle import TripLifecycleManager

router = APIRouter(prefix="/driver/trips", tags=["Driver - Trips"])


@router.post("/start", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def start_trip(
    request: TripStartRequest,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """
    Start a trip (Driver only).
    
    Validates:
    - No other ONGOING trip for the driver (409)
    - Route exists (404)
    - Route is not assigned to another driver (403)
    - Driver has reported a location (400)
    """
    trip = await trips.start_trip(db, current_user["user_id"], request.route_id, request.bus_id)
    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/end", response_model=TripResponse)
async def end_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """End the driver's ongoing trip and store its distance and speed summary."""
    trip = await trips.end_trip(db, trip_id, current_user["user_id"])
    return TripResponse.model_validate(trip)


@router.get("/ongoing", response_model=Optional[TripResponse])
async def get_ongoing_trip(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """Current trip of the driver, null when none is ongoing."""
    trip = await trips.get_ongoing_trip(db, current_user["user_id"])
    return TripResponse.model_validate(trip) if trip else None


@router.get("/mine", response_model=List[TripResponse])
async def get_my_trips(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """Last 10 trips of the driver."""
    driver_trips = await trips.list_driver_trips(db, current_user["user_id"])
    return [TripResponse.model_validate(trip) for trip in driver_trips]
