"""
Live Tracking API Endpoints.

Operators watch the current position of every driver, a driver's recent
history and the trips with their trails.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.db.session import get_db
from bus_tracking.app.core.exceptions import NotFoundError
from bus_tracking.app.core.guards import require_admin
from bus_tracking.app.core.dependencies import get_ingestion_service, get_trip_manager
from bus_tracking.app.models.trip_enums import TripStatus
from bus_tracking.app.schemas.location import DriverLocationResponse, DriverLocationHistoryResponse
from bus_tracking.app.schemas.trip import (
    TripResponse, TripDetailResponse, TripListResponse, TripPointResponse
)
from bus_tracking.app.services.location_ingestion import LocationIngestionService
from bus_tracking.app.services.trip_lifecycle import TripLifecycleManager

router = APIRouter(prefix="/admin", tags=["Admin - Live Tracking"])


@router.get("/locations/latest", response_model=List[DriverLocationResponse])
async def get_latest_locations(
    tracking_only: bool = Query(False, description="Only drivers still tracking"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    ingestion: LocationIngestionService = Depends(get_ingestion_service)
):
    """Most recent location of every driver (Admin only)."""
    locations = await ingestion.get_latest_locations(db, tracking_only=tracking_only)
    return [DriverLocationResponse.model_validate(loc) for loc in locations]


@router.get("/drivers/{driver_id}/locations", response_model=DriverLocationHistoryResponse)
async def get_driver_locations(
    driver_id: int = Path(..., description="Driver ID"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    ingestion: LocationIngestionService = Depends(get_ingestion_service)
):
    """Latest location and recent history of one driver (Admin only)."""
    history = await ingestion.get_driver_history(db, driver_id, limit)
    if not history:
        raise NotFoundError("Location", message=f"No location data for driver {driver_id}")

    return DriverLocationHistoryResponse(
        latest=DriverLocationResponse.model_validate(history[0]),
        history=[DriverLocationResponse.model_validate(loc) for loc in history]
    )


@router.get("/trips", response_model=TripListResponse)
async def list_trips(
    driver_id: Optional[int] = Query(None),
    route_id: Optional[int] = Query(None),
    status: Optional[TripStatus] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Trips started at or after"),
    end_date: Optional[datetime] = Query(None, description="Trips started at or before"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """List trips with filters, most recent first (Admin only)."""
    items, total = await trips.list_trips(
        db,
        driver_id=driver_id,
        route_id=route_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size
    )
    return TripListResponse(
        trips=[TripResponse.model_validate(trip) for trip in items],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/trips/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """Trip with its full trail (Admin only)."""
    trip = await trips.get_trip(db, trip_id)
    points = await trips.get_trip_points(db, trip_id)

    return TripDetailResponse(
        **TripResponse.model_validate(trip).model_dump(),
        points=[TripPointResponse.model_validate(point) for point in points]
    )


@router.get("/trips/{trip_id}/locations", response_model=List[TripPointResponse])
async def get_trip_locations(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    trips: TripLifecycleManager = Depends(get_trip_manager)
):
    """Trail of a trip in recording order (Admin only)."""
    await trips.get_trip(db, trip_id)
    points = await trips.get_trip_points(db, trip_id)
    return [TripPointResponse.model_validate(point) for point in points]
