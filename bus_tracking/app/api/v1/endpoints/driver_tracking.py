"""
Driver Location Tracking API Endpoints.

Drivers stream GPS samples from the bus, sync samples captured offline and
stop tracking at the end of a shift.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.db.session import get_db
from bus_tracking.app.schemas.location import (
    LocationUpdate, BulkLocationSync, BulkSyncResult, DriverLocationResponse
)
from bus_tracking.app.core.guards import require_driver
from bus_tracking.app.core.dependencies import get_ingestion_service
from bus_tracking.app.services.location_ingestion import LocationIngestionService

router = APIRouter(prefix="/driver", tags=["Driver - Location Tracking"])


@router.post("/location", response_model=DriverLocationResponse, status_code=status.HTTP_201_CREATED)
async def submit_location(
    location: LocationUpdate,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    ingestion: LocationIngestionService = Depends(get_ingestion_service)
):
    """
    Submit one GPS sample (Driver only).
    
    The sample becomes the driver's current location and, while a trip is
    ongoing, is appended to the trip and checked for overspeed and
    out-of-route conditions.
    """
    sample = await ingestion.submit_location(db, current_user["user_id"], location)
    return DriverLocationResponse.model_validate(sample)


@router.post("/location/bulk", response_model=BulkSyncResult)
async def sync_locations(
    payload: BulkLocationSync,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    ingestion: LocationIngestionService = Depends(get_ingestion_service)
):
    """
    Sync samples captured while offline (Driver only).
    
    Samples are stored in the order given. Invalid samples are reported by
    index and do not block the others.
    """
    return await ingestion.submit_bulk(db, current_user["user_id"], payload.locations)


@router.post("/location/stop")
async def stop_tracking(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    ingestion: LocationIngestionService = Depends(get_ingestion_service)
):
    """Stop location tracking (Driver only)."""
    latest = await ingestion.stop_tracking(db, current_user["user_id"], current_user.get("sub"))
    return {
        "message": "Location tracking stopped",
        "location": DriverLocationResponse.model_validate(latest) if latest else None
    }
