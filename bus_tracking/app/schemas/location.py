"""
Location tracking schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, List, Optional


class LocationUpdate(BaseModel):
    """Schema for one GPS sample submitted by a driver device."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    speed: Optional[float] = Field(None, ge=0)  # km/h
    heading: Optional[float] = Field(None, ge=0, lt=360)
    accuracy_meters: Optional[float] = Field(None, ge=0)
    recorded_at: Optional[datetime] = None  # Capture time; server time if omitted


class BulkLocationSync(BaseModel):
    """
    Samples queued on the device while offline, in capture order.
    
    Items are validated one by one by the ingestion service so a single bad
    sample, even one that is not an object, does not reject the whole batch.
    The batch size limit is enforced there as well (bulk_sync_max_items).
    """
    locations: List[Any] = Field(..., min_length=1)


class BulkSyncError(BaseModel):
    index: int
    message: str


class BulkSyncResult(BaseModel):
    """Outcome of a bulk sync."""
    saved: int
    failed: int
    errors: List[BulkSyncError] = []


class DriverLocationResponse(BaseModel):
    """GPS sample response."""
    id: int
    driver_id: int
    bus_number: Optional[str]
    latitude: float
    longitude: float
    speed: Optional[float]
    heading: Optional[float]
    accuracy_meters: Optional[float]
    is_tracking: bool
    recorded_at: datetime
    
    class Config:
        from_attributes = True


class DriverLocationHistoryResponse(BaseModel):
    """Latest sample plus recent history for one driver."""
    latest: DriverLocationResponse
    history: List[DriverLocationResponse]
