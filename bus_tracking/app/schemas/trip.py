"""
Trip schemas.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from bus_tracking.app.models.trip_enums import TripStatus


class TripStartRequest(BaseModel):
    """Body of a trip start request."""
    route_id: int
    bus_id: Optional[str] = None


class TripPointResponse(BaseModel):
    """One point of a trip trail."""
    id: int
    trip_id: int
    latitude: float
    longitude: float
    speed: Optional[float]
    heading: Optional[float]
    accuracy_meters: Optional[float]
    recorded_at: datetime
    
    class Config:
        from_attributes = True


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    driver_id: int
    route_id: int
    bus_id: Optional[str]
    status: TripStatus
    start_time: datetime
    end_time: Optional[datetime]
    start_lat: float
    start_lng: float
    end_lat: Optional[float]
    end_lng: Optional[float]
    distance_meters: float
    avg_speed: Optional[float]
    max_speed: Optional[float]
    
    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Trip with its full trail."""
    points: List[TripPointResponse] = []


class TripListResponse(BaseModel):
    """Schema for paginated trip list."""
    trips: List[TripResponse]
    total: int
    page: int
    page_size: int
