"""
Alert schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity


class AlertResponse(BaseModel):
    id: int
    type: AlertType
    driver_id: int
    trip_id: Optional[int]
    route_id: Optional[int]
    latitude: float
    longitude: float
    speed: Optional[float]
    speed_limit: Optional[float]
    distance_from_route: Optional[float]
    message: str
    severity: AlertSeverity
    acknowledged: bool
    acknowledged_by_id: Optional[int]
    acknowledged_at: Optional[datetime]
    created_at: Optional[datetime]
    
    class Config:
        from_attributes = True


class AlertListResponse(BaseModel):
    alerts: List[AlertResponse]
    total: int
    page: int
    page_size: int


class UnacknowledgedCountResponse(BaseModel):
    count: int
