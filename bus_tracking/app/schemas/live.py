"""
Public live bus feed schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class StopEta(BaseModel):
    """Straight-line distance and ETA from a bus to one stop of its route."""
    stop_name: Optional[str]
    lat: float
    lng: float
    distance: int  # meters
    eta_minutes: Optional[int]  # None when the bus is not moving


class LiveBusResponse(BaseModel):
    """Current position of one tracking bus."""
    bus_id: Optional[str]
    route_id: Optional[int]
    route_name: Optional[str]
    lat: float
    lng: float
    speed: Optional[float]
    heading: Optional[float]
    updated_at: datetime
    eta_to_stops: List[StopEta] = []
