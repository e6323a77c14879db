"""
Route database model.

Routes are authored by the route-management tool; the tracking core only
reads them for speed limits, geofences and driver assignment.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from bus_tracking.app.db.session import Base


class Route(Base):
    """
    Bus route.
    
    stops:    [{"lat": .., "lng": .., "name": .., "order": ..}, ...]
    geofence: {"type": "polygon", "coords": [[lat, lng], ...]}
              {"type": "circle", "coords": {"center": [lat, lng], "radius": meters}}
    """
    __tablename__ = "routes"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    
    stops = Column(JSON, nullable=False, default=list)
    geofence = Column(JSON, nullable=True)
    
    # km/h; falls back to settings.default_speed_limit_kmh when unset
    speed_limit = Column(Float, nullable=True)
    
    assigned_driver_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Route(id={self.id}, name='{self.name}')>"
