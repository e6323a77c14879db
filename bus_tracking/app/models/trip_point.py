"""
Trip Point database model.

Stores the GPS breadcrumb trail of a trip.
"""

from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime
from bus_tracking.app.db.session import Base


class TripPoint(Base):
    """
    One point of a trip's trail. Trail order is insertion order (id).
    """
    __tablename__ = "trip_points"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=False, index=True)
    
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=True)  # km/h
    heading = Column(Float, nullable=True)
    accuracy_meters = Column(Float, nullable=True)
    
    recorded_at = Column(DateTime(timezone=True), nullable=False)
    
    def __repr__(self):
        return f"<TripPoint(trip_id={self.trip_id}, lat={self.latitude}, lng={self.longitude})>"
