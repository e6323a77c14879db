"""
Trip database model.

A trip is one run of a bus along a route, opened and closed by its driver.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, Index, text
from sqlalchemy.sql import func
from bus_tracking.app.db.session import Base
from bus_tracking.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.
    
    Summary fields (distance_meters, avg_speed, max_speed) are filled in
    when the trip is completed.
    """
    __tablename__ = "trips"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=False, index=True)
    bus_id = Column(String(50), nullable=True)
    
    status = Column(Enum(TripStatus), default=TripStatus.ONGOING, nullable=False, index=True)
    
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    
    start_lat = Column(Float, nullable=False)
    start_lng = Column(Float, nullable=False)
    end_lat = Column(Float, nullable=True)
    end_lng = Column(Float, nullable=True)
    
    # Summary
    distance_meters = Column(Float, default=0, nullable=False)
    avg_speed = Column(Float, nullable=True)  # km/h
    max_speed = Column(Float, nullable=True)  # km/h
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    # Unique constraint: only one ONGOING trip per driver
    __table_args__ = (
        Index('ix_trips_one_ongoing_per_driver', 'driver_id', unique=True,
              postgresql_where=text("status = 'ONGOING'"),
              sqlite_where=text("status = 'ONGOING'")),
    )
    
    def __repr__(self):
        return f"<Trip(id={self.id}, driver_id={self.driver_id}, status='{self.status.value}')>"
