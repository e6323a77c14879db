"""
Driver Location database model.

Every GPS sample a driver submits is kept; the current position of a driver
is the sample with the latest recorded_at.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, Index
from sqlalchemy.sql import func
from bus_tracking.app.db.session import Base


class DriverLocation(Base):
    """
    One GPS fix reported by a driver device.
    
    Samples are never overwritten; a newer sample supersedes older ones.
    """
    __tablename__ = "driver_locations"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    bus_number = Column(String(50), nullable=True)
    
    # GPS fix
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=True)  # km/h
    heading = Column(Float, nullable=True)  # degrees [0, 360)
    accuracy_meters = Column(Float, nullable=True)
    
    is_tracking = Column(Boolean, default=True, nullable=False)
    
    # Timing
    recorded_at = Column(DateTime(timezone=True), nullable=False)  # When GPS was captured
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)  # When inserted to DB
    
    __table_args__ = (
        Index('ix_driver_locations_driver_recorded', 'driver_id', 'recorded_at'),
    )
    
    def __repr__(self):
        return f"<DriverLocation(driver_id={self.driver_id}, lat={self.latitude}, lng={self.longitude})>"
