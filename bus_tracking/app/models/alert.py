"""
Alert database model.

Alerts are raised by the detection engine and acknowledged by operators.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, Enum, Index
from sqlalchemy.sql import func
from bus_tracking.app.db.session import Base
from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity


class Alert(Base):
    """
    Safety alert.
    
    speed/speed_limit are set for overspeed alerts,
    distance_from_route for out_of_route alerts.
    """
    __tablename__ = "alerts"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    type = Column(Enum(AlertType), nullable=False, index=True)
    
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=True, index=True)
    route_id = Column(Integer, ForeignKey('routes.id'), nullable=True)
    
    # Where the driver was when the condition was detected
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    
    speed = Column(Float, nullable=True)
    speed_limit = Column(Float, nullable=True)
    distance_from_route = Column(Float, nullable=True)  # meters
    
    message = Column(String(500), nullable=False)
    severity = Column(Enum(AlertSeverity), default=AlertSeverity.MEDIUM, nullable=False)
    
    # Acknowledgement
    acknowledged = Column(Boolean, default=False, nullable=False)
    acknowledged_by_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    __table_args__ = (
        Index('ix_alerts_type_acknowledged', 'type', 'acknowledged'),
    )
    
    def __repr__(self):
        return f"<Alert(id={self.id}, type='{self.type.value}', severity='{self.severity.value}')>"
