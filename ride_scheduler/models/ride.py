"""
Ride table mapping.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, JSON, Text, Index
from sqlalchemy.sql import func
from ride_scheduler.core.database import Base
from ride_scheduler.engine.entities import RideStatus, RideType, RidePurpose, RidePriority


def enum_column(enum_cls, name: str) -> Enum:
    """Persist enum values ("one-time") rather than member names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True
    )


class RideRecord(Base):
    """Ride row; converted to and from ``engine.entities.Ride`` by the store."""
    
    __tablename__ = "rides"
    
    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(String, nullable=False, index=True)
    
    # Pickup
    pickup_address = Column(String, nullable=False)
    pickup_latitude = Column(Float, nullable=False)
    pickup_longitude = Column(Float, nullable=False)
    pickup_instructions = Column(String, nullable=True)
    
    # Drop
    drop_address = Column(String, nullable=False)
    drop_latitude = Column(Float, nullable=False)
    drop_longitude = Column(Float, nullable=False)
    drop_instructions = Column(String, nullable=True)
    
    # Scheduling
    ride_date = Column(DateTime(timezone=True), nullable=False, index=True)
    pickup_time = Column(String(5), nullable=False)
    drop_time = Column(String(5), nullable=False)
    ride_type = Column(enum_column(RideType, "ride_type"), nullable=False, default=RideType.ONE_TIME)
    recurring_days = Column(JSON, nullable=False, default=list)
    purpose = Column(enum_column(RidePurpose, "ride_purpose"), nullable=False, default=RidePurpose.OFFICE)
    priority = Column(enum_column(RidePriority, "ride_priority"), nullable=False, default=RidePriority.MEDIUM)
    status = Column(enum_column(RideStatus, "ride_status"), nullable=False, default=RideStatus.PENDING, index=True)
    
    # Economics
    estimated_distance = Column(Float, nullable=False, default=0.0)
    estimated_duration = Column(Integer, nullable=False, default=0)
    estimated_fare = Column(Float, nullable=False, default=0.0)
    actual_fare = Column(Float, nullable=False, default=0.0)
    
    # Driver
    driver_id = Column(String, nullable=True)
    driver_name = Column(String, nullable=True)
    vehicle_number = Column(String, nullable=True)
    driver_phone = Column(String, nullable=True)
    
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(String, nullable=True)
    cancelled_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    __table_args__ = (
        Index("ix_rides_requester_status", "requester_id", "status"),
        Index("ix_rides_date_status", "ride_date", "status"),
    )
    
    def __repr__(self):
        return f"<RideRecord(id={self.id}, status={self.status}, requester_id={self.requester_id})>"
