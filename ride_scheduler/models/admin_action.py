"""
Admin action audit table mapping.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Index
from sqlalchemy.sql import func
from ride_scheduler.core.database import Base
from ride_scheduler.engine.entities import AdminActionType, RideStatus
from ride_scheduler.models.ride import enum_column


class AdminActionRecord(Base):
    """Append-only; the store never issues UPDATE or DELETE against it."""
    
    __tablename__ = "admin_actions"
    
    id = Column(Integer, primary_key=True, index=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False, index=True)
    admin_id = Column(String, nullable=False, index=True)
    action = Column(enum_column(AdminActionType, "admin_action_type"), nullable=False)
    previous_status = Column(enum_column(RideStatus, "ride_status"), nullable=True)
    new_status = Column(enum_column(RideStatus, "ride_status"), nullable=True)
    reason = Column(String, nullable=True)
    action_metadata = Column("metadata", JSON, nullable=False, default=dict)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    __table_args__ = (
        Index("ix_admin_actions_ride_created", "ride_id", "created_at"),
        Index("ix_admin_actions_admin_created", "admin_id", "created_at"),
    )
    
    def __repr__(self):
        return f"<AdminActionRecord(id={self.id}, action={self.action}, ride_id={self.ride_id})>"
