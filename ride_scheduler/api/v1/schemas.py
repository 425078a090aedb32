"""
Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import date, datetime

from ride_scheduler.engine.entities import (
    AdminActionType, Coordinates, DriverInfo, GroupBy, Location, RideDraft,
    RidePriority, RidePurpose, RideStatus, RideType, Weekday
)

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


# Itinerary schemas
class CoordinatesSchema(CamelModel):
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")

    def to_entity(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


class LocationSchema(CamelModel):
    address: str = Field(..., min_length=1, description="Street address")
    coordinates: CoordinatesSchema
    instructions: Optional[str] = Field(None, description="Additional instructions")

    def to_entity(self) -> Location:
        return Location(
            address=self.address.strip(),
            coordinates=self.coordinates.to_entity(),
            instructions=self.instructions.strip() if self.instructions else None
        )


class DriverSchema(CamelModel):
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    phone_number: Optional[str] = None

    def to_entity(self) -> DriverInfo:
        return DriverInfo(
            driver_id=self.driver_id,
            driver_name=self.driver_name,
            vehicle_number=self.vehicle_number,
            phone_number=self.phone_number
        )


# Ride schemas
class RideCreate(CamelModel):
    pickup_location: LocationSchema
    drop_location: LocationSchema
    ride_date: datetime = Field(..., description="Scheduled ride date and time")
    pickup_time: str = Field(..., pattern=TIME_PATTERN, description="Pickup time in HH:MM format")
    drop_time: str = Field(..., pattern=TIME_PATTERN, description="Drop time in HH:MM format")
    ride_type: RideType = Field(RideType.ONE_TIME, description="Type of ride")
    recurring_days: List[Weekday] = Field(default_factory=list, description="Days for recurring rides")
    purpose: RidePurpose = Field(RidePurpose.OFFICE, description="Purpose of the ride")
    priority: RidePriority = Field(RidePriority.MEDIUM, description="Ride priority level")
    notes: Optional[str] = Field(None, description="Additional notes for the ride")

    def to_draft(self) -> RideDraft:
        return RideDraft(
            pickup_location=self.pickup_location.to_entity(),
            drop_location=self.drop_location.to_entity(),
            ride_date=self.ride_date,
            pickup_time=self.pickup_time,
            drop_time=self.drop_time,
            ride_type=self.ride_type,
            recurring_days=tuple(self.recurring_days),
            purpose=self.purpose,
            priority=self.priority,
            notes=self.notes
        )


class RideResponse(CamelModel):
    id: int
    requester_id: str
    pickup_location: LocationSchema
    drop_location: LocationSchema
    ride_date: datetime
    pickup_time: str
    drop_time: str
    ride_type: RideType
    recurring_days: List[Weekday]
    purpose: RidePurpose
    priority: RidePriority
    status: RideStatus
    estimated_distance: float
    estimated_duration: int
    estimated_fare: float
    actual_fare: float
    driver: Optional[DriverSchema]
    notes: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_by: Optional[str]
    cancelled_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class RidePage(CamelModel):
    items: List[RideResponse]
    total: int
    page: int
    limit: int
    pages: int


class RideStatusUpdate(CamelModel):
    status: RideStatus = Field(..., description="New ride status (approved or rejected)")
    reason: Optional[str] = Field(None, description="Reason for status change")


class RideCancel(CamelModel):
    reason: Optional[str] = Field(None, description="Reason for cancellation")


class RideComplete(CamelModel):
    reason: Optional[str] = None


# Fare preview
class FareEstimateRequest(CamelModel):
    pickup: CoordinatesSchema
    drop: CoordinatesSchema


class FareEstimateResponse(CamelModel):
    distance_km: float
    duration_min: int
    fare: float


# Admin action schemas
class AdminActionResponse(CamelModel):
    id: int
    ride_id: int
    admin_id: str
    action: AdminActionType
    previous_status: Optional[RideStatus]
    new_status: Optional[RideStatus]
    reason: Optional[str]
    metadata: Dict[str, Any]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime


# Analytics schemas
class AnalyticsBucketResponse(CamelModel):
    key: str
    count: int
    total_estimated_fare: float
    total_actual_fare: float


class AnalyticsResponse(CamelModel):
    group_by: GroupBy
    start_date: date
    end_date: date
    buckets: List[AnalyticsBucketResponse]


# Error schemas
class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
