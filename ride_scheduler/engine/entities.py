"""
Plain data records for rides and the admin audit trail.

These carry no behaviour beyond small derived properties; every status
change goes through ``RideStateMachine`` and every write through a store.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RideStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RideType(str, Enum):
    DAILY = "daily"
    ONE_TIME = "one-time"
    RECURRING = "recurring"


class RidePurpose(str, Enum):
    OFFICE = "office"
    MEETING = "meeting"
    CLIENT_VISIT = "client-visit"
    AIRPORT = "airport"
    OTHER = "other"


class RidePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class AdminActionType(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    MODIFY = "modify"
    CANCEL = "cancel"
    ASSIGN_DRIVER = "assign_driver"


class GroupBy(str, Enum):
    DATE = "date"
    STATUS = "status"
    PURPOSE = "purpose"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Location:
    """One end of an itinerary."""
    address: str
    coordinates: Coordinates
    instructions: Optional[str] = None


@dataclass(frozen=True)
class DriverInfo:
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class FareEstimate:
    distance_km: float
    duration_min: int
    fare: float


@dataclass
class RideDraft:
    """Everything a requester supplies when asking for a ride."""
    pickup_location: Location
    drop_location: Location
    ride_date: datetime
    pickup_time: str
    drop_time: str
    ride_type: RideType = RideType.ONE_TIME
    recurring_days: Tuple[Weekday, ...] = ()
    purpose: RidePurpose = RidePurpose.OFFICE
    priority: RidePriority = RidePriority.MEDIUM
    notes: Optional[str] = None


@dataclass
class Ride:
    """A scheduled ride as persisted by a ``RideStore``."""
    requester_id: str
    pickup_location: Location
    drop_location: Location
    ride_date: datetime
    pickup_time: str
    drop_time: str
    ride_type: RideType
    purpose: RidePurpose
    priority: RidePriority
    estimated_distance: float
    estimated_duration: int
    estimated_fare: float
    created_at: datetime
    updated_at: datetime
    recurring_days: Tuple[Weekday, ...] = ()
    actual_fare: float = 0.0
    status: RideStatus = RideStatus.PENDING
    driver: Optional[DriverInfo] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    id: Optional[int] = None

    def copy(self, **changes) -> "Ride":
        return replace(self, **changes)


@dataclass
class AdminAction:
    """One immutable audit entry for an administrative transition."""
    ride_id: int
    admin_id: str
    action: AdminActionType
    previous_status: Optional[RideStatus] = None
    new_status: Optional[RideStatus] = None
    reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class DateRange:
    """Calendar days ``start``..``end``, both inclusive; ``None`` leaves a side open."""
    start: Optional[date]
    end: Optional[date]

    @property
    def is_empty(self) -> bool:
        return self.start is not None and self.end is not None and self.start > self.end

    def bounds(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """UTC instants [start of first day, start of the day after the last)."""
        lower = upper = None
        if self.start is not None:
            lower = datetime.combine(self.start, time.min, tzinfo=timezone.utc)
        if self.end is not None:
            upper = datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)
        return lower, upper


@dataclass(frozen=True)
class AnalyticsBucket:
    key: str
    count: int
    total_estimated_fare: float
    total_actual_fare: float


@dataclass
class RideFilter:
    """Listing criteria; ``None`` means "do not filter on this field"."""
    requester_id: Optional[str] = None
    status: Optional[RideStatus] = None
    ride_type: Optional[RideType] = None
    purpose: Optional[RidePurpose] = None
    date_range: Optional[DateRange] = None


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0
