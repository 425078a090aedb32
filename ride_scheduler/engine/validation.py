"""
Re-validation of itinerary and schedule fields inside the core.

Request schemas normally reject malformed input first; these checks keep
the engine safe when it is driven directly.
"""

import re
from dataclasses import replace
from datetime import timezone
from typing import Iterable, Tuple

from ride_scheduler.core.exceptions import ValidationFailureError
from ride_scheduler.engine.entities import Location, RideDraft, RideType, Weekday

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

_WEEKDAY_ORDER = list(Weekday)


def validate_location(location: Location, label: str) -> None:
    if not location.address or not location.address.strip():
        raise ValidationFailureError(f"{label} address is required")
    
    lat = location.coordinates.latitude
    lon = location.coordinates.longitude
    if not -90 <= lat <= 90:
        raise ValidationFailureError(
            f"{label} latitude must be between -90 and 90",
            {"latitude": lat}
        )
    if not -180 <= lon <= 180:
        raise ValidationFailureError(
            f"{label} longitude must be between -180 and 180",
            {"longitude": lon}
        )


def validate_time(value: str, label: str) -> None:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationFailureError(
            f"{label} must be in HH:MM format",
            {label: value}
        )


def normalize_recurring_days(ride_type: RideType, days: Iterable) -> Tuple[Weekday, ...]:
    """Deduplicate and order weekday names; only recurring rides keep them."""
    if ride_type != RideType.RECURRING:
        return ()
    
    try:
        unique = {Weekday(day) for day in days}
    except ValueError as e:
        raise ValidationFailureError(f"Invalid recurring day: {e}")
    
    if not unique:
        raise ValidationFailureError("Recurring rides need at least one recurring day")
    
    return tuple(day for day in _WEEKDAY_ORDER if day in unique)


def validate_draft(draft: RideDraft) -> RideDraft:
    """Check a draft and return a normalized copy; the argument is left untouched."""
    validate_location(draft.pickup_location, "Pickup")
    validate_location(draft.drop_location, "Drop")
    validate_time(draft.pickup_time, "pickupTime")
    validate_time(draft.drop_time, "dropTime")
    
    ride_date = draft.ride_date
    # Naive ride dates are taken to be UTC
    if ride_date.tzinfo is None:
        ride_date = ride_date.replace(tzinfo=timezone.utc)
    
    return replace(
        draft,
        ride_date=ride_date,
        recurring_days=normalize_recurring_days(draft.ride_type, draft.recurring_days)
    )
