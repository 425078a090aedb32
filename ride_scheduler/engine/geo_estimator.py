"""
Straight-line fare and duration estimation.

Distance is the haversine great-circle distance between pickup and drop;
duration assumes a constant average city speed; the fare is a base charge
plus per-km and per-minute components.
"""

import math
from typing import Optional

from ride_scheduler.engine.entities import Coordinates, FareEstimate

EARTH_RADIUS_KM = 6371.0
DEFAULT_BASE_FARE = 50.0
DEFAULT_COST_PER_KM = 15.0
DEFAULT_COST_PER_MINUTE = 2.0
DEFAULT_AVERAGE_SPEED_KMH = 30.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points using Haversine formula."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) *
         math.sin(dlon / 2) ** 2)
    
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


class GeoEstimator:
    """Pure pickup/drop -> distance, duration, fare estimator."""
    
    def __init__(
        self,
        base_fare: float = DEFAULT_BASE_FARE,
        cost_per_km: float = DEFAULT_COST_PER_KM,
        cost_per_minute: float = DEFAULT_COST_PER_MINUTE,
        average_speed_kmh: float = DEFAULT_AVERAGE_SPEED_KMH
    ):
        self.base_fare = base_fare
        self.cost_per_km = cost_per_km
        self.cost_per_minute = cost_per_minute
        self.average_speed_kmh = average_speed_kmh
    
    @classmethod
    def from_settings(cls, settings) -> "GeoEstimator":
        return cls(
            base_fare=settings.BASE_FARE,
            cost_per_km=settings.COST_PER_KM,
            cost_per_minute=settings.COST_PER_MINUTE,
            average_speed_kmh=settings.AVERAGE_SPEED_KMH
        )
    
    def distance(self, pickup: Coordinates, drop: Coordinates) -> float:
        if pickup == drop:
            return 0.0
        return calculate_distance(
            pickup.latitude, pickup.longitude,
            drop.latitude, drop.longitude
        )
    
    def duration(self, distance_km: float) -> int:
        """Whole minutes at the average speed, rounded up."""
        return math.ceil(distance_km / self.average_speed_kmh * 60)
    
    def fare(self, distance_km: float, duration_min: Optional[int] = None) -> float:
        if duration_min is None:
            duration_min = self.duration(distance_km)
        return (
            self.base_fare +
            distance_km * self.cost_per_km +
            duration_min * self.cost_per_minute
        )
    
    def estimate(self, pickup: Coordinates, drop: Coordinates) -> FareEstimate:
        distance_km = self.distance(pickup, drop)
        duration_min = self.duration(distance_km)
        return FareEstimate(
            distance_km=distance_km,
            duration_min=duration_min,
            fare=self.fare(distance_km, duration_min)
        )
