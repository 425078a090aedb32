"""
Ride analytics grouped by calendar day, status or purpose.
"""

import logging
from datetime import timezone
from typing import Callable, Dict, Iterable, List

from ride_scheduler.engine.entities import AnalyticsBucket, DateRange, GroupBy, Ride
from ride_scheduler.stores.base import RideStore

logger = logging.getLogger(__name__)


def _day_key(ride: Ride) -> str:
    return ride.ride_date.astimezone(timezone.utc).date().isoformat()


KEY_FUNCTIONS: Dict[GroupBy, Callable[[Ride], str]] = {
    GroupBy.DATE: _day_key,
    GroupBy.STATUS: lambda ride: ride.status.value,
    GroupBy.PURPOSE: lambda ride: ride.purpose.value,
}


def summarize(rides: Iterable[Ride], group_by: GroupBy) -> List[AnalyticsBucket]:
    """Bucket rides by key; keys with no rides are simply absent.
    
    Buckets come back ordered by key, which for ``date`` grouping is
    chronological (ISO dates).
    """
    key_for = KEY_FUNCTIONS[GroupBy(group_by)]
    totals: Dict[str, List[float]] = {}
    
    for ride in rides:
        bucket = totals.setdefault(key_for(ride), [0, 0.0, 0.0])
        bucket[0] += 1
        bucket[1] += ride.estimated_fare
        bucket[2] += ride.actual_fare
    
    return [
        AnalyticsBucket(
            key=key,
            count=int(count),
            total_estimated_fare=estimated,
            total_actual_fare=actual
        )
        for key, (count, estimated, actual) in sorted(totals.items())
    ]


class AnalyticsAggregator:
    """Read-only aggregation over the ride collection."""
    
    def __init__(self, ride_store: RideStore):
        self.ride_store = ride_store
    
    async def aggregate(self, date_range: DateRange, group_by: GroupBy) -> List[AnalyticsBucket]:
        if date_range.is_empty:
            return []
        
        rides = await self.ride_store.in_date_range(date_range)
        buckets = summarize(rides, group_by)
        
        logger.info(
            f"Analytics computed: {len(rides)} rides in {len(buckets)} buckets "
            f"({date_range.start} to {date_range.end}, by {GroupBy(group_by).value})"
        )
        return buckets
