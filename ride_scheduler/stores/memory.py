"""
In-process stores.

A single ``asyncio.Lock`` per store serializes writes, which gives
``update_if_status`` the same compare-and-set guarantee a database
conditional update does. Records are copied in and out so callers never
hold a reference into the store.
"""

import asyncio
import itertools
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ride_scheduler.engine.entities import (
    AdminAction, DateRange, Page, Ride, RideFilter, RideStatus
)
from ride_scheduler.stores.base import AdminActionStore, RideStore


def _matches(ride: Ride, criteria: RideFilter) -> bool:
    if criteria.requester_id is not None and ride.requester_id != criteria.requester_id:
        return False
    if criteria.status is not None and ride.status != criteria.status:
        return False
    if criteria.ride_type is not None and ride.ride_type != criteria.ride_type:
        return False
    if criteria.purpose is not None and ride.purpose != criteria.purpose:
        return False
    if criteria.date_range is not None:
        lower, upper = criteria.date_range.bounds()
        if lower is not None and ride.ride_date < lower:
            return False
        if upper is not None and ride.ride_date >= upper:
            return False
    return True


class InMemoryRideStore(RideStore):

    def __init__(self):
        self._rides: Dict[int, Ride] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def add(self, ride: Ride) -> Ride:
        async with self._lock:
            stored = replace(ride, id=next(self._ids))
            self._rides[stored.id] = stored
            return replace(stored)

    async def get(self, ride_id: int) -> Optional[Ride]:
        ride = self._rides.get(ride_id)
        return replace(ride) if ride else None

    async def update_if_status(
        self,
        ride_id: int,
        expected_status: RideStatus,
        changes: Dict[str, Any]
    ) -> Optional[Ride]:
        async with self._lock:
            current = self._rides.get(ride_id)
            if current is None or current.status != expected_status:
                return None

            updated = replace(current, **changes)
            self._rides[ride_id] = updated
            return replace(updated)

    async def list(self, criteria: RideFilter, page: int, limit: int) -> Page:
        matching = [ride for ride in self._rides.values() if _matches(ride, criteria)]
        matching.sort(key=lambda r: (r.created_at, r.id), reverse=True)

        offset = (page - 1) * limit
        items = [replace(ride) for ride in matching[offset:offset + limit]]
        return Page(items=items, total=len(matching), page=page, limit=limit)

    async def in_date_range(self, date_range: DateRange) -> List[Ride]:
        if date_range.is_empty:
            return []
        criteria = RideFilter(date_range=date_range)
        return [replace(ride) for ride in self._rides.values() if _matches(ride, criteria)]


class InMemoryAdminActionStore(AdminActionStore):

    def __init__(self):
        self._actions: List[AdminAction] = []
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def append(self, action: AdminAction) -> AdminAction:
        async with self._lock:
            stored = replace(
                action,
                id=next(self._ids),
                metadata=dict(action.metadata),
                created_at=action.created_at or datetime.now(timezone.utc)
            )
            self._actions.append(stored)
            return replace(stored, metadata=dict(stored.metadata))

    def _newest_first(self, actions: List[AdminAction]) -> List[AdminAction]:
        ordered = sorted(actions, key=lambda a: (a.created_at, a.id), reverse=True)
        return [replace(a, metadata=dict(a.metadata)) for a in ordered]

    async def list_by_ride(self, ride_id: int) -> List[AdminAction]:
        return self._newest_first([a for a in self._actions if a.ride_id == ride_id])

    async def list_by_admin(self, admin_id: str, limit: int) -> List[AdminAction]:
        return self._newest_first([a for a in self._actions if a.admin_id == admin_id])[:limit]
