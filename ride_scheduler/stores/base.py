"""
Storage ports the ride engine depends on.

Implementations must make ``update_if_status`` a single atomic
read-modify-write keyed by ride id and the status the caller last saw:
of two racing updates from the same status, at most one may succeed.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ride_scheduler.engine.entities import (
    AdminAction, DateRange, Page, Ride, RideFilter, RideStatus
)


class RideStore(ABC):
    
    @abstractmethod
    async def add(self, ride: Ride) -> Ride:
        """Persist a fully populated ride and return it with its id."""
    
    @abstractmethod
    async def get(self, ride_id: int) -> Optional[Ride]:
        ...
    
    @abstractmethod
    async def update_if_status(
        self,
        ride_id: int,
        expected_status: RideStatus,
        changes: Dict[str, Any]
    ) -> Optional[Ride]:
        """Apply ``changes`` only if the ride is still in ``expected_status``.
        
        Returns the updated ride, or None when the ride is missing or its
        status moved on.
        """
    
    @abstractmethod
    async def list(self, criteria: RideFilter, page: int, limit: int) -> Page:
        """Matching rides, newest ``created_at`` first."""
    
    @abstractmethod
    async def in_date_range(self, date_range: DateRange) -> List[Ride]:
        """Rides whose ``ride_date`` falls on a day inside the range."""


class AdminActionStore(ABC):
    
    @abstractmethod
    async def append(self, action: AdminAction) -> AdminAction:
        ...
    
    @abstractmethod
    async def list_by_ride(self, ride_id: int) -> List[AdminAction]:
        """Newest first."""
    
    @abstractmethod
    async def list_by_admin(self, admin_id: str, limit: int) -> List[AdminAction]:
        """Newest first, at most ``limit`` entries."""
