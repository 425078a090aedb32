"""
Orchestrating service: resolves ride commands into calls on the state
machine, the ledger and the analytics aggregator.

Authorization here is capability based: every method receives the
``Actor`` issuing the command and never looks at ambient request state.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from ride_scheduler.core.config import Settings
from ride_scheduler.core.exceptions import ForbiddenError, ValidationFailureError
from ride_scheduler.core.security import Actor
from ride_scheduler.engine.analytics import AnalyticsAggregator
from ride_scheduler.engine.cancellation_policy import CancellationPolicy
from ride_scheduler.engine.entities import (
    AdminAction, AnalyticsBucket, Coordinates, DateRange, DriverInfo, FareEstimate,
    GroupBy, Location, Page, Ride, RideDraft, RideFilter, RidePurpose, RideStatus,
    RideType
)
from ride_scheduler.engine.geo_estimator import GeoEstimator
from ride_scheduler.engine.ledger import AdminActionLedger
from ride_scheduler.engine.state_machine import RideStateMachine
from ride_scheduler.engine.validation import validate_location
from ride_scheduler.stores.base import AdminActionStore, RideStore

logger = logging.getLogger(__name__)

ADMIN_STATUS_UPDATES = frozenset({RideStatus.APPROVED, RideStatus.REJECTED})


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        logger.warning(f"Admin-only command refused for user {actor.user_id}")
        raise ForbiddenError("Admin access required")


class RideService:

    def __init__(
        self,
        machine: RideStateMachine,
        ledger: AdminActionLedger,
        aggregator: AnalyticsAggregator,
        default_page_size: int = 10,
        max_page_size: int = 100,
        analytics_window_days: int = 30,
        admin_actions_limit: int = 50
    ):
        self.machine = machine
        self.ledger = ledger
        self.aggregator = aggregator
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.analytics_window_days = analytics_window_days
        self.admin_actions_limit = admin_actions_limit

    @property
    def estimator(self) -> GeoEstimator:
        return self.machine.estimator

    def _paging(self, page: int, limit: Optional[int]) -> tuple:
        limit = self.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationFailureError("page must be at least 1", {"page": page})
        if not 1 <= limit <= self.max_page_size:
            raise ValidationFailureError(
                f"limit must be between 1 and {self.max_page_size}",
                {"limit": limit}
            )
        return page, limit

    # Requester commands

    async def create_ride(self, actor: Actor, draft: RideDraft) -> Ride:
        return await self.machine.create(actor.user_id, draft)

    async def list_user_rides(
        self,
        actor: Actor,
        status: Optional[RideStatus] = None,
        ride_type: Optional[RideType] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> Page:
        page, limit = self._paging(page, limit)
        criteria = RideFilter(requester_id=actor.user_id, status=status, ride_type=ride_type)
        return await self.machine.ride_store.list(criteria, page, limit)

    async def get_ride(self, ride_id: int, actor: Actor) -> Ride:
        ride = await self.machine.get(ride_id)
        if not (actor.is_admin or actor.owns(ride.requester_id)):
            raise ForbiddenError("Not authorized to view this ride")
        return ride

    async def cancel_ride(self, ride_id: int, actor: Actor, reason: Optional[str] = None) -> Ride:
        return await self.machine.cancel(ride_id, actor, reason)

    def estimate_fare(self, pickup: Coordinates, drop: Coordinates) -> FareEstimate:
        validate_location(Location("pickup", pickup), "Pickup")
        validate_location(Location("drop", drop), "Drop")
        return self.estimator.estimate(pickup, drop)

    # Administrator commands

    async def list_all_rides(
        self,
        actor: Actor,
        status: Optional[RideStatus] = None,
        ride_type: Optional[RideType] = None,
        purpose: Optional[RidePurpose] = None,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> Page:
        require_admin(actor)
        page, limit = self._paging(page, limit)

        date_range = None
        if start_date is not None or end_date is not None:
            date_range = DateRange(start=start_date, end=end_date)

        criteria = RideFilter(
            requester_id=user_id,
            status=status,
            ride_type=ride_type,
            purpose=purpose,
            date_range=date_range
        )
        return await self.machine.ride_store.list(criteria, page, limit)

    async def update_ride_status(
        self,
        ride_id: int,
        actor: Actor,
        new_status: RideStatus,
        reason: Optional[str] = None
    ) -> Ride:
        require_admin(actor)
        new_status = RideStatus(new_status)
        if new_status not in ADMIN_STATUS_UPDATES:
            raise ValidationFailureError(
                "Status must be approved or rejected",
                {"status": new_status.value}
            )
        return await self.machine.transition(ride_id, actor, new_status, reason)

    async def complete_ride(self, ride_id: int, actor: Actor, reason: Optional[str] = None) -> Ride:
        require_admin(actor)
        return await self.machine.transition(ride_id, actor, RideStatus.COMPLETED, reason)

    async def assign_driver(self, ride_id: int, actor: Actor, driver: DriverInfo) -> Ride:
        return await self.machine.assign_driver(ride_id, actor, driver)

    async def get_analytics(
        self,
        actor: Actor,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        group_by: GroupBy = GroupBy.DATE
    ) -> Tuple[DateRange, List[AnalyticsBucket]]:
        """Buckets for the requested window, together with the window actually used."""
        require_admin(actor)
        date_range = self.analytics_range(start_date, end_date)
        buckets = await self.aggregator.aggregate(date_range, GroupBy(group_by))
        return date_range, buckets

    def analytics_range(self, start_date: Optional[date], end_date: Optional[date]) -> DateRange:
        """Fill in a missing end (today) or start (a fixed window before the end)."""
        end_date = end_date or datetime.now(timezone.utc).date()
        start_date = start_date or end_date - timedelta(days=self.analytics_window_days)
        return DateRange(start_date, end_date)

    async def ride_actions(self, ride_id: int, actor: Actor) -> List[AdminAction]:
        require_admin(actor)
        await self.machine.get(ride_id)
        return await self.ledger.by_ride(ride_id)

    async def admin_actions(
        self,
        actor: Actor,
        admin_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[AdminAction]:
        require_admin(actor)
        limit = self.admin_actions_limit if limit is None else limit
        if not 1 <= limit <= self.max_page_size:
            raise ValidationFailureError(
                f"limit must be between 1 and {self.max_page_size}",
                {"limit": limit}
            )
        return await self.ledger.by_admin(admin_id or actor.user_id, limit)


def build_ride_service(
    settings: Settings,
    ride_store: RideStore,
    action_store: AdminActionStore
) -> RideService:
    """Wire the engine components around the given stores."""
    ledger = AdminActionLedger(action_store)
    machine = RideStateMachine(
        ride_store,
        ledger,
        estimator=GeoEstimator.from_settings(settings),
        policy=CancellationPolicy.from_settings(settings)
    )
    return RideService(
        machine,
        ledger,
        AnalyticsAggregator(ride_store),
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
        analytics_window_days=settings.ANALYTICS_DEFAULT_WINDOW_DAYS,
        admin_actions_limit=settings.ADMIN_ACTIONS_DEFAULT_LIMIT
    )
