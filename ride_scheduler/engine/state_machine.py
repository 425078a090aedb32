"""
Ride lifecycle state machine.

Legal edges::

    pending  -> approved | rejected | cancelled
    approved -> completed | cancelled

``rejected``, ``completed`` and ``cancelled`` are terminal. Every change
is applied through ``RideStore.update_if_status`` keyed by the status the
machine read, so two racing transitions on one ride cannot both win: the
loser sees the ride has moved on and gets ``InvalidTransitionError``.
Administrator-initiated changes are written to the admin action ledger.
If that write fails the ride is put back the way it was and the ledger
error is raised to the caller, so no admin change survives unaudited.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ride_scheduler.core.exceptions import (
    ForbiddenError, InvalidTransitionError, NotFoundError, PolicyViolationError
)
from ride_scheduler.core.security import Actor
from ride_scheduler.engine.cancellation_policy import CancellationPolicy
from ride_scheduler.engine.entities import (
    AdminAction, AdminActionType, DriverInfo, Ride, RideDraft, RideStatus
)
from ride_scheduler.engine.geo_estimator import GeoEstimator
from ride_scheduler.engine.ledger import AdminActionLedger
from ride_scheduler.engine.validation import validate_draft
from ride_scheduler.stores.base import RideStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    RideStatus.PENDING: frozenset({RideStatus.APPROVED, RideStatus.REJECTED, RideStatus.CANCELLED}),
    RideStatus.APPROVED: frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED}),
    RideStatus.REJECTED: frozenset(),
    RideStatus.COMPLETED: frozenset(),
    RideStatus.CANCELLED: frozenset(),
}

# Ledger action recorded when an administrator moves a ride into a status
LEDGER_ACTIONS = {
    RideStatus.APPROVED: AdminActionType.APPROVE,
    RideStatus.REJECTED: AdminActionType.REJECT,
    RideStatus.CANCELLED: AdminActionType.CANCEL,
    RideStatus.COMPLETED: AdminActionType.MODIFY,
}

CANCELLABLE = frozenset({RideStatus.PENDING, RideStatus.APPROVED})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_allowed(current: RideStatus, new: RideStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


class RideStateMachine:
    """Owns ride creation and every status change."""

    def __init__(
        self,
        ride_store: RideStore,
        ledger: AdminActionLedger,
        estimator: Optional[GeoEstimator] = None,
        policy: Optional[CancellationPolicy] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.ride_store = ride_store
        self.ledger = ledger
        self.estimator = estimator or GeoEstimator()
        self.policy = policy or CancellationPolicy()
        self.clock = clock

    async def create(self, requester_id: str, draft: RideDraft) -> Ride:
        """Validate, price and persist a new pending ride."""
        draft = validate_draft(draft)
        now = self.clock()

        if draft.ride_date <= now:
            raise PolicyViolationError(
                "Ride date cannot be in the past",
                {"rideDate": draft.ride_date.isoformat()}
            )

        estimate = self.estimator.estimate(
            draft.pickup_location.coordinates, draft.drop_location.coordinates
        )

        ride = Ride(
            requester_id=requester_id,
            pickup_location=draft.pickup_location,
            drop_location=draft.drop_location,
            ride_date=draft.ride_date,
            pickup_time=draft.pickup_time,
            drop_time=draft.drop_time,
            ride_type=draft.ride_type,
            recurring_days=draft.recurring_days,
            purpose=draft.purpose,
            priority=draft.priority,
            notes=draft.notes,
            estimated_distance=estimate.distance_km,
            estimated_duration=estimate.duration_min,
            estimated_fare=estimate.fare,
            status=RideStatus.PENDING,
            created_at=now,
            updated_at=now
        )

        # Written once, fully populated; readers never see a partial ride
        stored = await self.ride_store.add(ride)
        logger.info(
            f"Ride created: {stored.id} by requester {requester_id} "
            f"({estimate.distance_km:.2f} km, fare {estimate.fare:.2f})"
        )
        return stored

    async def get(self, ride_id: int) -> Ride:
        ride = await self.ride_store.get(ride_id)
        if ride is None:
            raise NotFoundError("Ride not found", {"rideId": ride_id})
        return ride

    def _authorize(self, ride: Ride, actor: Actor, new_status: RideStatus) -> None:
        if new_status == RideStatus.CANCELLED:
            if not (actor.is_admin or actor.owns(ride.requester_id)):
                logger.warning(f"User {actor.user_id} may not cancel ride {ride.id}")
                raise ForbiddenError("Not authorized to cancel this ride")
        elif not actor.is_admin:
            logger.warning(f"User {actor.user_id} may not move ride {ride.id} to {new_status.value}")
            raise ForbiddenError("Admin access required")

    async def transition(
        self,
        ride_id: int,
        actor: Actor,
        new_status: RideStatus,
        reason: Optional[str] = None
    ) -> Ride:
        """Move a ride along one legal edge."""
        new_status = RideStatus(new_status)
        ride = await self.get(ride_id)
        self._authorize(ride, actor, new_status)
        return await self._apply(ride, actor, new_status, reason)

    async def cancel(self, ride_id: int, actor: Actor, reason: Optional[str] = None) -> Ride:
        """Cancel a ride, subject to the cancellation cutoff."""
        ride = await self.get(ride_id)
        self._authorize(ride, actor, RideStatus.CANCELLED)

        # The cutoff is checked before the edge check
        if ride.status in CANCELLABLE and not self.policy.can_cancel(ride.ride_date, self.clock()):
            logger.warning(f"Cancellation of ride {ride.id} refused: inside cutoff")
            raise PolicyViolationError(
                "Ride cannot be cancelled less than "
                f"{self.policy.cutoff.total_seconds() / 3600:g} hours before the ride",
                {"rideDate": ride.ride_date.isoformat()}
            )

        return await self._apply(ride, actor, RideStatus.CANCELLED, reason)

    async def assign_driver(self, ride_id: int, actor: Actor, driver: DriverInfo) -> Ride:
        """Attach driver details to an approved ride; the status is unchanged."""
        if not actor.is_admin:
            raise ForbiddenError("Admin access required")

        ride = await self.get(ride_id)
        now = self.clock()
        if ride.status != RideStatus.APPROVED:
            raise InvalidTransitionError(
                "Driver can only be assigned to an approved ride",
                {"status": ride.status.value}
            )

        entry = AdminAction(
            ride_id=ride.id,
            admin_id=actor.user_id,
            action=AdminActionType.ASSIGN_DRIVER,
            previous_status=ride.status,
            new_status=ride.status,
            metadata={"driver": {
                "driverId": driver.driver_id,
                "driverName": driver.driver_name,
                "vehicleNumber": driver.vehicle_number,
                "phoneNumber": driver.phone_number,
            }},
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            created_at=now
        )
        updated = await self._audited_update(
            ride, {"driver": driver, "updated_at": now}, entry
        )

        logger.info(f"Driver assigned to ride {ride.id} by admin {actor.user_id}")
        return updated

    async def _apply(
        self,
        ride: Ride,
        actor: Actor,
        new_status: RideStatus,
        reason: Optional[str]
    ) -> Ride:
        if not is_allowed(ride.status, new_status):
            logger.warning(f"Invalid transition for ride {ride.id}: {ride.status.value} -> {new_status.value}")
            raise InvalidTransitionError(
                "Invalid status transition",
                {"from": ride.status.value, "to": new_status.value}
            )

        now = self.clock()
        changes: Dict[str, Any] = {"status": new_status, "updated_at": now}
        if new_status == RideStatus.COMPLETED:
            changes["completed_at"] = now
        elif new_status == RideStatus.CANCELLED:
            changes["cancelled_at"] = now
            changes["cancellation_reason"] = reason or ""
            changes["cancelled_by"] = actor.user_id

        entry = None
        if actor.is_admin:
            entry = AdminAction(
                ride_id=ride.id,
                admin_id=actor.user_id,
                action=LEDGER_ACTIONS[new_status],
                previous_status=ride.status,
                new_status=new_status,
                reason=reason,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
                created_at=now
            )

        updated = await self._audited_update(ride, changes, entry)

        logger.info(f"Ride {ride.id} moved {ride.status.value} -> {new_status.value} by {actor.user_id}")
        return updated

    async def _audited_update(
        self,
        ride: Ride,
        changes: Dict[str, Any],
        entry: Optional[AdminAction]
    ) -> Ride:
        """Apply ``changes`` and record ``entry``; a failed ledger write undoes the change."""
        updated = await self._conditional_update(ride, changes)
        if entry is None:
            return updated

        try:
            await self.ledger.record(entry)
        except Exception:
            await self._restore(ride, updated, changes)
            raise
        return updated

    async def _restore(self, ride: Ride, updated: Ride, changes: Dict[str, Any]) -> None:
        previous = {name: getattr(ride, name) for name in changes}
        try:
            restored = await self.ride_store.update_if_status(ride.id, updated.status, previous)
        except Exception as e:
            logger.error(f"Could not restore ride {ride.id} after audit failure: {e}")
            return

        if restored is None:
            logger.error(f"Ride {ride.id} changed again before it could be restored after audit failure")
        else:
            logger.warning(f"Ride {ride.id} restored to {ride.status.value}: audit entry could not be written")

    async def _conditional_update(self, ride: Ride, changes: Dict[str, Any]) -> Ride:
        updated = await self.ride_store.update_if_status(ride.id, ride.status, changes)
        if updated is not None:
            return updated

        current = await self.ride_store.get(ride.id)
        if current is None:
            raise NotFoundError("Ride not found", {"rideId": ride.id})

        logger.warning(
            f"Ride {ride.id} changed concurrently: expected {ride.status.value}, "
            f"found {current.status.value}"
        )
        raise InvalidTransitionError(
            "Invalid status transition",
            {"from": current.status.value, "expected": ride.status.value}
        )
