"""
SQLAlchemy-backed stores.

Each operation opens its own session from the injected factory, so one
store instance can serve concurrent requests. Status transitions are a
single conditional ``UPDATE ... WHERE id = :id AND status = :expected``;
the row count tells the caller whether it won the race.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ride_scheduler.engine.entities import (
    AdminAction, Coordinates, DateRange, DriverInfo, Location, Page, Ride,
    RideFilter, RideStatus, Weekday
)
from ride_scheduler.models.admin_action import AdminActionRecord
from ride_scheduler.models.ride import RideRecord
from ride_scheduler.stores.base import AdminActionStore, RideStore

logger = logging.getLogger(__name__)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _driver_columns(driver: Optional[DriverInfo]) -> Dict[str, Any]:
    driver = driver or DriverInfo()
    return {
        "driver_id": driver.driver_id,
        "driver_name": driver.driver_name,
        "vehicle_number": driver.vehicle_number,
        "driver_phone": driver.phone_number,
    }


def _ride_columns(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Translate entity field changes into column values."""
    columns = {}
    for name, value in changes.items():
        if name == "driver":
            columns.update(_driver_columns(value))
        elif name == "recurring_days":
            columns[name] = [day.value for day in value]
        elif isinstance(value, datetime):
            columns[name] = _utc(value)
        else:
            columns[name] = value
    return columns


def ride_to_record(ride: Ride) -> RideRecord:
    return RideRecord(
        requester_id=ride.requester_id,
        pickup_address=ride.pickup_location.address,
        pickup_latitude=ride.pickup_location.coordinates.latitude,
        pickup_longitude=ride.pickup_location.coordinates.longitude,
        pickup_instructions=ride.pickup_location.instructions,
        drop_address=ride.drop_location.address,
        drop_latitude=ride.drop_location.coordinates.latitude,
        drop_longitude=ride.drop_location.coordinates.longitude,
        drop_instructions=ride.drop_location.instructions,
        ride_date=_utc(ride.ride_date),
        pickup_time=ride.pickup_time,
        drop_time=ride.drop_time,
        ride_type=ride.ride_type,
        recurring_days=[day.value for day in ride.recurring_days],
        purpose=ride.purpose,
        priority=ride.priority,
        status=ride.status,
        estimated_distance=ride.estimated_distance,
        estimated_duration=ride.estimated_duration,
        estimated_fare=ride.estimated_fare,
        actual_fare=ride.actual_fare,
        notes=ride.notes,
        cancellation_reason=ride.cancellation_reason,
        cancelled_by=ride.cancelled_by,
        cancelled_at=_utc(ride.cancelled_at),
        completed_at=_utc(ride.completed_at),
        created_at=_utc(ride.created_at),
        updated_at=_utc(ride.updated_at),
        **_driver_columns(ride.driver)
    )


def record_to_ride(record: RideRecord) -> Ride:
    driver = None
    if any([record.driver_id, record.driver_name, record.vehicle_number, record.driver_phone]):
        driver = DriverInfo(
            driver_id=record.driver_id,
            driver_name=record.driver_name,
            vehicle_number=record.vehicle_number,
            phone_number=record.driver_phone
        )

    return Ride(
        id=record.id,
        requester_id=record.requester_id,
        pickup_location=Location(
            address=record.pickup_address,
            coordinates=Coordinates(record.pickup_latitude, record.pickup_longitude),
            instructions=record.pickup_instructions
        ),
        drop_location=Location(
            address=record.drop_address,
            coordinates=Coordinates(record.drop_latitude, record.drop_longitude),
            instructions=record.drop_instructions
        ),
        ride_date=_utc(record.ride_date),
        pickup_time=record.pickup_time,
        drop_time=record.drop_time,
        ride_type=record.ride_type,
        recurring_days=tuple(Weekday(day) for day in record.recurring_days or []),
        purpose=record.purpose,
        priority=record.priority,
        status=record.status,
        estimated_distance=record.estimated_distance,
        estimated_duration=record.estimated_duration,
        estimated_fare=record.estimated_fare,
        actual_fare=record.actual_fare,
        driver=driver,
        notes=record.notes,
        cancellation_reason=record.cancellation_reason,
        cancelled_by=record.cancelled_by,
        cancelled_at=_utc(record.cancelled_at),
        completed_at=_utc(record.completed_at),
        created_at=_utc(record.created_at),
        updated_at=_utc(record.updated_at)
    )


def record_to_action(record: AdminActionRecord) -> AdminAction:
    return AdminAction(
        id=record.id,
        ride_id=record.ride_id,
        admin_id=record.admin_id,
        action=record.action,
        previous_status=record.previous_status,
        new_status=record.new_status,
        reason=record.reason,
        metadata=dict(record.action_metadata or {}),
        ip_address=record.ip_address,
        user_agent=record.user_agent,
        created_at=_utc(record.created_at)
    )


def _apply_filter(query, criteria: RideFilter):
    if criteria.requester_id is not None:
        query = query.where(RideRecord.requester_id == criteria.requester_id)
    if criteria.status is not None:
        query = query.where(RideRecord.status == criteria.status)
    if criteria.ride_type is not None:
        query = query.where(RideRecord.ride_type == criteria.ride_type)
    if criteria.purpose is not None:
        query = query.where(RideRecord.purpose == criteria.purpose)
    if criteria.date_range is not None:
        lower, upper = criteria.date_range.bounds()
        if lower is not None:
            query = query.where(RideRecord.ride_date >= lower)
        if upper is not None:
            query = query.where(RideRecord.ride_date < upper)
    return query


class SqlRideStore(RideStore):

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def add(self, ride: Ride) -> Ride:
        async with self.session_factory() as session:
            record = ride_to_record(ride)
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record_to_ride(record)

    async def get(self, ride_id: int) -> Optional[Ride]:
        async with self.session_factory() as session:
            record = await session.get(RideRecord, ride_id)
            return record_to_ride(record) if record else None

    async def update_if_status(
        self,
        ride_id: int,
        expected_status: RideStatus,
        changes: Dict[str, Any]
    ) -> Optional[Ride]:
        async with self.session_factory() as session:
            result = await session.execute(
                update(RideRecord)
                .where(RideRecord.id == ride_id, RideRecord.status == expected_status)
                .values(**_ride_columns(changes))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                logger.debug(f"Conditional update missed ride {ride_id} (expected {expected_status.value})")
                return None

            await session.commit()
            record = await session.get(RideRecord, ride_id)
            return record_to_ride(record)

    async def list(self, criteria: RideFilter, page: int, limit: int) -> Page:
        async with self.session_factory() as session:
            base = _apply_filter(select(RideRecord), criteria)

            count_query = select(func.count()).select_from(base.subquery())
            total = (await session.execute(count_query)).scalar_one()

            query = (
                base.order_by(RideRecord.created_at.desc(), RideRecord.id.desc())
                .limit(limit)
                .offset((page - 1) * limit)
            )
            result = await session.execute(query)
            items = [record_to_ride(record) for record in result.scalars().all()]

            return Page(items=items, total=total, page=page, limit=limit)

    async def in_date_range(self, date_range: DateRange) -> List[Ride]:
        if date_range.is_empty:
            return []

        async with self.session_factory() as session:
            query = _apply_filter(select(RideRecord), RideFilter(date_range=date_range))
            result = await session.execute(query.order_by(RideRecord.ride_date))
            return [record_to_ride(record) for record in result.scalars().all()]


class SqlAdminActionStore(AdminActionStore):

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def append(self, action: AdminAction) -> AdminAction:
        async with self.session_factory() as session:
            record = AdminActionRecord(
                ride_id=action.ride_id,
                admin_id=action.admin_id,
                action=action.action,
                previous_status=action.previous_status,
                new_status=action.new_status,
                reason=action.reason,
                action_metadata=dict(action.metadata),
                ip_address=action.ip_address,
                user_agent=action.user_agent,
                created_at=_utc(action.created_at or datetime.now(timezone.utc))
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record_to_action(record)

    async def _fetch(self, session: AsyncSession, query) -> List[AdminAction]:
        query = query.order_by(AdminActionRecord.created_at.desc(), AdminActionRecord.id.desc())
        result = await session.execute(query)
        return [record_to_action(record) for record in result.scalars().all()]

    async def list_by_ride(self, ride_id: int) -> List[AdminAction]:
        async with self.session_factory() as session:
            return await self._fetch(
                session, select(AdminActionRecord).where(AdminActionRecord.ride_id == ride_id)
            )

    async def list_by_admin(self, admin_id: str, limit: int) -> List[AdminAction]:
        async with self.session_factory() as session:
            return await self._fetch(
                session,
                select(AdminActionRecord).where(AdminActionRecord.admin_id == admin_id).limit(limit)
            )
