"""
Shared fixtures for the ride scheduler tests.
"""

import os

# Settings are read at import time; point them at throwaway values first
os.environ.update({
    'ENVIRONMENT': 'testing',
    'DATABASE_URL': 'sqlite+aiosqlite:///:memory:',
    'LOG_LEVEL': 'WARNING',
    'LOG_FILE': '',
})

from datetime import datetime, timedelta, timezone

import pytest

from ride_scheduler.core.security import Actor, Role
from ride_scheduler.engine.analytics import AnalyticsAggregator
from ride_scheduler.engine.entities import Coordinates, Location, RideDraft
from ride_scheduler.engine.ledger import AdminActionLedger
from ride_scheduler.engine.state_machine import RideStateMachine
from ride_scheduler.services.ride_service import RideService
from ride_scheduler.stores.memory import InMemoryAdminActionStore, InMemoryRideStore

MUMBAI_PICKUP = Coordinates(19.0760, 72.8777)
MUMBAI_DROP = Coordinates(19.2183, 72.9781)


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_draft(ride_date: datetime, **overrides) -> RideDraft:
    values = dict(
        pickup_location=Location("123 Main St, Mumbai", MUMBAI_PICKUP, "Near the main gate"),
        drop_location=Location("456 Oak Ave, Mumbai", MUMBAI_DROP, "Drop at the entrance"),
        ride_date=ride_date,
        pickup_time="09:00",
        drop_time="17:00",
    )
    values.update(overrides)
    return RideDraft(**values)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def ride_store():
    return InMemoryRideStore()


@pytest.fixture
def action_store():
    return InMemoryAdminActionStore()


@pytest.fixture
def ledger(action_store):
    return AdminActionLedger(action_store)


@pytest.fixture
def machine(ride_store, ledger, clock):
    return RideStateMachine(ride_store, ledger, clock=clock)


@pytest.fixture
def service(machine, ledger, ride_store):
    return RideService(machine, ledger, AnalyticsAggregator(ride_store))


@pytest.fixture
def requester():
    return Actor(user_id="emp-001", role=Role.USER)


@pytest.fixture
def other_user():
    return Actor(user_id="emp-002", role=Role.USER)


@pytest.fixture
def admin():
    return Actor(
        user_id="admin-001",
        role=Role.ADMIN,
        ip_address="10.0.0.5",
        user_agent="pytest"
    )
