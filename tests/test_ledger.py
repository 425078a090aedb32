"""
Tests for the admin action ledger.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ride_scheduler.engine.entities import AdminAction, AdminActionType, RideStatus
from ride_scheduler.engine.ledger import AdminActionLedger
from ride_scheduler.stores.memory import InMemoryAdminActionStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def entry(ride_id=1, admin_id="admin-001", minutes=0, **overrides):
    values = dict(
        ride_id=ride_id,
        admin_id=admin_id,
        action=AdminActionType.APPROVE,
        previous_status=RideStatus.PENDING,
        new_status=RideStatus.APPROVED,
        created_at=T0 + timedelta(minutes=minutes)
    )
    values.update(overrides)
    return AdminAction(**values)


class TestRecord:

    async def test_record_assigns_id(self, ledger):
        stored = await ledger.record(entry())
        assert stored.id is not None
        assert stored.created_at == T0

    async def test_missing_timestamp_is_filled_in(self, ledger):
        stored = await ledger.record(entry(created_at=None))
        assert stored.created_at is not None
        assert stored.created_at.tzinfo is not None

    async def test_returned_entries_are_copies(self, ledger):
        await ledger.record(entry(metadata={"note": "original"}))

        first = (await ledger.by_ride(1))[0]
        first.metadata["note"] = "tampered"
        first.reason = "tampered"

        again = (await ledger.by_ride(1))[0]
        assert again.metadata == {"note": "original"}
        assert again.reason is None

    async def test_storage_errors_propagate(self):
        class BrokenStore(InMemoryAdminActionStore):
            async def append(self, action):
                raise ConnectionError("disk full")

        store = BrokenStore()

        with pytest.raises(ConnectionError, match="disk full"):
            await AdminActionLedger(store).record(entry())
        assert await store.list_by_ride(1) == []


class TestQueries:

    async def test_by_ride_is_newest_first(self, ledger):
        await ledger.record(entry(minutes=0))
        await ledger.record(entry(
            minutes=10,
            action=AdminActionType.CANCEL,
            previous_status=RideStatus.APPROVED,
            new_status=RideStatus.CANCELLED
        ))
        await ledger.record(entry(ride_id=2, minutes=5))

        actions = await ledger.by_ride(1)

        assert [a.action for a in actions] == [AdminActionType.CANCEL, AdminActionType.APPROVE]
        assert all(a.ride_id == 1 for a in actions)

    async def test_by_ride_unknown_ride_is_empty(self, ledger):
        assert await ledger.by_ride(42) == []

    async def test_by_admin_respects_limit(self, ledger):
        for minutes in range(5):
            await ledger.record(entry(ride_id=minutes + 1, minutes=minutes))
        await ledger.record(entry(admin_id="admin-002", minutes=99))

        actions = await ledger.by_admin("admin-001", limit=3)

        assert [a.ride_id for a in actions] == [5, 4, 3]

    async def test_by_admin_zero_limit(self, ledger):
        await ledger.record(entry())
        assert await ledger.by_admin("admin-001", limit=0) == []

    async def test_same_timestamp_keeps_insertion_order_reversed(self, ledger):
        await ledger.record(entry(ride_id=1))
        await ledger.record(entry(ride_id=2))

        actions = await ledger.by_admin("admin-001")
        assert [a.ride_id for a in actions] == [2, 1]
