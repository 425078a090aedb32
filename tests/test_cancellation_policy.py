"""
Tests for the two-hour cancellation cutoff.
"""

from datetime import datetime, timedelta, timezone

from ride_scheduler.engine.cancellation_policy import CancellationPolicy, can_cancel

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_just_past_the_cutoff_is_allowed():
    assert can_cancel(NOW + timedelta(hours=2, seconds=1), NOW) is True


def test_exactly_at_the_cutoff_is_refused():
    assert can_cancel(NOW + timedelta(hours=2), NOW) is False


def test_inside_the_cutoff_is_refused():
    assert can_cancel(NOW + timedelta(hours=1), NOW) is False


def test_past_rides_cannot_be_cancelled():
    assert can_cancel(NOW - timedelta(days=1), NOW) is False


def test_policy_with_custom_cutoff():
    policy = CancellationPolicy(cutoff=timedelta(minutes=30))
    assert policy.can_cancel(NOW + timedelta(minutes=31), NOW)
    assert not policy.can_cancel(NOW + timedelta(minutes=30), NOW)


def test_policy_from_settings():
    class StubSettings:
        CANCELLATION_CUTOFF_HOURS = 4

    policy = CancellationPolicy.from_settings(StubSettings)
    assert policy.cutoff == timedelta(hours=4)
    assert not policy.can_cancel(NOW + timedelta(hours=3), NOW)
