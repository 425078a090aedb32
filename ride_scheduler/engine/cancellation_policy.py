"""
Cutoff rule deciding whether a ride may still be cancelled.
"""

from datetime import datetime, timedelta

DEFAULT_CUTOFF = timedelta(hours=2)


def can_cancel(ride_datetime: datetime, now: datetime, cutoff: timedelta = DEFAULT_CUTOFF) -> bool:
    """True only while strictly more than ``cutoff`` remains before the ride."""
    return ride_datetime - now > cutoff


class CancellationPolicy:
    
    def __init__(self, cutoff: timedelta = DEFAULT_CUTOFF):
        self.cutoff = cutoff
    
    @classmethod
    def from_settings(cls, settings) -> "CancellationPolicy":
        return cls(cutoff=timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS))
    
    def can_cancel(self, ride_datetime: datetime, now: datetime) -> bool:
        return can_cancel(ride_datetime, now, self.cutoff)
