"""
Append-only audit trail of administrative ride transitions.
"""

import logging
from typing import List

from ride_scheduler.engine.entities import AdminAction
from ride_scheduler.stores.base import AdminActionStore

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_LIMIT = 50


class AdminActionLedger:
    """Records and reads ``AdminAction`` entries; there is no update or delete."""
    
    def __init__(self, store: AdminActionStore):
        self.store = store
    
    async def record(self, entry: AdminAction) -> AdminAction:
        # Storage errors propagate to the caller unchanged
        stored = await self.store.append(entry)
        logger.info(
            f"Admin action recorded: {stored.action.value} on ride {stored.ride_id} "
            f"by {stored.admin_id}"
        )
        return stored
    
    async def by_ride(self, ride_id: int) -> List[AdminAction]:
        return await self.store.list_by_ride(ride_id)
    
    async def by_admin(self, admin_id: str, limit: int = DEFAULT_ADMIN_LIMIT) -> List[AdminAction]:
        if limit < 1:
            return []
        return await self.store.list_by_admin(admin_id, limit)
