"""
Admin audit trail API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ride_scheduler.api.v1.deps import get_actor, get_ride_service
from ride_scheduler.api.v1.schemas import AdminActionResponse
from ride_scheduler.core.security import Actor
from ride_scheduler.services.ride_service import RideService

router = APIRouter()

@router.get("/actions", response_model=List[AdminActionResponse])
async def get_admin_actions(
    admin_id: Optional[str] = Query(None, alias="adminId"),
    limit: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get actions taken by an administrator, newest first (defaults to the caller)."""
    actions = await service.admin_actions(actor, admin_id, limit)
    return [AdminActionResponse.model_validate(action) for action in actions]
