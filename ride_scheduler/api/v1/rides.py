"""
Ride API endpoints.
"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import List, Optional
from datetime import date

from ride_scheduler.api.v1.deps import get_actor, get_ride_service
from ride_scheduler.api.v1.schemas import (
    AdminActionResponse, AnalyticsBucketResponse, AnalyticsResponse, DriverSchema,
    FareEstimateRequest, FareEstimateResponse, RideCancel, RideComplete, RideCreate,
    RidePage, RideResponse, RideStatusUpdate
)
from ride_scheduler.core.security import Actor
from ride_scheduler.engine.entities import GroupBy, RidePurpose, RideStatus, RideType
from ride_scheduler.services.ride_service import RideService

router = APIRouter()

@router.post("", response_model=RideResponse, status_code=status.HTTP_201_CREATED)
async def create_ride(
    ride_request: RideCreate,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Create a new ride request."""
    ride = await service.create_ride(actor, ride_request.to_draft())
    return RideResponse.model_validate(ride)

@router.post("/estimate", response_model=FareEstimateResponse)
async def estimate_fare(
    estimate_request: FareEstimateRequest,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Preview distance, duration and fare for a pickup/drop pair."""
    estimate = service.estimate_fare(
        estimate_request.pickup.to_entity(),
        estimate_request.drop.to_entity()
    )
    return FareEstimateResponse.model_validate(estimate)

@router.get("/user", response_model=RidePage)
async def get_user_rides(
    ride_status: Optional[RideStatus] = Query(None, alias="status"),
    ride_type: Optional[RideType] = Query(None, alias="rideType"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get the calling user's rides, newest first."""
    rides = await service.list_user_rides(actor, ride_status, ride_type, page, limit)
    return RidePage.model_validate(rides)

@router.get("/admin/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    group_by: GroupBy = Query(GroupBy.DATE, alias="groupBy"),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get ride analytics grouped by date, status or purpose (admin only)."""
    date_range, buckets = await service.get_analytics(actor, start_date, end_date, group_by)
    return AnalyticsResponse(
        group_by=group_by,
        start_date=date_range.start,
        end_date=date_range.end,
        buckets=[AnalyticsBucketResponse.model_validate(bucket) for bucket in buckets]
    )

@router.get("", response_model=RidePage)
async def get_all_rides(
    ride_status: Optional[RideStatus] = Query(None, alias="status"),
    ride_type: Optional[RideType] = Query(None, alias="rideType"),
    purpose: Optional[RidePurpose] = None,
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get all rides with optional filtering (admin only)."""
    rides = await service.list_all_rides(
        actor,
        status=ride_status,
        ride_type=ride_type,
        purpose=purpose,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit
    )
    return RidePage.model_validate(rides)

@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: int,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get ride details by ID."""
    ride = await service.get_ride(ride_id, actor)
    return RideResponse.model_validate(ride)

@router.delete("/{ride_id}", response_model=RideResponse)
async def cancel_ride(
    ride_id: int,
    cancellation: Optional[RideCancel] = Body(None),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Cancel a ride at least two hours before it is due."""
    reason = cancellation.reason if cancellation else None
    ride = await service.cancel_ride(ride_id, actor, reason)
    return RideResponse.model_validate(ride)

@router.patch("/{ride_id}/status", response_model=RideResponse)
async def update_ride_status(
    ride_id: int,
    status_update: RideStatusUpdate,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Approve or reject a ride (admin only)."""
    ride = await service.update_ride_status(
        ride_id, actor, status_update.status, status_update.reason
    )
    return RideResponse.model_validate(ride)

@router.patch("/{ride_id}/complete", response_model=RideResponse)
async def complete_ride(
    ride_id: int,
    completion: Optional[RideComplete] = Body(None),
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Mark an approved ride as completed (admin only)."""
    reason = completion.reason if completion else None
    ride = await service.complete_ride(ride_id, actor, reason)
    return RideResponse.model_validate(ride)

@router.put("/{ride_id}/driver", response_model=RideResponse)
async def assign_driver(
    ride_id: int,
    driver: DriverSchema,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Assign a driver to an approved ride (admin only)."""
    ride = await service.assign_driver(ride_id, actor, driver.to_entity())
    return RideResponse.model_validate(ride)

@router.get("/{ride_id}/actions", response_model=List[AdminActionResponse])
async def get_ride_actions(
    ride_id: int,
    actor: Actor = Depends(get_actor),
    service: RideService = Depends(get_ride_service)
):
    """Get the admin audit trail of a ride, newest first (admin only)."""
    actions = await service.ride_actions(ride_id, actor)
    return [AdminActionResponse.model_validate(action) for action in actions]
