"""
Request dependencies: caller identity and the ride service.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from ride_scheduler.core.security import Actor, Role
from ride_scheduler.services.ride_service import RideService


async def get_actor(
    request: Request,
    x_user_id: Optional[str] = Header(None),
    x_role: Optional[str] = Header(None)
) -> Actor:
    """Build the caller's capability claim from the identity headers."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID is required"
        )
    if not x_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Role is required"
        )
    try:
        role = Role(x_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid role"
        )
    
    return Actor(
        user_id=x_user_id,
        role=role,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )


async def get_ride_service(request: Request) -> RideService:
    """Dependency to get the ride service from app state."""
    return request.app.state.ride_service
