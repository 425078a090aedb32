"""
Main API router for v1 endpoints.
"""

from fastapi import APIRouter

from ride_scheduler.api.v1 import rides, admin

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(rides.router, prefix="/rides", tags=["rides"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
