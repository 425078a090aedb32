"""
Main FastAPI application for the corporate ride scheduler.
Requesters book rides, administrators approve them, every admin change is audited.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from ride_scheduler.core.config import settings
from ride_scheduler.core.database import engine, Base, AsyncSessionLocal
from ride_scheduler.core.exceptions import RideSchedulerError
from ride_scheduler.core.logging import setup_logging
from ride_scheduler.api.v1.api import api_router
from ride_scheduler.models import ride, admin_action  # noqa: F401  registers tables
from ride_scheduler.services.ride_service import build_ride_service
from ride_scheduler.stores.sql import SqlAdminActionStore, SqlRideStore

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup
    logger.info("Starting Corporate Ride Scheduler...")
    
    # Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    app.state.ride_service = build_ride_service(
        settings,
        SqlRideStore(AsyncSessionLocal),
        SqlAdminActionStore(AsyncSessionLocal)
    )
    
    logger.info("Application startup complete")
    
    yield
    
    # Shutdown
    logger.info("Shutting down application...")
    await engine.dispose()

# Create FastAPI app
app = FastAPI(
    title="Corporate Ride Scheduler API",
    description="Ride booking, approval and audit for corporate car pools",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RideSchedulerError)
async def ride_scheduler_error_handler(request: Request, exc: RideSchedulerError):
    """Map domain rejections onto their HTTP status."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Something went wrong", "details": None}
    )

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Corporate Ride Scheduler API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "ride-scheduler"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ride_scheduler.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
