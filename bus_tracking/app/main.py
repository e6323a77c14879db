"""
FastAPI Application Entry Point.

This is the main application file for the Bus Tracking Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from bus_tracking.app.core.config import settings
from bus_tracking.app.api.v1.router import router as api_v1_router
from bus_tracking.app.core.observability import configure_logging, ObservabilityMiddleware
from bus_tracking.app.db.session import engine, Base
from bus_tracking.app.services.event_publisher import create_event_publisher
from bus_tracking.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from bus_tracking.app.models.user import User
from bus_tracking.app.models.route import Route
from bus_tracking.app.models.driver_location import DriverLocation
from bus_tracking.app.models.trip import Trip
from bus_tracking.app.models.trip_point import TripPoint
from bus_tracking.app.models.alert import Alert
from bus_tracking.app.models.audit_log import AuditLog

logger = logging.getLogger("bus_tracking")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables on startup.
    2. Opens the event publisher and closes it on shutdown.
    """
    configure_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.event_publisher = create_event_publisher()
    logger.info("Event publisher ready (%s)", settings.event_backend)
    yield

    await app.state.event_publisher.close()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Real-time bus tracking: driver locations, trips and alerts",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
