"""
Request dependencies for FastAPI.

Authentication for protected routes and wiring of the tracking services to
the application's event publisher.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from bus_tracking.app.core.exceptions import AuthenticationError
from bus_tracking.app.core.jwt import decode_access_token
from bus_tracking.app.db.session import get_db
from bus_tracking.app.models.user import User
from bus_tracking.app.services.event_publisher import EventPublisher
from bus_tracking.app.services.location_ingestion import LocationIngestionService
from bus_tracking.app.services.trip_lifecycle import TripLifecycleManager

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.
    
    Checks:
    1. Validates JWT token signature and expiry
    2. Verifies the user still exists and is active (real-time check)
    
    Returns:
        Decoded token payload containing user information (sub, user_id, role)
        
    Raises:
        AuthenticationError: 401 if the token or user is invalid
        HTTPException: 403 if the account is inactive
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")
    
    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")
    
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    
    if not user:
        raise AuthenticationError("User not found")
    
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    
    return payload


def get_event_publisher(request: Request) -> EventPublisher:
    """Publisher created by the application lifespan."""
    return request.app.state.event_publisher


def get_trip_manager(publisher: EventPublisher = Depends(get_event_publisher)) -> TripLifecycleManager:
    return TripLifecycleManager(publisher)


def get_ingestion_service(
    trip_manager: TripLifecycleManager = Depends(get_trip_manager)
) -> LocationIngestionService:
    return LocationIngestionService(trip_manager.publisher, trip_manager)
