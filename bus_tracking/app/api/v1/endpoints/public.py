"""
Public API Endpoints.

Read-only live bus feed for the passenger app; no authentication.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.db.session import get_db
from bus_tracking.app.schemas.live import LiveBusResponse
from bus_tracking.app.services.live_buses import get_live_buses

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/buses/live", response_model=List[LiveBusResponse])
async def live_buses(db: AsyncSession = Depends(get_db)):
    """Buses currently tracking, with their route and ETA to each stop."""
    return await get_live_buses(db)
