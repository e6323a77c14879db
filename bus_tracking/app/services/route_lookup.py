"""
Route lookup for the tracking core.

Routes are owned by the route-management tool; the core reads them only.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bus_tracking.app.core.config import settings
from bus_tracking.app.models.route import Route


async def get_route(db: AsyncSession, route_id: Optional[int]) -> Optional[Route]:
    """Fetch a route by id, None if it does not exist."""
    if route_id is None:
        return None
    result = await db.execute(select(Route).where(Route.id == route_id))
    return result.scalar_one_or_none()


def effective_speed_limit(route: Optional[Route]) -> float:
    """Route speed limit in km/h, or the configured default when the route has none."""
    if route is not None and route.speed_limit:
        return route.speed_limit
    return settings.default_speed_limit_kmh
