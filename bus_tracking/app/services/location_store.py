"""
Read side of the driver location history.

The current position of a driver is derived from the stored samples
(latest recorded_at, then highest id), never kept as a separate row.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from bus_tracking.app.models.driver_location import DriverLocation


def _newest_first():
    return (DriverLocation.recorded_at.desc(), DriverLocation.id.desc())


async def get_latest_sample(db: AsyncSession, driver_id: int) -> Optional[DriverLocation]:
    """Most recent sample of one driver, None if the driver never reported."""
    result = await db.execute(
        select(DriverLocation)
        .where(DriverLocation.driver_id == driver_id)
        .order_by(*_newest_first())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_latest_locations(db: AsyncSession, tracking_only: bool = False) -> List[DriverLocation]:
    """
    Most recent sample per driver.

    Args:
        db: Database session
        tracking_only: Only return drivers whose latest sample is still tracking
    """
    ranked = select(
        DriverLocation.id.label("id"),
        func.row_number().over(
            partition_by=DriverLocation.driver_id,
            order_by=_newest_first()
        ).label("rank")
    ).subquery()

    query = (
        select(DriverLocation)
        .join(ranked, DriverLocation.id == ranked.c.id)
        .where(ranked.c.rank == 1)
        .order_by(DriverLocation.driver_id)
    )
    if tracking_only:
        query = query.where(DriverLocation.is_tracking.is_(True))

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_driver_history(db: AsyncSession, driver_id: int, limit: int) -> List[DriverLocation]:
    """Samples of one driver, newest first."""
    result = await db.execute(
        select(DriverLocation)
        .where(DriverLocation.driver_id == driver_id)
        .order_by(*_newest_first())
        .limit(max(1, limit))
    )
    return list(result.scalars().all())
