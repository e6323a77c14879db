"""
Public live bus feed.

Combines the latest tracking sample of every driver with the driver's ongoing
trip and its route, and estimates the arrival time at each stop from the
current speed.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bus_tracking.app.models.route import Route
from bus_tracking.app.models.trip import Trip
from bus_tracking.app.models.trip_enums import TripStatus
from bus_tracking.app.models.user import User
from bus_tracking.app.schemas.live import LiveBusResponse, StopEta
from bus_tracking.app.services import location_store
from bus_tracking.app.services.geo import haversine_distance

logger = logging.getLogger("bus_tracking.live")


def eta_to_stops(
    lat: float,
    lng: float,
    speed: Optional[float],
    stops: Optional[List[Dict[str, Any]]]
) -> List[StopEta]:
    """
    Distance and linear ETA from a position to every stop, in stop order.

    The ETA is the straight-line distance at the current speed, in whole
    minutes. It is None when the bus is not moving or sits exactly on the stop.
    """
    estimates = []
    for stop in sorted(stops or [], key=lambda s: s.get("order") or 0):
        if stop.get("lat") is None or stop.get("lng") is None:
            continue

        distance = haversine_distance(lat, lng, stop["lat"], stop["lng"])
        eta_minutes = None
        if speed and speed > 0:
            eta_minutes = (distance / 1000) / speed * 60

        estimates.append(StopEta(
            stop_name=stop.get("name"),
            lat=stop["lat"],
            lng=stop["lng"],
            distance=round(distance),
            eta_minutes=round(eta_minutes) if eta_minutes else None
        ))
    return estimates


async def get_live_buses(db: AsyncSession) -> List[LiveBusResponse]:
    """
    Every bus whose driver is still tracking, with route and stop ETAs.

    A bus without an ongoing trip (or whose route has no stops) is listed
    with an empty eta_to_stops.
    """
    samples = await location_store.get_latest_locations(db, tracking_only=True)
    if not samples:
        return []

    driver_ids = [sample.driver_id for sample in samples]

    result = await db.execute(select(User).where(User.id.in_(driver_ids)))
    users = {user.id: user for user in result.scalars().all()}

    result = await db.execute(
        select(Trip).where(
            Trip.driver_id.in_(driver_ids),
            Trip.status == TripStatus.ONGOING
        )
    )
    trips = {trip.driver_id: trip for trip in result.scalars().all()}

    route_ids = {trip.route_id for trip in trips.values()}
    routes = {}
    if route_ids:
        result = await db.execute(select(Route).where(Route.id.in_(route_ids)))
        routes = {route.id: route for route in result.scalars().all()}

    buses = []
    for sample in samples:
        user = users.get(sample.driver_id)
        trip = trips.get(sample.driver_id)
        route = routes.get(trip.route_id) if trip else None
        stops = route.stops if route else None

        buses.append(LiveBusResponse(
            bus_id=sample.bus_number or (user.bus_number if user else None),
            route_id=route.id if route else None,
            route_name=route.name if route else None,
            lat=sample.latitude,
            lng=sample.longitude,
            speed=sample.speed,
            heading=sample.heading,
            updated_at=sample.recorded_at,
            eta_to_stops=eta_to_stops(sample.latitude, sample.longitude, sample.speed, stops)
        ))

    logger.debug("Live feed: %s buses", len(buses))
    return buses
