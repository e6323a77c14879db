"""
Trip lifecycle management.

A driver has at most one ONGOING trip. Trips move ONGOING -> COMPLETED and
never back. While a trip is ongoing every location sample of its driver is
appended to the trail and evaluated by the detection engine; completing the
trip computes the distance and speed summary from the trail.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bus_tracking.app.core.exceptions import (
    ConflictError, NotFoundError, ForbiddenError, PreconditionError
)
from bus_tracking.app.models.trip import Trip
from bus_tracking.app.models.trip_point import TripPoint
from bus_tracking.app.models.trip_enums import TripStatus
from bus_tracking.app.models.user import User
from bus_tracking.app.schemas.trip import TripResponse, TripPointResponse
from bus_tracking.app.services.audit import log_event, AuditAction
from bus_tracking.app.services.detection import DetectionEngine, DetectionResult
from bus_tracking.app.services.event_publisher import EventPublisher, EventTopic, TripUpdateType
from bus_tracking.app.services.location_store import get_latest_sample
from bus_tracking.app.services.route_lookup import get_route
from bus_tracking.app.services.trip_aggregator import summarize_trip

logger = logging.getLogger("bus_tracking.trips")


@dataclass
class AppendOutcome:
    """Result of appending a sample to an ongoing trip."""
    point: TripPoint
    detection: DetectionResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripLifecycleManager:

    def __init__(self, publisher: EventPublisher, detection_engine: DetectionEngine = None):
        self.publisher = publisher
        self.detection = detection_engine or DetectionEngine(publisher)

    # Queries

    async def count_ongoing_trips(self, db: AsyncSession, driver_id: int) -> int:
        """
        Count how many ONGOING trips a driver has.

        Should be 0 or 1 (the unique index on ongoing trips enforces it).
        """
        result = await db.execute(
            select(func.count(Trip.id)).where(
                Trip.driver_id == driver_id,
                Trip.status == TripStatus.ONGOING
            )
        )
        return result.scalar()

    async def get_ongoing_trip(self, db: AsyncSession, driver_id: int) -> Optional[Trip]:
        result = await db.execute(
            select(Trip).where(
                Trip.driver_id == driver_id,
                Trip.status == TripStatus.ONGOING
            )
        )
        return result.scalar_one_or_none()

    async def get_trip(self, db: AsyncSession, trip_id: int) -> Trip:
        result = await db.execute(select(Trip).where(Trip.id == trip_id))
        trip = result.scalar_one_or_none()
        if not trip:
            raise NotFoundError("Trip", trip_id)
        return trip

    async def get_trip_points(self, db: AsyncSession, trip_id: int) -> List[TripPoint]:
        """Trail of a trip in the order the points were recorded."""
        result = await db.execute(
            select(TripPoint).where(TripPoint.trip_id == trip_id).order_by(TripPoint.id)
        )
        return list(result.scalars().all())

    async def list_trips(
        self,
        db: AsyncSession,
        driver_id: Optional[int] = None,
        route_id: Optional[int] = None,
        status: Optional[TripStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[Trip], int]:
        """
        Filtered trip listing, most recent start first.

        Returns:
            (trips on the requested page, total matching trips)
        """
        filters = []
        if driver_id:
            filters.append(Trip.driver_id == driver_id)
        if route_id:
            filters.append(Trip.route_id == route_id)
        if status:
            filters.append(Trip.status == status)
        if start_date:
            filters.append(Trip.start_time >= start_date)
        if end_date:
            filters.append(Trip.start_time <= end_date)

        total_result = await db.execute(select(func.count(Trip.id)).where(*filters))
        total = total_result.scalar()

        result = await db.execute(
            select(Trip)
            .where(*filters)
            .order_by(Trip.start_time.desc(), Trip.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    async def list_driver_trips(self, db: AsyncSession, driver_id: int, limit: int = 10) -> List[Trip]:
        trips, _ = await self.list_trips(db, driver_id=driver_id, page=1, page_size=limit)
        return trips

    # Commands

    async def start_trip(
        self,
        db: AsyncSession,
        driver_id: int,
        route_id: int,
        bus_id: Optional[str] = None
    ) -> Trip:
        """
        Start a trip for a driver.

        Validates:
        - Driver has no other ONGOING trip
        - Route exists
        - Route is unassigned or assigned to this driver
        - Driver has reported at least one location

        Actions:
        - Create the trip in ONGOING state, starting at the latest location
        - Seed the trail with that location
        - Publish trip:update (started)

        Raises:
            ConflictError, NotFoundError, ForbiddenError, PreconditionError
        """
        if await self.count_ongoing_trips(db, driver_id) > 0:
            raise ConflictError(
                "You already have an ongoing trip. Please end it first.",
                details={"driver_id": driver_id}
            )

        route = await get_route(db, route_id)
        if not route:
            raise NotFoundError("Route", route_id)

        if route.assigned_driver_id is not None and route.assigned_driver_id != driver_id:
            raise ForbiddenError("You are not assigned to this route", details={"route_id": route_id})

        latest = await get_latest_sample(db, driver_id)
        if not latest:
            raise PreconditionError(
                "No location data. Please start tracking first.",
                details={"driver_id": driver_id}
            )

        if not bus_id:
            driver = await db.get(User, driver_id)
            bus_id = driver.bus_number if driver else None

        now = _utcnow()
        trip = Trip(
            driver_id=driver_id,
            route_id=route_id,
            bus_id=bus_id,
            status=TripStatus.ONGOING,
            start_time=now,
            start_lat=latest.latitude,
            start_lng=latest.longitude,
            distance_meters=0
        )
        db.add(trip)

        try:
            await db.flush()  # Will raise IntegrityError if another start won the race
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "You already have an ongoing trip. Please end it first.",
                details={"driver_id": driver_id}
            )

        db.add(TripPoint(
            trip_id=trip.id,
            latitude=latest.latitude,
            longitude=latest.longitude,
            speed=latest.speed,
            heading=latest.heading,
            accuracy_meters=latest.accuracy_meters,
            recorded_at=now
        ))

        await db.commit()
        await db.refresh(trip)

        logger.info("Trip %s started by driver %s on route %s", trip.id, driver_id, route_id)
        await log_event(
            db=db,
            action=AuditAction.TRIP_STARTED,
            actor_id=driver_id,
            entity_type="trip",
            entity_id=trip.id,
            metadata={"route_id": route_id, "bus_id": bus_id}
        )

        await self.publisher.publish(EventTopic.TRIP_UPDATE, {
            "type": TripUpdateType.STARTED,
            "trip": TripResponse.model_validate(trip).model_dump()
        })
        return trip

    async def end_trip(self, db: AsyncSession, trip_id: int, driver_id: int) -> Trip:
        """
        Complete a driver's ongoing trip.

        Actions:
        - End location = latest driver location, else the last trail point
        - Compute distance, average and max speed from the trail
        - Change status to COMPLETED
        - Publish trip:update (ended)

        Raises:
            NotFoundError: No ONGOING trip with this id belongs to the driver
        """
        result = await db.execute(
            select(Trip).where(
                Trip.id == trip_id,
                Trip.driver_id == driver_id,
                Trip.status == TripStatus.ONGOING
            )
        )
        trip = result.scalar_one_or_none()
        if not trip:
            raise NotFoundError("Trip", trip_id, message="Ongoing trip not found")

        points = await self.get_trip_points(db, trip.id)
        latest = await get_latest_sample(db, driver_id)

        if latest:
            end_lat, end_lng = latest.latitude, latest.longitude
        elif points:
            end_lat, end_lng = points[-1].latitude, points[-1].longitude
        else:
            end_lat, end_lng = trip.start_lat, trip.start_lng

        summary = summarize_trip(points)

        trip.end_time = _utcnow()
        trip.end_lat = end_lat
        trip.end_lng = end_lng
        trip.distance_meters = summary.distance_meters
        trip.avg_speed = summary.avg_speed
        trip.max_speed = summary.max_speed
        trip.status = TripStatus.COMPLETED

        await db.commit()
        await db.refresh(trip)

        logger.info(
            "Trip %s completed: %.0f m, avg %.1f km/h, max %.1f km/h",
            trip.id, summary.distance_meters, summary.avg_speed, summary.max_speed
        )
        await log_event(
            db=db,
            action=AuditAction.TRIP_COMPLETED,
            actor_id=driver_id,
            entity_type="trip",
            entity_id=trip.id,
            metadata={
                "points": len(points),
                "distance_meters": round(summary.distance_meters, 1)
            }
        )

        await self.publisher.publish(EventTopic.TRIP_UPDATE, {
            "type": TripUpdateType.ENDED,
            "trip": TripResponse.model_validate(trip).model_dump()
        })
        return trip

    async def append_point(
        self,
        db: AsyncSession,
        trip_id: int,
        sample,
        driver_id: int
    ) -> Optional[AppendOutcome]:
        """
        Append a location sample to an ongoing trip and run detection.

        Runs on every location update, so it never raises: a missing trip, a
        completed trip or a trip of another driver is ignored (returns None),
        and storage or detection failures are logged.
        """
        try:
            result = await db.execute(select(Trip).where(Trip.id == trip_id))
            trip = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Loading trip %s failed", trip_id)
            return None

        if not trip or trip.status != TripStatus.ONGOING or trip.driver_id != driver_id:
            return None

        point = TripPoint(
            trip_id=trip.id,
            latitude=sample.latitude,
            longitude=sample.longitude,
            speed=sample.speed,
            heading=sample.heading,
            accuracy_meters=sample.accuracy_meters,
            recorded_at=sample.recorded_at or _utcnow()
        )
        try:
            db.add(point)
            await db.commit()
            await db.refresh(point)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Appending point to trip %s failed", trip_id)
            return None

        point_payload = TripPointResponse.model_validate(point).model_dump()

        detection = await self.detection.evaluate(db, trip, point)
        if detection.errors:
            logger.warning("Detection for trip %s finished with errors: %s", trip_id, detection.errors)

        await self.publisher.publish(EventTopic.TRIP_UPDATE, {
            "type": TripUpdateType.LOCATION,
            "trip_id": trip_id,
            "point": point_payload
        })
        return AppendOutcome(point=point, detection=detection)
