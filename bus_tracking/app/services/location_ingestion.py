"""
Location ingestion.

Accepts GPS samples from driver devices (one at a time or as an offline
batch), stores them, publishes them to the live map and forwards them to the
driver's ongoing trip.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from bus_tracking.app.core.config import settings
from bus_tracking.app.core.exceptions import ValidationError
from bus_tracking.app.models.driver_location import DriverLocation
from bus_tracking.app.models.user import User
from bus_tracking.app.schemas.location import (
    LocationUpdate, DriverLocationResponse, BulkSyncResult, BulkSyncError
)
from bus_tracking.app.services import location_store
from bus_tracking.app.services.audit import log_event, AuditAction
from bus_tracking.app.services.event_publisher import EventPublisher, EventTopic
from bus_tracking.app.services.trip_lifecycle import TripLifecycleManager

logger = logging.getLogger("bus_tracking.locations")


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"]) or "body"
        parts.append(f"{field_path}: {error['msg']}")
    return "; ".join(parts)


class LocationIngestionService:

    def __init__(self, publisher: EventPublisher, trip_manager: TripLifecycleManager = None):
        self.publisher = publisher
        self.trip_manager = trip_manager or TripLifecycleManager(publisher)

    @staticmethod
    def validate(data: Any) -> LocationUpdate:
        """
        Validate a raw sample.

        Raises:
            ValidationError: Coordinates, speed, heading or accuracy out of range
        """
        if isinstance(data, LocationUpdate):
            return data
        try:
            return LocationUpdate.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid location: {_describe(exc)}",
                details={"errors": [
                    {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                    for e in exc.errors()
                ]}
            )

    async def _bus_number(self, db: AsyncSession, driver_id: int) -> Optional[str]:
        driver = await db.get(User, driver_id)
        return driver.bus_number if driver else None

    async def submit_location(
        self,
        db: AsyncSession,
        driver_id: int,
        data: Any
    ) -> DriverLocation:
        """
        Store one sample as the driver's newest location.

        Actions:
        - Persist the sample (tracking on)
        - Publish location:update
        - Append it to the driver's ongoing trip, if any

        Raises:
            ValidationError: Sample out of range (nothing is stored)
        """
        update = self.validate(data)

        sample = DriverLocation(
            driver_id=driver_id,
            bus_number=await self._bus_number(db, driver_id),
            latitude=update.latitude,
            longitude=update.longitude,
            speed=update.speed,
            heading=update.heading,
            accuracy_meters=update.accuracy_meters,
            is_tracking=True,
            recorded_at=update.recorded_at or datetime.now(timezone.utc)
        )
        db.add(sample)
        await db.commit()
        await db.refresh(sample)

        await self.publisher.publish(
            EventTopic.LOCATION_UPDATE,
            DriverLocationResponse.model_validate(sample).model_dump()
        )

        try:
            trip = await self.trip_manager.get_ongoing_trip(db, driver_id)
        except SQLAlchemyError:
            logger.exception("Ongoing trip lookup failed for driver %s", driver_id)
            trip = None

        if trip is not None:
            await self.trip_manager.append_point(db, trip.id, sample, driver_id)

        # Failed detection writes roll back the session and expire the sample
        if inspect(sample).expired:
            await db.refresh(sample)
        return sample

    async def submit_bulk(
        self,
        db: AsyncSession,
        driver_id: int,
        items: List[Any]
    ) -> BulkSyncResult:
        """
        Store a batch of samples captured while the device was offline.

        Items are processed in submission order, each as an independent
        submit_location. A failing item is reported and does not stop the rest.

        Raises:
            ValidationError: Batch is empty or larger than bulk_sync_max_items
        """
        if not items:
            raise ValidationError("Bulk sync requires at least one location")
        if len(items) > settings.bulk_sync_max_items:
            raise ValidationError(
                f"Bulk sync accepts at most {settings.bulk_sync_max_items} locations",
                details={"received": len(items)}
            )

        saved = 0
        errors: List[BulkSyncError] = []
        for index, item in enumerate(items):
            try:
                await self.submit_location(db, driver_id, item)
                saved += 1
            except ValidationError as exc:
                errors.append(BulkSyncError(index=index, message=exc.message))
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.exception("Bulk item %s for driver %s not stored", index, driver_id)
                errors.append(BulkSyncError(index=index, message=f"Storage error: {type(exc).__name__}"))

        logger.info("Bulk sync for driver %s: %s saved, %s failed", driver_id, saved, len(errors))
        return BulkSyncResult(saved=saved, failed=len(errors), errors=errors)

    async def stop_tracking(
        self,
        db: AsyncSession,
        driver_id: int,
        username: Optional[str] = None
    ) -> Optional[DriverLocation]:
        """
        Mark the driver's latest sample as not tracking.

        Returns:
            The updated sample, or None if the driver never reported a location
        """
        latest = await location_store.get_latest_sample(db, driver_id)
        if not latest:
            return None

        latest.is_tracking = False
        await db.commit()
        await db.refresh(latest)

        await log_event(
            db=db,
            action=AuditAction.TRACKING_STOPPED,
            actor_id=driver_id,
            actor_username=username,
            entity_type="driver_location",
            entity_id=latest.id
        )
        return latest

    async def get_latest_locations(self, db: AsyncSession, tracking_only: bool = False) -> List[DriverLocation]:
        return await location_store.get_latest_locations(db, tracking_only=tracking_only)

    async def get_driver_history(
        self,
        db: AsyncSession,
        driver_id: int,
        limit: int = None
    ) -> List[DriverLocation]:
        return await location_store.get_driver_history(
            db, driver_id, limit or settings.location_history_limit
        )
