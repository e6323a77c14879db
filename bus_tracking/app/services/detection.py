"""
Detection engine.

Evaluates every point appended to an ongoing trip for two conditions:

- overspeed: reported speed above the route limit (or the default limit)
- out of route: point outside the route geofence

Each sample is evaluated on its own, so the same condition on consecutive
samples produces one alert per sample. Alert creation and publication are
best effort: failures are logged and returned in ``DetectionResult.errors``,
never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.core.config import settings
from bus_tracking.app.models.alert import Alert
from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity
from bus_tracking.app.schemas.alert import AlertResponse
from bus_tracking.app.services.event_publisher import EventPublisher, EventTopic
from bus_tracking.app.services.geofencing import check_geofence, distance_from_geofence
from bus_tracking.app.services.route_lookup import get_route, effective_speed_limit

logger = logging.getLogger("bus_tracking.detection")


@dataclass
class DetectionResult:
    alerts: List[Alert] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class _PointContext:
    driver_id: int
    trip_id: Optional[int]
    route_id: Optional[int]
    latitude: float
    longitude: float
    speed: Optional[float]
    speed_limit: float = 0.0
    geofence: Optional[dict] = None


class DetectionEngine:

    def __init__(
        self,
        publisher: EventPublisher,
        high_speed_ratio: float = None,
        high_distance_meters: float = None
    ):
        self.publisher = publisher
        if high_speed_ratio is None:
            high_speed_ratio = settings.overspeed_high_ratio
        if high_distance_meters is None:
            high_distance_meters = settings.out_of_route_high_meters
        self.high_speed_ratio = high_speed_ratio
        self.high_distance_meters = high_distance_meters

    def overspeed_alert(self, ctx: _PointContext) -> Optional[Alert]:
        """Build an overspeed alert for the point, or None if within the limit."""
        if ctx.speed is None or ctx.speed <= 0:
            return None

        limit = ctx.speed_limit
        if ctx.speed <= limit:
            return None

        severity = AlertSeverity.HIGH if ctx.speed > limit * self.high_speed_ratio else AlertSeverity.MEDIUM
        return Alert(
            type=AlertType.OVERSPEED,
            driver_id=ctx.driver_id,
            trip_id=ctx.trip_id,
            route_id=ctx.route_id,
            latitude=ctx.latitude,
            longitude=ctx.longitude,
            speed=ctx.speed,
            speed_limit=limit,
            message=f"Driver exceeded speed limit: {ctx.speed:.1f} km/h (limit: {limit:.1f} km/h)",
            severity=severity,
        )

    def out_of_route_alert(self, ctx: _PointContext) -> Optional[Alert]:
        """Build an out-of-route alert for the point, or None if inside the fence."""
        if not ctx.geofence:
            return None
        if check_geofence(ctx.latitude, ctx.longitude, ctx.geofence):
            return None

        distance = distance_from_geofence(ctx.latitude, ctx.longitude, ctx.geofence)
        severity = AlertSeverity.HIGH if distance > self.high_distance_meters else AlertSeverity.MEDIUM
        return Alert(
            type=AlertType.OUT_OF_ROUTE,
            driver_id=ctx.driver_id,
            trip_id=ctx.trip_id,
            route_id=ctx.route_id,
            latitude=ctx.latitude,
            longitude=ctx.longitude,
            distance_from_route=distance,
            message=f"Driver is out of route. Distance: {distance:.0f}m",
            severity=severity,
        )

    async def evaluate(self, db: AsyncSession, trip, point) -> DetectionResult:
        """
        Run both checks for a point appended to ``trip``.

        Args:
            db: Database session
            trip: Trip the point belongs to
            point: Appended point (latitude, longitude, speed)

        Returns:
            DetectionResult with the persisted alerts and any errors
        """
        result = DetectionResult()
        # Alert commits/rollbacks expire ORM state; read everything up front
        ctx = _PointContext(
            driver_id=trip.driver_id,
            trip_id=trip.id,
            route_id=trip.route_id,
            latitude=point.latitude,
            longitude=point.longitude,
            speed=point.speed,
        )

        checks = [self.overspeed_alert, self.out_of_route_alert]
        route = None
        try:
            route = await get_route(db, ctx.route_id)
        except Exception as exc:
            logger.exception("Route lookup failed for trip %s", ctx.trip_id)
            result.errors.append(f"route lookup failed: {exc}")
            # The route limit is unknown; the default limit could be too low
            checks.remove(self.overspeed_alert)

        ctx.speed_limit = effective_speed_limit(route)
        ctx.geofence = route.geofence if route is not None else None

        for build in checks:
            try:
                alert = build(ctx)
            except Exception as exc:
                logger.exception("Evaluating %s failed for trip %s", build.__name__, ctx.trip_id)
                result.errors.append(f"{build.__name__} failed: {exc}")
                continue
            if alert is not None:
                await self._raise_alert(db, alert, result)

        return result

    async def _raise_alert(self, db: AsyncSession, alert: Alert, result: DetectionResult) -> None:
        alert_type = alert.type.value
        try:
            db.add(alert)
            await db.commit()
            await db.refresh(alert)
            payload = AlertResponse.model_validate(alert).model_dump()
        except Exception as exc:
            await db.rollback()
            logger.exception("Creating %s alert for driver %s failed", alert_type, alert.driver_id)
            result.errors.append(f"{alert_type} alert not created: {exc}")
            return

        result.alerts.append(alert)
        logger.info(
            "%s alert %s raised for driver %s (%s)",
            alert_type, alert.id, alert.driver_id, alert.severity.value
        )

        if not await self.publisher.publish(EventTopic.ALERT_NEW, payload):
            result.errors.append(f"{alert_type} alert {alert.id} not published")
