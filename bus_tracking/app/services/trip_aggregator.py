"""
Trip summary computation.

Works on an ordered trail of points exposing ``latitude``, ``longitude``,
``speed`` (km/h, optional) and ``recorded_at`` (TripPoint rows, or any
object with those attributes).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from bus_tracking.app.services.geo import haversine_distance


@dataclass
class TripSummary:
    distance_meters: float
    avg_speed: float  # km/h
    max_speed: float  # km/h


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _reported_speeds(points: Sequence) -> list[float]:
    return [p.speed for p in points if p.speed is not None and p.speed > 0]


def total_distance(points: Sequence) -> float:
    """Sum of haversine distances between consecutive points, in meters."""
    if not points or len(points) < 2:
        return 0.0

    return sum(
        haversine_distance(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
        for prev, curr in zip(points, points[1:])
    )


def average_speed(points: Sequence) -> float:
    """
    Average speed in km/h.

    Uses the mean of the speeds reported by the device (missing and
    non-positive values ignored). When no speed was reported, falls back to
    distance over the time between the first and last point.
    """
    if not points or len(points) < 2:
        return 0.0

    speeds = _reported_speeds(points)
    if speeds:
        return sum(speeds) / len(speeds)

    elapsed = _as_utc(points[-1].recorded_at) - _as_utc(points[0].recorded_at)
    hours = elapsed.total_seconds() / 3600
    if hours <= 0:
        return 0.0
    return (total_distance(points) / 1000) / hours


def max_speed(points: Sequence) -> float:
    """Highest reported speed in km/h, 0 if none was reported."""
    speeds = _reported_speeds(points or [])
    return max(speeds) if speeds else 0.0


def summarize_trip(points: Sequence) -> TripSummary:
    """Compute the summary stored on a trip when it is completed."""
    return TripSummary(
        distance_meters=total_distance(points),
        avg_speed=average_speed(points),
        max_speed=max_speed(points),
    )
