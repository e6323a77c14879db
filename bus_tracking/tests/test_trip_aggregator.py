"""
Trip summary computation tests.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from bus_tracking.app.services.geo import haversine_distance
from bus_tracking.app.services.trip_aggregator import (
    total_distance, average_speed, max_speed, summarize_trip
)

START = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def make_point(lat, lng, speed=None, minutes=0, naive=False):
    recorded_at = START + timedelta(minutes=minutes)
    if naive:
        recorded_at = recorded_at.replace(tzinfo=None)
    return SimpleNamespace(latitude=lat, longitude=lng, speed=speed, recorded_at=recorded_at)


def test_single_point_has_no_distance_or_average():
    points = [make_point(0, 0, speed=30)]
    assert total_distance(points) == 0
    assert average_speed(points) == 0
    assert max_speed(points) == 30


def test_empty_trail():
    summary = summarize_trip([])
    assert (summary.distance_meters, summary.avg_speed, summary.max_speed) == (0, 0, 0)


def test_three_point_trip():
    points = [
        make_point(0, 0, speed=0, minutes=0),
        make_point(0, 0.001, speed=40, minutes=10),
        make_point(0, 0.002, speed=42, minutes=20),
    ]
    summary = summarize_trip(points)

    expected = haversine_distance(0, 0, 0, 0.001) + haversine_distance(0, 0.001, 0, 0.002)
    assert summary.distance_meters == pytest.approx(expected)
    assert summary.distance_meters == pytest.approx(222.39, abs=0.01)
    assert summary.avg_speed == pytest.approx(41)
    assert summary.max_speed == 42


def test_average_falls_back_to_distance_over_time():
    points = [
        make_point(0, 0, minutes=0),
        make_point(0, 0.01, minutes=6),
    ]
    km = haversine_distance(0, 0, 0, 0.01) / 1000

    assert average_speed(points) == pytest.approx(km / 0.1)
    assert max_speed(points) == 0


def test_fallback_accepts_naive_timestamps():
    points = [
        make_point(0, 0, minutes=0, naive=True),
        make_point(0, 0.01, minutes=6),
    ]
    assert average_speed(points) > 0


def test_no_elapsed_time_gives_zero_average():
    points = [make_point(0, 0), make_point(0, 0.01)]
    assert average_speed(points) == 0
