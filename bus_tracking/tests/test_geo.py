"""
Geo math and geofence evaluation tests.
"""

import pytest

from bus_tracking.app.services.geo import haversine_distance, EARTH_RADIUS_METERS
from bus_tracking.app.services.geofencing import (
    check_geofence, distance_from_geofence, point_in_circle, point_in_polygon
)

# Square of roughly 1.1 km around (12.97, 77.59)
SQUARE = [[12.965, 77.585], [12.965, 77.595], [12.975, 77.595], [12.975, 77.585]]


def test_haversine_zero_for_identical_points():
    assert haversine_distance(12.97, 77.59, 12.97, 77.59) == 0


def test_haversine_is_symmetric():
    there = haversine_distance(12.97, 77.59, 13.03, 77.65)
    back = haversine_distance(13.03, 77.65, 12.97, 77.59)
    assert there == pytest.approx(back)


def test_haversine_small_step_on_equator():
    # 0.001 degree of longitude on the equator
    expected = EARTH_RADIUS_METERS * 0.001 * 3.141592653589793 / 180
    assert haversine_distance(0, 0, 0, 0.001) == pytest.approx(expected, rel=1e-6)
    assert expected == pytest.approx(111.19, abs=0.01)


def test_point_in_circle_boundary_is_inside():
    center = [0.0, 0.0]
    radius = haversine_distance(0, 0, 0, 0.01)
    assert point_in_circle(0, 0.01, {"center": center, "radius": radius})
    assert not point_in_circle(0, 0.0101, {"center": center, "radius": radius})


def test_point_in_polygon():
    assert point_in_polygon(12.97, 77.59, SQUARE)
    assert not point_in_polygon(12.99, 77.59, SQUARE)


def test_polygon_with_less_than_three_vertices_contains_nothing():
    assert not point_in_polygon(12.97, 77.59, SQUARE[:2])


@pytest.mark.parametrize("fence", [
    None,
    {},
    {"type": "polygon"},
    {"type": "polygon", "coords": []},
    {"type": "circle", "coords": {"radius": 100}},
    {"type": "circle", "coords": {"center": [0, 0]}},
    {"type": "corridor", "coords": [[0, 0], [1, 1]]},
])
def test_unusable_fence_counts_as_inside(fence):
    assert check_geofence(50.0, 50.0, fence) is True
    assert distance_from_geofence(50.0, 50.0, fence) == 0.0


def test_coordinates_alias_is_accepted():
    fence = {"type": "polygon", "coordinates": SQUARE}
    assert check_geofence(12.97, 77.59, fence)
    assert not check_geofence(12.99, 77.59, fence)


def test_circle_distance_is_distance_to_center_minus_radius():
    fence = {"type": "circle", "coords": {"center": [12.97, 77.59], "radius": 500}}
    d = haversine_distance(12.99, 77.59, 12.97, 77.59)

    assert not check_geofence(12.99, 77.59, fence)
    assert distance_from_geofence(12.99, 77.59, fence) == pytest.approx(d - 500)


def test_distance_is_zero_inside():
    fence = {"type": "polygon", "coords": SQUARE}
    assert distance_from_geofence(12.97, 77.59, fence) == 0.0


def test_polygon_distance_uses_nearest_vertex():
    fence = {"type": "polygon", "coords": SQUARE}
    nearest = haversine_distance(12.99, 77.59, 12.975, 77.585)

    assert distance_from_geofence(12.99, 77.59, fence) == pytest.approx(nearest)
