"""
Public live bus feed tests.
"""

import pytest

from bus_tracking.app.models.route import Route
from bus_tracking.app.services.live_buses import eta_to_stops

# Two stops north of (12.97, 77.59), listed out of order
CAMPUS_STOPS = [
    {"lat": 12.99, "lng": 77.59, "name": "Library", "order": 2},
    {"lat": 12.98, "lng": 77.59, "name": "Gate", "order": 1},
]


@pytest.fixture
async def campus_route(db_session):
    route = Route(name="Campus Line", stops=CAMPUS_STOPS)
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


def test_eta_follows_stop_order_and_speed():
    estimates = eta_to_stops(12.97, 77.59, 30, CAMPUS_STOPS)

    assert [e.stop_name for e in estimates] == ["Gate", "Library"]
    assert [e.distance for e in estimates] == [1112, 2224]
    assert [e.eta_minutes for e in estimates] == [2, 4]


@pytest.mark.parametrize("speed", [None, 0])
def test_eta_is_null_when_not_moving(speed):
    estimates = eta_to_stops(12.97, 77.59, speed, CAMPUS_STOPS)

    assert [e.distance for e in estimates] == [1112, 2224]
    assert all(e.eta_minutes is None for e in estimates)


def test_eta_without_stops():
    assert eta_to_stops(12.97, 77.59, 30, []) == []
    assert eta_to_stops(12.97, 77.59, 30, None) == []


async def test_live_feed_is_public(client, campus_route, driver_headers, other_driver_headers):
    response = await client.get("/v1/public/buses/live")
    assert response.status_code == 200
    assert response.json() == []

    await client.post(
        "/v1/driver/location",
        json={"latitude": 12.97, "longitude": 77.59, "speed": 30, "heading": 0},
        headers=driver_headers
    )
    response = await client.post("/v1/driver/trips/start", json={"route_id": campus_route.id}, headers=driver_headers)
    assert response.status_code == 201

    await client.post(
        "/v1/driver/location",
        json={"latitude": 12.97, "longitude": 77.60, "speed": 0},
        headers=other_driver_headers
    )

    response = await client.get("/v1/public/buses/live")
    assert response.status_code == 200
    buses = {bus["bus_id"]: bus for bus in response.json()}
    assert set(buses) == {"KA-01-F-1234", "KA-01-F-5678"}

    on_trip = buses["KA-01-F-1234"]
    assert on_trip["route_id"] == campus_route.id
    assert on_trip["route_name"] == "Campus Line"
    assert on_trip["speed"] == 30
    assert [s["stop_name"] for s in on_trip["eta_to_stops"]] == ["Gate", "Library"]
    assert [s["eta_minutes"] for s in on_trip["eta_to_stops"]] == [2, 4]

    idle = buses["KA-01-F-5678"]
    assert idle["route_id"] is None
    assert idle["eta_to_stops"] == []

    await client.post("/v1/driver/location/stop", headers=other_driver_headers)

    response = await client.get("/v1/public/buses/live")
    assert [bus["bus_id"] for bus in response.json()] == ["KA-01-F-1234"]
