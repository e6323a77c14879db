"""
API tests for alert review and acknowledgement.
"""

from bus_tracking.app.services.event_publisher import EventTopic


async def speed_through_trip(client, route, driver_headers):
    await client.post("/v1/driver/location", json={"latitude": 12.97, "longitude": 77.59}, headers=driver_headers)
    await client.post("/v1/driver/trips/start", json={"route_id": route.id}, headers=driver_headers)
    await client.post(
        "/v1/driver/location",
        json={"latitude": 12.97, "longitude": 77.59, "speed": 85},
        headers=driver_headers
    )


async def test_overspeed_during_trip_raises_alert(client, driver, route, driver_headers, admin_headers, publisher):
    await speed_through_trip(client, route, driver_headers)

    response = await client.get("/v1/admin/alerts", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    alert = data["alerts"][0]
    assert alert["type"] == "overspeed"
    assert alert["severity"] == "high"
    assert alert["driver_id"] == driver.id
    assert alert["acknowledged"] is False

    assert len(publisher.payloads(EventTopic.ALERT_NEW)) == 1


async def test_no_alerts_outside_a_trip(client, route, driver_headers, admin_headers):
    await client.post(
        "/v1/driver/location",
        json={"latitude": 12.97, "longitude": 77.59, "speed": 120},
        headers=driver_headers
    )

    response = await client.get("/v1/admin/alerts/unacknowledged/count", headers=admin_headers)
    assert response.json()["count"] == 0


async def test_acknowledge_alert(client, admin, route, driver_headers, admin_headers):
    await speed_through_trip(client, route, driver_headers)

    response = await client.get("/v1/admin/alerts/unacknowledged/count", headers=admin_headers)
    assert response.json()["count"] == 1

    alert_id = (await client.get("/v1/admin/alerts", headers=admin_headers)).json()["alerts"][0]["id"]
    response = await client.post(f"/v1/admin/alerts/{alert_id}/acknowledge", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["acknowledged"] is True
    assert data["acknowledged_by_id"] == admin.id
    assert data["acknowledged_at"] is not None

    response = await client.get("/v1/admin/alerts/unacknowledged/count", headers=admin_headers)
    assert response.json()["count"] == 0

    response = await client.get("/v1/admin/alerts", params={"acknowledged": "false"}, headers=admin_headers)
    assert response.json()["total"] == 0


async def test_acknowledge_unknown_alert(client, admin_headers):
    response = await client.post("/v1/admin/alerts/999/acknowledge", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


async def test_filter_alerts_by_type(client, route, driver_headers, admin_headers):
    await speed_through_trip(client, route, driver_headers)

    response = await client.get("/v1/admin/alerts", params={"type": "out_of_route"}, headers=admin_headers)
    assert response.json()["total"] == 0

    response = await client.get("/v1/admin/alerts", params={"type": "overspeed"}, headers=admin_headers)
    assert response.json()["total"] == 1
