"""
Location ingestion tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bus_tracking.app.core.exceptions import ValidationError
from bus_tracking.app.services.event_publisher import EventTopic
from bus_tracking.app.services.location_ingestion import LocationIngestionService

BASE = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def ingestion(publisher):
    return LocationIngestionService(publisher)


async def test_submit_stores_sample_and_publishes(db_session, driver, ingestion, publisher):
    sample = await ingestion.submit_location(db_session, driver.id, {
        "latitude": 12.97, "longitude": 77.59, "speed": 25, "heading": 180, "accuracy_meters": 4
    })

    assert sample.id is not None
    assert sample.is_tracking is True
    assert sample.bus_number == "KA-01-F-1234"
    assert sample.recorded_at is not None

    events = publisher.payloads(EventTopic.LOCATION_UPDATE)
    assert len(events) == 1
    assert events[0]["driver_id"] == driver.id
    assert events[0]["latitude"] == 12.97


@pytest.mark.parametrize("bad", [
    {"latitude": 91, "longitude": 0},
    {"latitude": 0, "longitude": -181},
    {"latitude": 0, "longitude": 0, "speed": -1},
    {"latitude": 0, "longitude": 0, "heading": 360},
    {"latitude": 0, "longitude": 0, "accuracy_meters": -5},
    {"longitude": 0},
])
async def test_invalid_sample_is_rejected(db_session, driver, ingestion, publisher, bad):
    with pytest.raises(ValidationError):
        await ingestion.submit_location(db_session, driver.id, bad)

    assert await ingestion.get_driver_history(db_session, driver.id) == []
    assert publisher.events == []


async def test_bulk_keeps_order_and_reports_bad_items(db_session, driver, ingestion):
    driver_id = driver.id
    latitudes = [12.0, 12.01, 12.02, 12.03, 12.04]
    items = [
        {"latitude": lat, "longitude": 77.0, "recorded_at": BASE + timedelta(minutes=i)}
        for i, lat in enumerate(latitudes)
    ]
    items[2]["latitude"] = 95

    result = await ingestion.submit_bulk(db_session, driver_id, items)

    assert result.saved == 4
    assert result.failed == 1
    assert [e.index for e in result.errors] == [2]

    history = await ingestion.get_driver_history(db_session, driver_id)
    assert [h.latitude for h in reversed(history)] == [12.0, 12.01, 12.03, 12.04]


async def test_bulk_limits(db_session, driver, ingestion):
    with pytest.raises(ValidationError):
        await ingestion.submit_bulk(db_session, driver.id, [])

    too_many = [{"latitude": 0, "longitude": 0}] * 101
    with pytest.raises(ValidationError):
        await ingestion.submit_bulk(db_session, driver.id, too_many)


async def test_bulk_appends_to_ongoing_trip(db_session, driver, route, ingestion):
    driver_id = driver.id
    await ingestion.submit_location(db_session, driver_id, {"latitude": 12.97, "longitude": 77.59})
    trip = await ingestion.trip_manager.start_trip(db_session, driver_id, route.id)

    result = await ingestion.submit_bulk(db_session, driver_id, [
        {"latitude": 12.971, "longitude": 77.59},
        {"latitude": 12.972, "longitude": 77.59},
    ])

    assert result.saved == 2
    points = await ingestion.trip_manager.get_trip_points(db_session, trip.id)
    assert [p.latitude for p in points] == [12.97, 12.971, 12.972]


async def test_stop_tracking(db_session, driver, ingestion):
    driver_id = driver.id
    assert await ingestion.stop_tracking(db_session, driver_id) is None

    await ingestion.submit_location(db_session, driver_id, {"latitude": 12.97, "longitude": 77.59})
    stopped = await ingestion.stop_tracking(db_session, driver_id, "driver01")

    assert stopped.is_tracking is False
    assert await ingestion.get_latest_locations(db_session, tracking_only=True) == []


async def test_latest_location_per_driver(db_session, driver, other_driver, ingestion):
    driver_id, other_id = driver.id, other_driver.id
    await ingestion.submit_location(db_session, driver_id, {
        "latitude": 1.0, "longitude": 1.0, "recorded_at": BASE
    })
    await ingestion.submit_location(db_session, driver_id, {
        "latitude": 2.0, "longitude": 2.0, "recorded_at": BASE + timedelta(minutes=1)
    })
    # Late arrival of an older fix does not replace the current position
    await ingestion.submit_location(db_session, driver_id, {
        "latitude": 0.5, "longitude": 0.5, "recorded_at": BASE - timedelta(minutes=1)
    })
    await ingestion.submit_location(db_session, other_id, {
        "latitude": 3.0, "longitude": 3.0, "recorded_at": BASE
    })

    latest = await ingestion.get_latest_locations(db_session)

    assert {loc.driver_id: loc.latitude for loc in latest} == {driver_id: 2.0, other_id: 3.0}
