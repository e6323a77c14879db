"""
Alert service tests.
"""

import pytest

from bus_tracking.app.core.exceptions import NotFoundError
from bus_tracking.app.models.alert import Alert
from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity
from bus_tracking.app.services.alert_service import AlertService
from bus_tracking.app.services.audit import get_audit_trail, AuditAction


async def add_alert(db, driver_id, alert_type=AlertType.OVERSPEED, severity=AlertSeverity.MEDIUM):
    alert = Alert(
        type=alert_type, driver_id=driver_id, latitude=0, longitude=0,
        message="test alert", severity=severity
    )
    db.add(alert)
    await db.commit()
    await db.refresh(alert)
    return alert


async def test_list_filters(db_session, driver, other_driver):
    driver_id, other_id = driver.id, other_driver.id
    await add_alert(db_session, driver_id)
    await add_alert(db_session, driver_id, AlertType.OUT_OF_ROUTE, AlertSeverity.HIGH)
    await add_alert(db_session, other_id)

    alerts, total = await AlertService.list_alerts(db_session, driver_id=driver_id)
    assert total == 2

    alerts, total = await AlertService.list_alerts(db_session, severity=AlertSeverity.HIGH)
    assert [a.type for a in alerts] == [AlertType.OUT_OF_ROUTE]

    alerts, total = await AlertService.list_alerts(db_session, page=1, page_size=2)
    assert total == 3
    assert len(alerts) == 2
    # Newest first
    assert alerts[0].id > alerts[1].id


async def test_acknowledge_is_recorded_once(db_session, driver, admin):
    driver_id, admin_id = driver.id, admin.id
    alert = await add_alert(db_session, driver_id)

    acked = await AlertService.acknowledge_alert(db_session, alert.id, admin_id, "admin01")
    first_at = acked.acknowledged_at
    again = await AlertService.acknowledge_alert(db_session, alert.id, admin_id, "admin01")

    assert again.acknowledged_by_id == admin_id
    assert again.acknowledged_at == first_at
    assert await AlertService.count_unacknowledged(db_session) == 0

    trail = await get_audit_trail(db_session, action=AuditAction.ALERT_ACKNOWLEDGED)
    assert len(trail) == 1
    assert (trail[0].entity_type, trail[0].entity_id) == ("alert", alert.id)
    assert trail[0].actor_username == "admin01"


async def test_acknowledge_missing_alert(db_session, admin):
    with pytest.raises(NotFoundError):
        await AlertService.acknowledge_alert(db_session, 12345, admin.id)
