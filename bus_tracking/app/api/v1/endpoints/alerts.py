"""
Alert API Endpoints.

Operators review overspeed and out-of-route alerts and acknowledge them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bus_tracking.app.db.session import get_db
from bus_tracking.app.core.guards import require_admin
from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity
from bus_tracking.app.schemas.alert import AlertResponse, AlertListResponse, UnacknowledgedCountResponse
from bus_tracking.app.services.alert_service import AlertService

router = APIRouter(prefix="/admin/alerts", tags=["Admin - Alerts"])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    driver_id: Optional[int] = Query(None),
    type: Optional[AlertType] = Query(None),
    acknowledged: Optional[bool] = Query(None),
    severity: Optional[AlertSeverity] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List alerts with filters, newest first (Admin only)."""
    alerts, total = await AlertService.list_alerts(
        db,
        driver_id=driver_id,
        alert_type=type,
        acknowledged=acknowledged,
        severity=severity,
        page=page,
        page_size=page_size
    )
    return AlertListResponse(
        alerts=[AlertResponse.model_validate(alert) for alert in alerts],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/unacknowledged/count", response_model=UnacknowledgedCountResponse)
async def count_unacknowledged(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Number of alerts not yet acknowledged (Admin only)."""
    return UnacknowledgedCountResponse(count=await AlertService.count_unacknowledged(db))


@router.post("/{alert_id}/acknowledge", response_model=AlertResponse)
async def acknowledge_alert(
    alert_id: int = Path(..., description="Alert ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Acknowledge an alert (Admin only)."""
    alert = await AlertService.acknowledge_alert(
        db, alert_id, current_user["user_id"], current_user.get("sub")
    )
    return AlertResponse.model_validate(alert)
