"""
Alert queries and acknowledgement for the operator dashboard.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from bus_tracking.app.core.exceptions import NotFoundError
from bus_tracking.app.models.alert import Alert
from bus_tracking.app.models.alert_enums import AlertType, AlertSeverity
from bus_tracking.app.services.audit import log_event, AuditAction

logger = logging.getLogger("bus_tracking.alerts")


class AlertService:

    @staticmethod
    async def list_alerts(
        db: AsyncSession,
        driver_id: Optional[int] = None,
        alert_type: Optional[AlertType] = None,
        acknowledged: Optional[bool] = None,
        severity: Optional[AlertSeverity] = None,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[Alert], int]:
        """
        Filtered alert listing, newest first.

        Returns:
            (alerts on the requested page, total matching alerts)
        """
        filters = []
        if driver_id:
            filters.append(Alert.driver_id == driver_id)
        if alert_type:
            filters.append(Alert.type == alert_type)
        if acknowledged is not None:
            filters.append(Alert.acknowledged.is_(acknowledged))
        if severity:
            filters.append(Alert.severity == severity)

        total_result = await db.execute(select(func.count(Alert.id)).where(*filters))
        total = total_result.scalar()

        result = await db.execute(
            select(Alert)
            .where(*filters)
            .order_by(Alert.created_at.desc(), Alert.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def acknowledge_alert(
        db: AsyncSession,
        alert_id: int,
        admin_id: int,
        admin_username: Optional[str] = None
    ) -> Alert:
        """
        Mark an alert as seen by an operator.

        Acknowledging twice keeps the first acknowledgement.

        Raises:
            NotFoundError: Alert does not exist
        """
        result = await db.execute(select(Alert).where(Alert.id == alert_id))
        alert = result.scalar_one_or_none()
        if not alert:
            raise NotFoundError("Alert", alert_id)

        if alert.acknowledged:
            return alert

        alert.acknowledged = True
        alert.acknowledged_by_id = admin_id
        alert.acknowledged_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(alert)

        logger.info("Alert %s acknowledged by %s", alert_id, admin_id)
        await log_event(
            db=db,
            action=AuditAction.ALERT_ACKNOWLEDGED,
            actor_id=admin_id,
            actor_username=admin_username,
            entity_type="alert",
            entity_id=alert_id
        )
        return alert

    @staticmethod
    async def count_unacknowledged(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Alert.id)).where(Alert.acknowledged.is_(False))
        )
        return result.scalar()
